"""Gemini-backed sales-intent classification and reply drafting."""

from .classifier import Classifier

__all__ = ["Classifier"]

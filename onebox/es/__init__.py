"""Elasticsearch-backed document store for email records."""

from .client import ESClient
from .queries import build_email_search
from .store import EmailStore

__all__ = [
    "ESClient",
    "EmailStore",
    "build_email_search",
]

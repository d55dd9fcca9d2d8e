"""Onebox: multi-account IMAP aggregation with search, AI labels and live updates."""

__version__ = "0.1.0"

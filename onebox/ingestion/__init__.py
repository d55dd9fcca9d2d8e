"""IMAP ingestion: sessions, normalization and the per-account sync loop."""

from .connections import ConnectionManager
from .imap_client import AsyncImapClient, FetchedEmail, MailboxParams
from .parser import extract_body, parse_email
from .pipeline import MessagePipeline
from .service import IngestionService

__all__ = [
    "AsyncImapClient",
    "ConnectionManager",
    "FetchedEmail",
    "IngestionService",
    "MailboxParams",
    "MessagePipeline",
    "extract_body",
    "parse_email",
]

"""Normalize raw RFC 822 bytes into an :class:`EmailRecord`."""

from __future__ import annotations

import email
import email.policy
import email.utils
from datetime import UTC, datetime
from email.message import EmailMessage

from bs4 import BeautifulSoup

from onebox.models import Category, EmailRecord

from .imap_client import FetchedEmail

NO_SUBJECT = "(No subject)"
UNKNOWN_ADDRESS = "Unknown"


def parse_email(fetched: FetchedEmail, account_id: str, folder: str) -> EmailRecord:
    """Build the placeholder-category record for one fetched message.

    The fallback id ``<account_id>-<uid>`` is stable for a given uid but
    not across a mailbox's UIDVALIDITY change.
    """
    msg = email.message_from_bytes(fetched.raw_bytes, policy=email.policy.default)

    message_id = str(msg.get("Message-ID") or "").strip()
    subject = str(msg.get("Subject") or "").strip()

    return EmailRecord(
        message_id=message_id or f"{account_id}-{fetched.uid}",
        account_id=account_id,
        uid=fetched.uid,
        subject=subject or NO_SUBJECT,
        from_address=_first_address(msg.get("From")),
        to_address=_first_address(msg.get("To")),
        body=extract_body(msg),
        date=_message_date(msg, fetched),
        folder=folder,
        category=Category.NOT_INTERESTED,
    )


def extract_body(msg: EmailMessage) -> str:
    """Best-effort plain text for *msg*.

    Message shape decides the source:

    ======================================  ============================
    shape                                   body
    ======================================  ============================
    has an inline ``text/plain`` part       that part
    has an inline ``text/html`` part only   html reduced to text
    attachment-only                         first part's disposition
    nothing usable                          empty string
    ======================================  ============================
    """
    plain = _first_inline_text(msg, "text/plain")
    if plain is not None:
        return plain

    html = _first_inline_text(msg, "text/html")
    if html is not None:
        return BeautifulSoup(html, "html.parser").get_text(separator=" ", strip=True)

    for part in msg.walk():
        if part.is_multipart():
            continue
        disposition = part.get("Content-Disposition")
        if disposition:
            return str(disposition)
        break
    return ""


def _first_inline_text(msg: EmailMessage, content_type: str) -> str | None:
    for part in msg.walk():
        if part.is_multipart() or part.get_content_type() != content_type:
            continue
        if part.get_content_disposition() == "attachment":
            continue
        try:
            payload = part.get_content()
        except (LookupError, ValueError):
            continue
        if isinstance(payload, str):
            return payload.strip()
    return None


def _first_address(header_value: object) -> str:
    if not header_value:
        return UNKNOWN_ADDRESS
    for name, addr in email.utils.getaddresses([str(header_value)]):
        if addr:
            return email.utils.formataddr((name, addr))
    return UNKNOWN_ADDRESS


def _message_date(msg: EmailMessage, fetched: FetchedEmail) -> datetime:
    header = msg.get("Date")
    if header:
        try:
            parsed = email.utils.parsedate_to_datetime(str(header))
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    if fetched.internal_date is not None:
        # imapclient normalises INTERNALDATE to naive local time.
        return fetched.internal_date.astimezone(UTC)
    return datetime.now(UTC)

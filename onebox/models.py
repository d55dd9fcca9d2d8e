"""Domain models shared across the ingestion pipeline, stores and API.

Python attributes are snake_case; the JSON form (Elasticsearch
documents, websocket events, API bodies, stored files) is camelCase.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    """Closed set of sales-intent labels an email can carry."""

    INTERESTED = "Interested"
    MEETING_BOOKED = "Meeting Booked"
    NOT_INTERESTED = "Not Interested"
    SPAM = "Spam"
    OUT_OF_OFFICE = "Out of Office"

    @classmethod
    def coerce(cls, value: Any) -> Category:
        """Map arbitrary classifier output onto the enum.

        Anything other than an exact label (surrounding whitespace
        aside) becomes ``NOT_INTERESTED``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip())
            except ValueError:
                pass
        return cls.NOT_INTERESTED


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Account(CamelModel):
    """A configured remote mailbox. Immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(description="Opaque unique account id")
    email: str = Field(description="Mailbox address, also the IMAP login")
    password: str = Field(description="Encrypted password token")
    host: str = Field(description="IMAP server hostname")
    port: int = Field(description="IMAP server port")
    tls: bool = Field(default=True, description="Connect over implicit TLS")

    def public(self) -> dict[str, Any]:
        """JSON form without the password."""
        return self.model_dump(mode="json", by_alias=True, exclude={"password"})


class EmailRecord(CamelModel):
    """A normalized email as stored in the document store."""

    message_id: str = Field(description="Message-ID header or accountId-uid fallback")
    account_id: str = Field(description="Owning account id")
    uid: int = Field(description="IMAP uid within the session's mailbox")
    subject: str
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    body: str = ""
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    folder: str
    category: Category = Category.NOT_INTERESTED

    def document(self) -> dict[str, Any]:
        """JSON-compatible camelCase form used on the wire."""
        return self.model_dump(mode="json", by_alias=True)


class IntegrationSettings(CamelModel):
    """User-editable notification sink configuration."""

    slack_webhook_url: str | None = None
    external_webhook_url: str | None = None


class SearchResult(BaseModel):
    total: int
    emails: list[dict[str, Any]]


class OpenResult(BaseModel):
    """Returned by a successful session open."""

    success: bool = True
    email: str

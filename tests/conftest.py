"""Shared test fixtures for the onebox test suite."""

from __future__ import annotations

from datetime import UTC, datetime
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import pytest
from httpx import ASGITransport, AsyncClient

from onebox.app import create_app
from onebox.config import ClassifierConfig, ImapConfig, NotifierConfig, Settings
from onebox.deps import (
    get_account_store,
    get_broadcaster,
    get_classifier,
    get_email_store,
    get_ingestion,
    get_settings_store,
)
from onebox.ingestion.imap_client import FetchedEmail, MailboxParams
from onebox.models import Account, Category, EmailRecord


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(
        mailbox="INBOX",
        backfill_days=7,
        timeout_seconds=5.0,
        idle_check_seconds=0.01,
        idle_renew_seconds=0.05,
        watch_retry_seconds=0.01,
        watch_alert_after=2,
    )


@pytest.fixture
def mailbox_params() -> MailboxParams:
    return MailboxParams(
        host="imap.test.com",
        port=993,
        use_ssl=True,
        username="user@test.com",
        password="secret",
    )


@pytest.fixture
def classifier_config() -> ClassifierConfig:
    return ClassifierConfig(api_key=None, timeout_seconds=1.0)


@pytest.fixture
def notifier_config() -> NotifierConfig:
    return NotifierConfig(slack_webhook_url=None, webhook_url=None)


@pytest.fixture
def account() -> Account:
    return Account(
        id="acc-1",
        email="user@test.com",
        password="encrypted-token",
        host="imap.test.com",
        port=993,
        tls=True,
    )


def make_record(**overrides) -> EmailRecord:
    defaults = {
        "message_id": "<test-001@example.com>",
        "account_id": "acc-1",
        "uid": 100,
        "subject": "Pricing question",
        "from_address": "Alice <alice@example.com>",
        "to_address": "user@test.com",
        "body": "Hi, could we schedule a demo next week?",
        "date": datetime(2025, 6, 1, 12, 0, tzinfo=UTC),
        "folder": "INBOX",
        "category": Category.NOT_INTERESTED,
    }
    defaults.update(overrides)
    return EmailRecord(**defaults)


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def build_plain_email(
    *,
    subject: str | None = "Test Subject",
    from_addr: str | None = "sender@example.com",
    to_addr: str = "recipient@example.com",
    body: str = "Hello, World!",
    message_id: str | None = "<test-001@example.com>",
    date: str | None = "Sun, 01 Jun 2025 12:00:00 +0000",
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    if subject is not None:
        msg["Subject"] = subject
    if from_addr is not None:
        msg["From"] = from_addr
    msg["To"] = to_addr
    if message_id is not None:
        msg["Message-ID"] = message_id
    if date is not None:
        msg["Date"] = date
    return msg.as_bytes()


def build_html_email(*, body_html: str = "<p>Hello <b>World</b></p>") -> bytes:
    msg = MIMEText(body_html, "html")
    msg["Subject"] = "HTML Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<html-001@example.com>"
    msg["Date"] = "Sun, 01 Jun 2025 12:00:00 +0000"
    return msg.as_bytes()


def build_multipart_email(
    *,
    body_text: str = "Plain body",
    body_html: str = "<p>HTML body</p>",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart email with text, HTML, and optional attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = "Multipart Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<multi-001@example.com>"
    msg["Date"] = "Sun, 01 Jun 2025 12:00:00 +0000"

    alt = MIMEMultipart("alternative")
    alt.attach(MIMEText(body_text, "plain"))
    alt.attach(MIMEText(body_html, "html"))
    msg.attach(alt)

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


def build_attachment_only_email(filename: str = "report.pdf") -> bytes:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = "Attachment only"
    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Message-ID"] = "<attach-001@example.com>"
    part = MIMEBase("application", "pdf")
    part.set_payload(b"%PDF-1.4 fake pdf content")
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=filename)
    msg.attach(part)
    return msg.as_bytes()


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return build_plain_email()


@pytest.fixture
def fetched_email(plain_eml_bytes: bytes) -> FetchedEmail:
    return FetchedEmail(uid=100, raw_bytes=plain_eml_bytes)


# ------------------------------------------------------------------
# HTTP app
# ------------------------------------------------------------------


def _test_settings(tmp_path, **overrides) -> Settings:
    """Create Settings with test defaults."""
    defaults = {
        "encryption_key": "test-secret",
        "data_dir": str(tmp_path),
        "log_json": False,
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def settings(tmp_path):
    return _test_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
async def client(app):
    """Async HTTP test client. Lifespan is not started; use dependency_overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def override_account_store(app, store):
    app.dependency_overrides[get_account_store] = lambda: store


def override_settings_store(app, store):
    app.dependency_overrides[get_settings_store] = lambda: store


def override_email_store(app, store):
    app.dependency_overrides[get_email_store] = lambda: store


def override_classifier(app, classifier):
    app.dependency_overrides[get_classifier] = lambda: classifier


def override_ingestion(app, ingestion):
    app.dependency_overrides[get_ingestion] = lambda: ingestion


def override_broadcaster(app, broadcaster):
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster

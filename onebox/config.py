"""Service configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
Each concern has its own prefix; the root :class:`Settings` nests them.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KNOWLEDGE_BASE = """
Product: Onebox Email Aggregator
Description: An AI-driven platform that synchronizes multiple IMAP email accounts in real-time.
It provides a searchable, AI-assisted experience for managing leads and outreach.
Features:
- Real-time multi-account sync
- AI categorization (Interested, Meeting Booked, etc.)
- Elasticsearch-powered search
- Slack & Webhook integrations

Outreach Agenda:
- Goal: Schedule a technical interview or demo.
- Meeting Link: https://cal.com/onebox-demo
- Tone: Professional, concise, and friendly.
"""


class ImapConfig(BaseSettings):
    """Per-session IMAP behaviour shared by every account."""

    model_config = SettingsConfigDict(env_prefix="IMAP_")

    mailbox: str = Field(default="INBOX", description="Mailbox to backfill and watch")
    backfill_days: int = Field(
        default=7,
        ge=0,
        description="Lookback window in days for the initial backfill",
    )
    timeout_seconds: float = Field(default=30.0, description="Socket timeout for IMAP commands")
    idle_check_seconds: float = Field(
        default=10.0,
        description="Seconds a single IDLE poll blocks before re-checking for teardown",
    )
    idle_renew_seconds: float = Field(
        default=600.0,
        description="Re-issue IDLE after this many seconds without a change",
    )
    watch_retry_seconds: float = Field(
        default=30.0,
        description="Fixed delay before the watch loop restarts after a failure",
    )
    watch_alert_after: int = Field(
        default=10,
        ge=1,
        description="Consecutive watch failures after which failures are logged as errors",
    )
    process_all_unseen: bool = Field(
        default=False,
        description="Process every unseen message per wake instead of only the newest",
    )
    max_concurrent_syncs: int = Field(
        default=0,
        ge=0,
        description="Maximum accounts connecting/backfilling at once (0 = unbounded)",
    )


class ElasticsearchConfig(BaseSettings):
    """Document store connection settings."""

    model_config = SettingsConfigDict(env_prefix="ELASTICSEARCH_")

    url: str = Field(default="http://localhost:9200", description="Elasticsearch base URL")
    index: str = Field(default="emails", description="Index holding email records")
    request_timeout: float = Field(default=30.0, description="Request timeout in seconds")


class ClassifierConfig(BaseSettings):
    """Gemini settings for classification and reply suggestions."""

    model_config = SettingsConfigDict(env_prefix="GEMINI_")

    api_key: SecretStr | None = Field(default=None, description="Gemini API key")
    model: str = Field(default="gemini-flash-latest", description="Gemini model name")
    timeout_seconds: float = Field(default=30.0, description="Per-call timeout")
    body_chars: int = Field(default=1000, description="Body characters sent for classification")
    reply_body_chars: int = Field(default=2000, description="Body characters sent for replies")
    reply_temperature: float = Field(default=0.9, description="Sampling temperature for replies")
    reply_max_output_tokens: int = Field(default=250, description="Token cap for replies")
    knowledge_base: str = Field(
        default=DEFAULT_KNOWLEDGE_BASE,
        description="Product context included in reply prompts",
    )
    fallback_reply: str = Field(
        default="Thank you for your email. I will get back to you shortly.",
        description="Reply returned when generation fails",
    )


class NotifierConfig(BaseSettings):
    """Default outbound notification sinks.

    Persisted integration settings take precedence over these values.
    """

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    slack_webhook_url: str | None = Field(default=None, description="Slack incoming webhook URL")
    webhook_url: str | None = Field(default=None, description="Generic JSON webhook URL")
    timeout_seconds: float = Field(default=10.0, description="HTTP timeout per notification")


class RetryConfig(BaseSettings):
    """Retry / backoff settings driven by Tenacity."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(default=5, description="Maximum attempts for start-up calls")
    initial_wait_seconds: float = Field(default=1.0, description="Initial backoff wait in seconds")
    max_wait_seconds: float = Field(default=30.0, description="Maximum backoff wait in seconds")
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class Settings(BaseSettings):
    """Top-level settings for the Onebox service.

    All root env vars are prefixed with ``ONEBOX_``.
    Example: ``ONEBOX_ENCRYPTION_KEY=change-me``
    """

    model_config = SettingsConfigDict(env_prefix="ONEBOX_")

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Origins allowed to call the API from a browser",
    )

    # --- Storage ------------------------------------------------------------
    data_dir: str = Field(default="data", description="Directory for accounts and settings files")
    encryption_key: SecretStr = Field(description="Secret used to encrypt stored passwords")

    # --- Components ---------------------------------------------------------
    imap: ImapConfig = Field(default_factory=ImapConfig)
    elasticsearch: ElasticsearchConfig = Field(default_factory=ElasticsearchConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

"""Outbound notifications for emails classified as Interested."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from onebox.accounts.settings_store import SettingsStore
from onebox.config import NotifierConfig
from onebox.models import EmailRecord

logger = structlog.get_logger()

INTERESTED_EVENT = "email.interested"


def slack_payload(record: EmailRecord) -> dict[str, Any]:
    return {
        "text": "New Interested Email!",
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "New Interested Email"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*From:*\n{record.from_address}"},
                    {"type": "mrkdwn", "text": f"*Subject:*\n{record.subject}"},
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Preview:*\n{record.body[:200]}..."},
            },
        ],
    }


def webhook_payload(record: EmailRecord) -> dict[str, Any]:
    return {
        "event": INTERESTED_EVENT,
        "data": {
            "messageId": record.message_id,
            "from": record.from_address,
            "to": record.to_address,
            "subject": record.subject,
            "bodyPreview": record.body[:500],
        },
    }


class Notifier:
    """Fans an Interested email out to the Slack and generic webhook sinks.

    Sink URLs come from the persisted integration settings, falling back
    to :class:`NotifierConfig`. An unconfigured sink is skipped; a
    failing sink is logged and never raises.
    """

    def __init__(
        self,
        config: NotifierConfig,
        settings_store: SettingsStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._settings_store = settings_store
        self._client = client
        self._owns_client = client is None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout_seconds))

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _sink_urls(self) -> tuple[str | None, str | None]:
        slack_url = self._config.slack_webhook_url
        webhook_url = self._config.webhook_url
        if self._settings_store is not None:
            stored = self._settings_store.get()
            slack_url = stored.slack_webhook_url or slack_url
            webhook_url = stored.external_webhook_url or webhook_url
        return slack_url, webhook_url

    async def on_interested(self, record: EmailRecord) -> None:
        slack_url, webhook_url = self._sink_urls()
        sends = []
        if slack_url:
            sends.append(self._post("slack", slack_url, slack_payload(record), record))
        else:
            logger.debug("notify_sink_unconfigured", sink="slack")
        if webhook_url:
            sends.append(self._post("webhook", webhook_url, webhook_payload(record), record))
        else:
            logger.debug("notify_sink_unconfigured", sink="webhook")
        if sends:
            await asyncio.gather(*sends)

    async def _post(
        self,
        sink: str,
        url: str,
        payload: dict[str, Any],
        record: EmailRecord,
    ) -> None:
        await self.start()
        assert self._client is not None
        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
        except Exception as exc:
            logger.warning(
                "notification_failed",
                sink=sink,
                message_id=record.message_id,
                error=str(exc),
            )
            return
        logger.info("notification_sent", sink=sink, message_id=record.message_id)

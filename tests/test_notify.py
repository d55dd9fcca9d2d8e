"""Tests for onebox.notify."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx

from onebox.accounts.settings_store import SettingsStore
from onebox.config import NotifierConfig
from onebox.notify import Notifier, slack_payload, webhook_payload
from tests.conftest import make_record

SLACK_URL = "https://hooks.slack.test/services/T000/B000/XXX"
WEBHOOK_URL = "https://hooks.example.test/onebox"


class TestPayloads:
    def test_slack_payload(self):
        record = make_record(body="x" * 300)
        payload = slack_payload(record)
        assert payload["text"] == "New Interested Email!"
        fields = payload["blocks"][1]["fields"]
        assert fields[0]["text"] == "*From:*\nAlice <alice@example.com>"
        assert fields[1]["text"] == "*Subject:*\nPricing question"
        assert payload["blocks"][2]["text"]["text"] == f"*Preview:*\n{'x' * 200}..."

    def test_webhook_payload(self):
        record = make_record(body="y" * 600)
        payload = webhook_payload(record)
        assert payload["event"] == "email.interested"
        assert payload["data"] == {
            "messageId": "<test-001@example.com>",
            "from": "Alice <alice@example.com>",
            "to": "user@test.com",
            "subject": "Pricing question",
            "bodyPreview": "y" * 500,
        }


class TestNotifier:
    @pytest.mark.asyncio
    @respx.mock
    async def test_posts_to_both_sinks(self):
        slack = respx.post(SLACK_URL).mock(return_value=httpx.Response(200, text="ok"))
        webhook = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(204))
        notifier = Notifier(NotifierConfig(slack_webhook_url=SLACK_URL, webhook_url=WEBHOOK_URL))

        await notifier.on_interested(make_record())
        await notifier.stop()

        assert slack.call_count == 1
        assert webhook.call_count == 1
        sent = json.loads(webhook.calls.last.request.content)
        assert sent["data"]["messageId"] == "<test-001@example.com>"

    @pytest.mark.asyncio
    @respx.mock
    async def test_unconfigured_sink_skipped(self):
        slack = respx.post(SLACK_URL).mock(return_value=httpx.Response(200))
        notifier = Notifier(NotifierConfig(slack_webhook_url=SLACK_URL, webhook_url=None))

        await notifier.on_interested(make_record())
        await notifier.stop()

        assert slack.call_count == 1
        assert respx.calls.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_sinks_no_requests(self, notifier_config):
        notifier = Notifier(notifier_config)

        await notifier.on_interested(make_record())
        await notifier.stop()

        assert respx.calls.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_sink_failure_is_swallowed(self):
        slack = respx.post(SLACK_URL).mock(return_value=httpx.Response(500))
        webhook = respx.post(WEBHOOK_URL).mock(side_effect=httpx.ConnectError("refused"))
        notifier = Notifier(NotifierConfig(slack_webhook_url=SLACK_URL, webhook_url=WEBHOOK_URL))

        await notifier.on_interested(make_record())
        await notifier.stop()

        assert slack.called
        assert webhook.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_stored_settings_take_precedence(self, tmp_path, notifier_config):
        stored_url = "https://hooks.slack.test/services/stored"
        store = SettingsStore(tmp_path / "settings.json")
        store.update({"slackWebhookUrl": stored_url})
        stored = respx.post(stored_url).mock(return_value=httpx.Response(200))
        notifier = Notifier(
            notifier_config.model_copy(update={"slack_webhook_url": SLACK_URL}),
            settings_store=store,
        )

        await notifier.on_interested(make_record())
        await notifier.stop()

        assert stored.call_count == 1
        assert respx.calls.call_count == 1

    @pytest.mark.asyncio
    async def test_uses_injected_client(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as client:
            notifier = Notifier(NotifierConfig(webhook_url=WEBHOOK_URL), client=client)
            await notifier.on_interested(make_record())
            await notifier.stop()
            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_malformed_sink_url_is_swallowed(self):
        requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
            notifier = Notifier(
                NotifierConfig(slack_webhook_url="http://[::1/x", webhook_url=WEBHOOK_URL),
                client=client,
            )
            await notifier.on_interested(make_record())

        assert [str(r.url) for r in requests] == [WEBHOOK_URL]

    @pytest.mark.asyncio
    async def test_sinks_are_posted_concurrently(self):
        finished: list[str] = []

        async def _handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "hooks.slack.test":
                await asyncio.sleep(0.05)
                finished.append("slack")
            else:
                finished.append("webhook")
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
            notifier = Notifier(
                NotifierConfig(slack_webhook_url=SLACK_URL, webhook_url=WEBHOOK_URL),
                client=client,
            )
            await notifier.on_interested(make_record())

        assert finished == ["webhook", "slack"]

"""Classifier: Gemini text-in/text-out calls with safe fallbacks."""

from __future__ import annotations

import asyncio

import structlog
from google import genai
from google.genai import types

from onebox.config import ClassifierConfig
from onebox.models import Category

from .prompts import classification_prompt, reply_prompt

logger = structlog.get_logger()


class Classifier:
    """Assigns a :class:`Category` to an email and drafts replies.

    Neither method raises: an unusable response, a failed call or a
    timeout yields ``Category.NOT_INTERESTED`` or the configured
    fallback reply. Without an API key no remote call is made.
    """

    def __init__(self, config: ClassifierConfig, client: genai.Client | None = None) -> None:
        self._config = config
        if client is None and config.api_key is not None:
            client = genai.Client(api_key=config.api_key.get_secret_value())
        self._client = client

    async def _generate(self, prompt: str, generation: types.GenerateContentConfig | None) -> str:
        if self._client is None:
            raise RuntimeError("Gemini API key not configured")
        response = await asyncio.wait_for(
            self._client.aio.models.generate_content(
                model=self._config.model,
                contents=prompt,
                config=generation,
            ),
            timeout=self._config.timeout_seconds,
        )
        return (response.text or "").strip()

    async def classify(self, *, subject: str, body: str, sender: str) -> Category:
        prompt = classification_prompt(
            subject=subject,
            body=body,
            sender=sender,
            body_chars=self._config.body_chars,
        )
        try:
            text = await self._generate(prompt, None)
        except Exception as exc:
            logger.warning("classification_failed", subject=subject, error=str(exc))
            return Category.NOT_INTERESTED

        category = Category.coerce(text)
        if category.value != text:
            logger.info("classification_coerced", subject=subject, response=text[:100])
        return category

    async def compose_reply(
        self,
        *,
        subject: str,
        body: str,
        sender: str,
        category: str | None = None,
    ) -> str:
        prompt = reply_prompt(
            subject=subject,
            body=body,
            sender=sender,
            category=category,
            knowledge_base=self._config.knowledge_base,
            body_chars=self._config.reply_body_chars,
        )
        generation = types.GenerateContentConfig(
            temperature=self._config.reply_temperature,
            top_k=40,
            top_p=0.95,
            max_output_tokens=self._config.reply_max_output_tokens,
        )
        try:
            text = await self._generate(prompt, generation)
        except Exception as exc:
            logger.warning("reply_generation_failed", subject=subject, error=str(exc))
            return self._config.fallback_reply
        return text or self._config.fallback_reply

"""Async Elasticsearch client wrapper."""

from __future__ import annotations

from elasticsearch import AsyncElasticsearch

from onebox.config import ElasticsearchConfig


class ESClient:
    """Wraps the async Elasticsearch client.

    Created once at startup and stored on ``app.state``.
    """

    def __init__(self, config: ElasticsearchConfig) -> None:
        self._client = AsyncElasticsearch(
            hosts=[config.url],
            request_timeout=config.request_timeout,
        )

    @property
    def client(self) -> AsyncElasticsearch:
        return self._client

    async def close(self) -> None:
        await self._client.close()

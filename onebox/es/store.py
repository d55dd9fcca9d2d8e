"""EmailStore: upsert, patch and search email records in Elasticsearch."""

from __future__ import annotations

from typing import Any

import structlog
from elasticsearch import AsyncElasticsearch, NotFoundError

from onebox.models import EmailRecord, SearchResult

from .queries import EMAIL_MAPPINGS, build_email_search

logger = structlog.get_logger()


class EmailStore:
    """Opaque document store keyed by ``messageId``.

    Write errors propagate to the caller; reads of a missing id return
    *None*.
    """

    def __init__(self, es: AsyncElasticsearch, index: str = "emails") -> None:
        self._es = es
        self._index = index

    @property
    def index(self) -> str:
        return self._index

    async def ensure_schema(self) -> bool:
        """Create the index with its mapping if needed. Returns True if created."""
        if await self._es.indices.exists(index=self._index):
            logger.info("es_index_exists", index=self._index)
            return False
        await self._es.indices.create(index=self._index, mappings=EMAIL_MAPPINGS)
        logger.info("es_index_created", index=self._index)
        return True

    async def upsert(self, record: EmailRecord) -> None:
        await self._es.index(
            index=self._index,
            id=record.message_id,
            document=record.document(),
        )
        logger.debug("email_indexed", message_id=record.message_id)

    async def patch_field(self, message_id: str, field: str, value: Any) -> None:
        """Partially update one field of an existing document."""
        await self._es.update(index=self._index, id=message_id, doc={field: value})
        logger.debug("email_patched", message_id=message_id, field=field)

    async def get(self, message_id: str) -> dict[str, Any] | None:
        try:
            doc = await self._es.get(index=self._index, id=message_id)
        except NotFoundError:
            return None
        return {"id": doc["_id"], **doc["_source"]}

    async def search(
        self,
        *,
        q: str | None = None,
        account_id: str | None = None,
        folder: str | None = None,
        category: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> SearchResult:
        body = build_email_search(
            q=q,
            account_id=account_id,
            folder=folder,
            category=category,
            offset=offset,
            limit=limit,
        )
        resp = await self._es.search(index=self._index, body=body)
        hits_data = resp.get("hits", {})
        total = hits_data.get("total", {})
        return SearchResult(
            total=total.get("value", 0) if isinstance(total, dict) else int(total or 0),
            emails=[{"id": hit["_id"], **hit["_source"]} for hit in hits_data.get("hits", [])],
        )

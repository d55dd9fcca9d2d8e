"""Elasticsearch mapping and query builders for the ``emails`` index."""

from __future__ import annotations

EMAIL_MAPPINGS: dict = {
    "properties": {
        "messageId": {"type": "keyword"},
        "accountId": {"type": "keyword"},
        "uid": {"type": "long"},
        "subject": {"type": "text"},
        "from": {"type": "keyword"},
        "to": {"type": "keyword"},
        "body": {"type": "text"},
        "date": {"type": "date"},
        "folder": {"type": "keyword"},
        "category": {"type": "keyword"},
    }
}

SEARCH_FIELDS = ["subject", "body", "from", "to"]


def build_email_search(
    *,
    q: str | None = None,
    account_id: str | None = None,
    folder: str | None = None,
    category: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> dict:
    """Build a search body for the emails index.

    Free text matches subject, body and both address fields; the other
    arguments are exact filters. With no arguments every document
    matches. Results are newest first.
    """
    must: list[dict] = []
    filters: list[dict] = []

    if q:
        must.append({
            "multi_match": {
                "query": q,
                "fields": SEARCH_FIELDS,
            }
        })

    if account_id:
        filters.append({"term": {"accountId": account_id}})

    if folder:
        filters.append({"term": {"folder": folder}})

    if category:
        filters.append({"term": {"category": category}})

    return {
        "query": {
            "bool": {
                "must": must or [{"match_all": {}}],
                "filter": filters,
            }
        },
        "sort": [{"date": {"order": "desc"}}],
        "from": offset,
        "size": limit,
    }

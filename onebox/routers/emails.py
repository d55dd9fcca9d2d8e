"""Email search, categorization and reply-suggestion endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from onebox.deps import get_classifier, get_email_store
from onebox.es.store import EmailStore
from onebox.intelligence.classifier import Classifier
from onebox.models import Category, SearchResult
from onebox.schemas import CategoryUpdate, MessageResponse, ReplySuggestion

router = APIRouter(prefix="/api/emails", tags=["emails"])


async def _get_or_404(store: EmailStore, email_id: str) -> dict:
    email = await store.get(email_id)
    if email is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email not found")
    return email


@router.get("", response_model=SearchResult)
async def search_emails(
    store: Annotated[EmailStore, Depends(get_email_store)],
    query: str | None = Query(default=None),
    account_id: str | None = Query(default=None, alias="accountId"),
    folder: str | None = Query(default=None),
    category: Category | None = Query(default=None),
    offset: int = Query(default=0, ge=0, alias="from"),
    size: int = Query(default=50, ge=1, le=500),
):
    """Full-text search over the emails index, newest first."""
    return await store.search(
        q=query,
        account_id=account_id,
        folder=folder,
        category=category.value if category else None,
        offset=offset,
        limit=size,
    )


@router.get("/{email_id}")
async def get_email(
    email_id: str,
    store: Annotated[EmailStore, Depends(get_email_store)],
):
    return await _get_or_404(store, email_id)


@router.post("/{email_id}/categorize", response_model=MessageResponse)
async def categorize_email(
    email_id: str,
    body: CategoryUpdate,
    store: Annotated[EmailStore, Depends(get_email_store)],
):
    """Manually override an email's category."""
    await _get_or_404(store, email_id)
    await store.patch_field(email_id, "category", body.category.value)
    return MessageResponse(message="Category updated successfully")


@router.post("/{email_id}/suggest-reply", response_model=ReplySuggestion)
async def suggest_reply(
    email_id: str,
    store: Annotated[EmailStore, Depends(get_email_store)],
    classifier: Annotated[Classifier, Depends(get_classifier)],
):
    email = await _get_or_404(store, email_id)
    reply = await classifier.compose_reply(
        subject=email.get("subject", ""),
        body=email.get("body", ""),
        sender=email.get("from", ""),
        category=email.get("category"),
    )
    return ReplySuggestion(reply=reply)

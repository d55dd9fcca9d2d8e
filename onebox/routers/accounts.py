"""Account management endpoints."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from onebox.accounts.store import AccountStore
from onebox.deps import get_account_store, get_ingestion
from onebox.ingestion.service import IngestionService
from onebox.schemas import (
    AccountCreate,
    AccountCreated,
    AccountList,
    ActiveAccounts,
    MessageResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.post("", response_model=AccountCreated, status_code=status.HTTP_201_CREATED)
async def create_account(
    body: AccountCreate,
    store: Annotated[AccountStore, Depends(get_account_store)],
    ingestion: Annotated[IngestionService, Depends(get_ingestion)],
):
    """Store the account and start syncing it without waiting."""
    account = store.create(
        email=body.email,
        password=body.password,
        host=body.host,
        port=body.port,
        tls=body.tls,
    )
    await ingestion.launch(account)
    return AccountCreated(message="Account added successfully", account=account.public())


@router.get("", response_model=AccountList)
async def list_accounts(store: Annotated[AccountStore, Depends(get_account_store)]):
    return AccountList(accounts=[a.public() for a in store.list_all()])


@router.get("/active", response_model=ActiveAccounts)
async def list_active_accounts(ingestion: Annotated[IngestionService, Depends(get_ingestion)]):
    """Ids of accounts with a live IMAP session."""
    return ActiveAccounts(account_ids=ingestion.active_account_ids())


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_account(
    account_id: str,
    store: Annotated[AccountStore, Depends(get_account_store)],
    ingestion: Annotated[IngestionService, Depends(get_ingestion)],
):
    """Tear down the account's session, then remove the record."""
    await ingestion.stop(account_id)
    if not store.delete(account_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return MessageResponse(message="Account deleted successfully")

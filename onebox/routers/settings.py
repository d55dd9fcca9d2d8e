"""Integration settings endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from onebox.accounts.settings_store import SettingsStore
from onebox.deps import get_settings_store
from onebox.models import IntegrationSettings
from onebox.schemas import SettingsEnvelope

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SettingsEnvelope)
async def get_integration_settings(
    store: Annotated[SettingsStore, Depends(get_settings_store)],
):
    return SettingsEnvelope(settings=store.get())


@router.post("", response_model=SettingsEnvelope)
async def update_integration_settings(
    body: IntegrationSettings,
    store: Annotated[SettingsStore, Depends(get_settings_store)],
):
    """Merge the provided keys; keys left out keep their stored value."""
    changes = body.model_dump(by_alias=True, exclude_unset=True)
    return SettingsEnvelope(settings=store.update(changes))

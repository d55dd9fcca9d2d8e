"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from onebox.models import CamelModel, Category, IntegrationSettings


class AccountCreate(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    host: str = Field(min_length=1)
    port: int = Field(gt=0, lt=65536)
    tls: bool = True


class AccountCreated(BaseModel):
    message: str
    account: dict[str, Any]


class AccountList(BaseModel):
    accounts: list[dict[str, Any]]


class ActiveAccounts(CamelModel):
    account_ids: list[str]


class MessageResponse(BaseModel):
    message: str


class CategoryUpdate(BaseModel):
    category: Category


class ReplySuggestion(BaseModel):
    reply: str


class SettingsEnvelope(BaseModel):
    settings: IntegrationSettings


class HealthResponse(CamelModel):
    status: str
    timestamp: str
    active_accounts: int

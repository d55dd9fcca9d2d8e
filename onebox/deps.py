"""FastAPI dependency-injection helpers reading services off ``app.state``."""

from __future__ import annotations

from fastapi import Request, WebSocket

from onebox.accounts.settings_store import SettingsStore
from onebox.accounts.store import AccountStore
from onebox.es.store import EmailStore
from onebox.ingestion.service import IngestionService
from onebox.intelligence.classifier import Classifier
from onebox.realtime import Broadcaster


def get_account_store(request: Request) -> AccountStore:
    return request.app.state.accounts


def get_settings_store(request: Request) -> SettingsStore:
    return request.app.state.integration_settings


def get_email_store(request: Request) -> EmailStore:
    return request.app.state.email_store


def get_classifier(request: Request) -> Classifier:
    return request.app.state.classifier


def get_ingestion(request: Request) -> IngestionService:
    return request.app.state.ingestion


def get_broadcaster(websocket: WebSocket) -> Broadcaster:
    return websocket.app.state.broadcaster

"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onebox.accounts import AccountStore, PasswordCipher, SettingsStore
from onebox.config import Settings
from onebox.deps import get_ingestion
from onebox.es.client import ESClient
from onebox.es.store import EmailStore
from onebox.ingestion import ConnectionManager, IngestionService, MessagePipeline
from onebox.intelligence.classifier import Classifier
from onebox.notify import Notifier
from onebox.realtime import Broadcaster
from onebox.retry import with_retry
from onebox.schemas import HealthResponse

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the services, ensure the index, reconnect stored accounts.

    Shutdown: stop every sync, then close outbound clients.
    """
    settings: Settings = app.state.settings
    data_dir = Path(settings.data_dir)

    cipher = PasswordCipher(settings.encryption_key.get_secret_value())
    accounts = AccountStore(data_dir / "accounts.json", cipher)
    integration_settings = SettingsStore(data_dir / "settings.json")
    app.state.accounts = accounts
    app.state.integration_settings = integration_settings

    es = ESClient(settings.elasticsearch)
    email_store = EmailStore(es.client, index=settings.elasticsearch.index)
    app.state.es = es
    app.state.email_store = email_store
    logger.info("elasticsearch_client_created", url=settings.elasticsearch.url)

    classifier = Classifier(settings.classifier)
    notifier = Notifier(settings.notifier, integration_settings)
    await notifier.start()
    broadcaster = Broadcaster()
    app.state.classifier = classifier
    app.state.broadcaster = broadcaster

    connections = ConnectionManager(settings.imap, accounts.decrypt_password)
    pipeline = MessagePipeline(email_store, classifier, notifier, broadcaster)
    ingestion = IngestionService(settings.imap, connections, pipeline, broadcaster)
    app.state.ingestion = ingestion

    @with_retry(settings.retry)
    async def ensure_schema() -> bool:
        return await email_store.ensure_schema()

    try:
        await ensure_schema()
    except Exception:
        logger.exception("es_schema_setup_failed", index=email_store.index)

    await ingestion.reconnect_all(accounts.list_all())
    logger.info("startup_complete")
    yield
    await ingestion.shutdown()
    await notifier.stop()
    await es.close()
    logger.info("shutdown_complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="Onebox Email Aggregator",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from onebox.routers.accounts import router as accounts_router
    from onebox.routers.emails import router as emails_router
    from onebox.routers.realtime import router as realtime_router
    from onebox.routers.settings import router as settings_router

    app.include_router(accounts_router)
    app.include_router(emails_router)
    app.include_router(settings_router)
    app.include_router(realtime_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health(ingestion: Annotated[IngestionService, Depends(get_ingestion)]):
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(UTC).isoformat(),
            active_accounts=len(ingestion.active_account_ids()),
        )

    return app

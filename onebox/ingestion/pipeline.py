"""MessagePipeline: parse, persist, classify, notify and broadcast one email."""

from __future__ import annotations

import structlog

from onebox.es.store import EmailStore
from onebox.intelligence.classifier import Classifier
from onebox.models import Category, EmailRecord
from onebox.notify import Notifier
from onebox.realtime import NEW_EMAIL, Broadcaster

from .imap_client import FetchedEmail
from .parser import parse_email

logger = structlog.get_logger()


class MessagePipeline:
    """Turns one fetched message into an indexed, classified record.

    Steps run in order and each is isolated: a failure is logged and
    never undoes earlier steps. Parsing and persisting are required
    (their failure ends processing and returns *None*); classification,
    the category patch, notification and broadcast are best-effort.
    """

    def __init__(
        self,
        store: EmailStore,
        classifier: Classifier,
        notifier: Notifier,
        broadcaster: Broadcaster,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._notifier = notifier
        self._broadcaster = broadcaster

    async def process(
        self,
        fetched: FetchedEmail,
        account_id: str,
        folder: str,
    ) -> EmailRecord | None:
        log = logger.bind(account_id=account_id, uid=fetched.uid, folder=folder)

        try:
            record = parse_email(fetched, account_id, folder)
        except Exception:
            log.exception("email_parse_failed")
            return None
        log = log.bind(message_id=record.message_id)
        log.info("email_parsed", subject=record.subject)

        # The raw record must exist before the classifier is called.
        try:
            await self._store.upsert(record)
        except Exception:
            log.exception("email_persist_failed")
            return None

        try:
            category = await self._classifier.classify(
                subject=record.subject,
                body=record.body,
                sender=record.from_address,
            )
        except Exception:
            log.exception("email_classify_failed")
            category = Category.NOT_INTERESTED
        record = record.model_copy(update={"category": category})
        log.info("email_categorized", category=category.value)

        try:
            await self._store.patch_field(record.message_id, "category", category.value)
        except Exception:
            log.exception("email_category_patch_failed", category=category.value)

        if category is Category.INTERESTED:
            try:
                await self._notifier.on_interested(record)
            except Exception:
                log.exception("email_notify_failed")

        try:
            await self._broadcaster.emit(NEW_EMAIL, record.document())
        except Exception:
            log.exception("email_broadcast_failed")

        return record

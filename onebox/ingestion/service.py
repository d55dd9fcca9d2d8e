"""IngestionService: per-account connect, backfill and live-watch lifecycle."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import structlog
from tenacity import RetryCallState

from onebox.config import ImapConfig
from onebox.models import Account
from onebox.realtime import SYNC_PROGRESS, Broadcaster
from onebox.retry import retry_forever

from .connections import ConnectionManager
from .imap_client import AsyncImapClient
from .pipeline import MessagePipeline

logger = structlog.get_logger()


class IngestionService:
    """Runs one independent sync task per account.

    Each task opens the account's session, backfills the lookback
    window, then stays in the live-watch loop until the session is
    closed. Tasks are launched without waiting for each other.
    """

    def __init__(
        self,
        config: ImapConfig,
        connections: ConnectionManager,
        pipeline: MessagePipeline,
        broadcaster: Broadcaster,
    ) -> None:
        self._config = config
        self._connections = connections
        self._pipeline = pipeline
        self._broadcaster = broadcaster
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._limiter: asyncio.Semaphore | None = (
            asyncio.Semaphore(config.max_concurrent_syncs) if config.max_concurrent_syncs else None
        )

    def active_account_ids(self) -> list[str]:
        return self._connections.active_account_ids()

    # ------------------------------------------------------------------
    # Task registry
    # ------------------------------------------------------------------

    async def launch(self, account: Account) -> asyncio.Task[None]:
        """Start syncing *account* in the background and return the task.

        A sync already running for the account is stopped first, so its
        worker thread has let go of the old connection before a new one opens.
        """
        if account.id in self._tasks:
            await self.stop(account.id)

        task = asyncio.create_task(self._run(account), name=f"sync-{account.id}")
        self._tasks[account.id] = task
        task.add_done_callback(lambda t: self._forget(account.id, t))
        return task

    def _forget(self, account_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(account_id) is task:
            del self._tasks[account_id]

    async def _run(self, account: Account) -> None:
        try:
            await self.sync_account(account)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("account_sync_failed", account_id=account.id, email=account.email)

    async def reconnect_all(self, accounts: Iterable[Account]) -> list[asyncio.Task[None]]:
        """Start-up sweep: launch a sync for every stored account."""
        tasks = [await self.launch(account) for account in accounts]
        logger.info("reconnect_sweep_started", accounts=len(tasks))
        return tasks

    async def stop(self, account_id: str) -> None:
        """Close the account's session, then cancel its sync task."""
        try:
            await self._connections.close(account_id)
        except Exception:
            logger.exception("session_close_failed", account_id=account_id)
        task = self._tasks.pop(account_id, None)
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("account_sync_stopped", account_id=account_id)

    async def shutdown(self) -> None:
        for account_id in list(self._tasks):
            await self.stop(account_id)
        await self._connections.close_all()

    # ------------------------------------------------------------------
    # Sync sequence
    # ------------------------------------------------------------------

    async def sync_account(self, account: Account) -> None:
        """Open, backfill and watch. Connection errors propagate."""
        async with self._limiter or contextlib.nullcontext():
            await self._connections.open(account)
            session = self._connections.get(account.id)
            assert session is not None
            await self.backfill(account.id, session)
        await self.watch(account.id, session)

    async def backfill(self, account_id: str, session: AsyncImapClient) -> int:
        """Process every message inside the lookback window, oldest listing first.

        Emits a ``sync-progress`` event after each message and returns
        the number of messages walked.
        """
        folder = self._config.mailbox
        since = datetime.now(UTC) - timedelta(days=self._config.backfill_days)
        processed = 0

        async with session.mailbox(folder):
            uids = await session.search_since(since)
            logger.info("backfill_started", account_id=account_id, messages=len(uids))

            for uid in uids:
                if session.closed:
                    logger.info("backfill_interrupted", account_id=account_id, processed=processed)
                    break
                try:
                    fetched = await session.fetch(uid)
                    if fetched is not None:
                        await self._pipeline.process(fetched, account_id, folder)
                except Exception:
                    logger.exception("backfill_message_failed", account_id=account_id, uid=uid)
                processed += 1
                await self._broadcaster.emit(
                    SYNC_PROGRESS, {"accountId": account_id, "processed": processed}
                )

        logger.info("backfill_complete", account_id=account_id, processed=processed)
        return processed

    async def watch(self, account_id: str, session: AsyncImapClient) -> None:
        """Live-watch *session* until it is closed.

        Any failure restarts the loop after ``watch_retry_seconds``,
        indefinitely.
        """
        async for attempt in retry_forever(
            self._config.watch_retry_seconds,
            before_sleep=self._watch_failure_logger(account_id),
        ):
            with attempt:
                await self._watch_once(account_id, session)
        logger.info("watch_stopped", account_id=account_id)

    def _watch_failure_logger(self, account_id: str):
        threshold = self._config.watch_alert_after

        def _log(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            log = logger.error if state.attempt_number >= threshold else logger.warning
            log(
                "watch_loop_failed",
                account_id=account_id,
                consecutive_failures=state.attempt_number,
                retry_in_seconds=self._config.watch_retry_seconds,
                error=str(exc),
            )

        return _log

    async def _watch_once(self, account_id: str, session: AsyncImapClient) -> None:
        if session.closed:
            return
        if not await session.is_connected():
            await session.reconnect()
            if session.closed:
                return

        folder = self._config.mailbox
        async with session.mailbox(folder):
            logger.info("watch_started", account_id=account_id, folder=folder)
            while not session.closed:
                if not await session.wait_for_change():
                    continue
                logger.info("new_email_detected", account_id=account_id)
                await self._process_unseen(account_id, session, folder)

    async def _process_unseen(self, account_id: str, session: AsyncImapClient, folder: str) -> None:
        try:
            unseen = await session.search_unseen()
            if not unseen:
                return
            # By default only the newest unseen message is processed per
            # wake, so a burst arriving between wakes is under-processed.
            targets = sorted(unseen) if self._config.process_all_unseen else [max(unseen)]
            for uid in targets:
                fetched = await session.fetch(uid)
                if fetched is not None:
                    await self._pipeline.process(fetched, account_id, folder)
        except Exception:
            logger.exception("watch_message_failed", account_id=account_id)

"""Async IMAP session wrapping imapclient with asyncio.to_thread."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime

import structlog
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError
from pydantic import BaseModel, SecretStr

from onebox.config import ImapConfig

logger = structlog.get_logger()

# BODY.PEEK keeps the \Seen flag untouched; the response key drops ".PEEK".
_FETCH_ITEMS = ["BODY.PEEK[]", "INTERNALDATE"]
_BODY_KEY = b"BODY[]"


class MailboxParams(BaseModel):
    """Connection parameters for one account's mailbox."""

    host: str
    port: int = 993
    use_ssl: bool = True
    username: str
    password: SecretStr


@dataclass
class FetchedEmail:
    """Raw email data fetched from IMAP."""

    uid: int
    raw_bytes: bytes
    internal_date: datetime | None = None


class AsyncImapClient:
    """One authenticated IMAP session for one account.

    All blocking ``imapclient`` calls run through ``asyncio.to_thread()``.
    Mailbox access is serialized by :meth:`mailbox`, which holds the
    session's single mailbox lock; the protocol helpers below assume the
    caller holds it.
    """

    def __init__(self, params: MailboxParams, config: ImapConfig) -> None:
        self._params = params
        self._config = config
        self._conn: IMAPClient | None = None
        self._lock = asyncio.Lock()
        self._closing = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closing.is_set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect and log in. Raises on network or authentication failure."""
        self._conn = await asyncio.to_thread(self._connect_sync)
        logger.info(
            "imap_connected",
            host=self._params.host,
            username=self._params.username,
        )

    def _connect_sync(self) -> IMAPClient:
        conn = IMAPClient(
            self._params.host,
            port=self._params.port,
            ssl=self._params.use_ssl,
            timeout=self._config.timeout_seconds,
        )
        try:
            conn.login(self._params.username, self._params.password.get_secret_value())
        except Exception:
            conn.shutdown()
            raise
        return conn

    async def logout(self) -> None:
        """Stop any IDLE wait, then log out. Safe to call more than once.

        A logged-out session stays closed; it is never reconnected.
        """
        self._closing.set()
        async with self._lock:
            conn, self._conn = self._conn, None
            if conn is None:
                return
            await asyncio.to_thread(self._logout_sync, conn)
        logger.info("imap_disconnected", username=self._params.username)

    @staticmethod
    def _logout_sync(conn: IMAPClient) -> None:
        try:
            conn.logout()
        except (IMAPClientError, OSError):
            conn.shutdown()

    async def reconnect(self) -> None:
        """Replace a dead connection with a fresh one. No-op once closed."""
        async with self._lock:
            if self.closed:
                return
            stale, self._conn = self._conn, None
            if stale is not None:
                await asyncio.to_thread(self._logout_sync, stale)
            self._conn = await asyncio.to_thread(self._connect_sync)
        logger.info("imap_reconnected", host=self._params.host, username=self._params.username)

    async def is_connected(self) -> bool:
        """Check connection liveness with a NOOP command."""
        async with self._lock:
            if self._conn is None or self.closed:
                return False
            try:
                await asyncio.to_thread(self._conn.noop)
                return True
            except (IMAPClientError, OSError):
                return False

    # ------------------------------------------------------------------
    # Mailbox lock
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def mailbox(self, folder: str) -> AsyncIterator[AsyncImapClient]:
        """Hold the session's mailbox lock with *folder* selected."""
        async with self._lock:
            conn = self._require_conn()
            await asyncio.to_thread(conn.select_folder, folder)
            logger.debug("mailbox_locked", folder=folder, username=self._params.username)
            try:
                yield self
            finally:
                logger.debug("mailbox_released", folder=folder, username=self._params.username)

    def _require_conn(self) -> IMAPClient:
        if self._conn is None:
            raise ConnectionError(f"IMAP session for {self._params.username} is not connected")
        return self._conn

    # ------------------------------------------------------------------
    # Message retrieval (caller holds the mailbox lock)
    # ------------------------------------------------------------------

    async def search_since(self, since: datetime) -> list[int]:
        """UIDs of messages on or after *since*, in server order.

        IMAP date search is day-granular (not timestamp-granular).
        """
        conn = self._require_conn()
        uids = await asyncio.to_thread(conn.search, ["SINCE", since.date()])
        return list(uids)

    async def search_unseen(self) -> list[int]:
        conn = self._require_conn()
        uids = await asyncio.to_thread(conn.search, ["UNSEEN"])
        return list(uids)

    async def fetch(self, uid: int) -> FetchedEmail | None:
        """Fetch the full source of one message, or *None* if it vanished."""
        conn = self._require_conn()
        response = await asyncio.to_thread(conn.fetch, [uid], _FETCH_ITEMS)
        data = response.get(uid)
        if not data or _BODY_KEY not in data:
            logger.warning("imap_fetch_empty", uid=uid, username=self._params.username)
            return None
        return FetchedEmail(
            uid=uid,
            raw_bytes=data[_BODY_KEY],
            internal_date=data.get(b"INTERNALDATE"),
        )

    async def wait_for_change(self) -> list[int]:
        """Block in IDLE until the mailbox reports new message existence.

        Returns the EXISTS counts received, or an empty list when IDLE
        was renewed or the session is closing.
        """
        conn = self._require_conn()
        return await asyncio.to_thread(self._idle_sync, conn)

    def _idle_sync(self, conn: IMAPClient) -> list[int]:
        conn.idle()
        try:
            started = time.monotonic()
            while not self._closing.is_set():
                responses = conn.idle_check(timeout=self._config.idle_check_seconds)
                exists = [r[0] for r in responses if len(r) > 1 and r[1] == b"EXISTS"]
                if exists:
                    return exists
                if time.monotonic() - started >= self._config.idle_renew_seconds:
                    break
            return []
        finally:
            conn.idle_done()

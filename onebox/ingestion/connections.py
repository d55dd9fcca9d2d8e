"""ConnectionManager: the single registry of live IMAP sessions."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from pydantic import SecretStr

from onebox.config import ImapConfig
from onebox.models import Account, OpenResult

from .imap_client import AsyncImapClient, MailboxParams

logger = structlog.get_logger()

SessionFactory = Callable[[MailboxParams, ImapConfig], AsyncImapClient]
PasswordDecrypter = Callable[[Account], SecretStr]


class ConnectionManager:
    """Maps account id to its one active :class:`AsyncImapClient`.

    Only this class mutates the map; it is the source of truth for
    which accounts are currently syncing.
    """

    def __init__(
        self,
        config: ImapConfig,
        decrypt_password: PasswordDecrypter,
        session_factory: SessionFactory = AsyncImapClient,
    ) -> None:
        self._config = config
        self._decrypt_password = decrypt_password
        self._session_factory = session_factory
        self._sessions: dict[str, AsyncImapClient] = {}

    async def open(self, account: Account) -> OpenResult:
        """Open and register a session for *account*.

        An existing session for the same id is logged out first.
        Connection and authentication errors propagate.
        """
        if account.id in self._sessions:
            try:
                await self.close(account.id)
            except Exception as exc:
                logger.warning("stale_session_logout_failed", account_id=account.id, error=str(exc))

        params = MailboxParams(
            host=account.host,
            port=account.port,
            use_ssl=account.tls,
            username=account.email,
            password=self._decrypt_password(account),
        )
        session = self._session_factory(params, self._config)
        await session.connect()

        self._sessions[account.id] = session
        logger.info("session_opened", account_id=account.id, email=account.email)
        return OpenResult(email=account.email)

    async def close(self, account_id: str) -> None:
        session = self._sessions.pop(account_id, None)
        if session is None:
            return
        try:
            await session.logout()
        finally:
            logger.info("session_closed", account_id=account_id)

    def get(self, account_id: str) -> AsyncImapClient | None:
        return self._sessions.get(account_id)

    def active_account_ids(self) -> list[str]:
        return list(self._sessions)

    async def close_all(self) -> None:
        for account_id in self.active_account_ids():
            try:
                await self.close(account_id)
            except Exception:
                logger.exception("session_close_failed", account_id=account_id)

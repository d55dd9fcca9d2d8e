"""JSON-file account store.

Every call reads or rewrites the whole file, so concurrent writers race
and the last write wins.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import structlog
from pydantic import SecretStr

from onebox.models import Account

from .crypto import PasswordCipher

logger = structlog.get_logger()


class AccountStore:
    """Persists :class:`Account` records with encrypted passwords."""

    def __init__(self, path: Path | str, cipher: PasswordCipher) -> None:
        self._path = Path(path)
        self._cipher = cipher

    # ------------------------------------------------------------------
    # File round-trip
    # ------------------------------------------------------------------

    def _read(self) -> list[Account]:
        if not self._path.exists():
            return []
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        return [Account.model_validate(item) for item in raw]

    def _write(self, accounts: list[Account]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [a.model_dump(mode="json", by_alias=True) for a in accounts]
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(
        self,
        *,
        email: str,
        password: str,
        host: str,
        port: int,
        tls: bool = True,
    ) -> Account:
        """Store a new account, encrypting *password*, and return it with its id."""
        account = Account(
            id=str(uuid.uuid4()),
            email=email,
            password=self._cipher.encrypt(password),
            host=host,
            port=port,
            tls=tls,
        )
        accounts = self._read()
        accounts.append(account)
        self._write(accounts)
        logger.info("account_created", account_id=account.id, email=email)
        return account

    def list_all(self) -> list[Account]:
        return self._read()

    def get(self, account_id: str) -> Account | None:
        return next((a for a in self._read() if a.id == account_id), None)

    def delete(self, account_id: str) -> bool:
        accounts = self._read()
        remaining = [a for a in accounts if a.id != account_id]
        if len(remaining) == len(accounts):
            return False
        self._write(remaining)
        logger.info("account_deleted", account_id=account_id)
        return True

    def decrypt_password(self, account: Account) -> SecretStr:
        return SecretStr(self._cipher.decrypt(account.password))

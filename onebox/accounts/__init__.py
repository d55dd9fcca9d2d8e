"""Account credential and integration settings persistence."""

from .crypto import PasswordCipher
from .settings_store import SettingsStore
from .store import AccountStore

__all__ = [
    "AccountStore",
    "PasswordCipher",
    "SettingsStore",
]

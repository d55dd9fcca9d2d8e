"""JSON-file store for integration settings (notification sink URLs)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from onebox.models import IntegrationSettings

logger = structlog.get_logger()


class SettingsStore:
    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def get(self) -> IntegrationSettings:
        """Return stored settings; an absent or corrupt file yields empty settings."""
        if not self._path.exists():
            return IntegrationSettings()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return IntegrationSettings.model_validate(raw)
        except (json.JSONDecodeError, ValidationError):
            logger.exception("settings_file_unreadable", path=str(self._path))
            return IntegrationSettings()

    def update(self, changes: dict[str, Any]) -> IntegrationSettings:
        """Merge *changes* over the stored settings.

        Only keys present in *changes* are touched; an explicit ``None``
        clears that key.
        """
        current = self.get().model_dump(by_alias=True)
        incoming = IntegrationSettings.model_validate(changes).model_dump(
            by_alias=True, exclude_unset=True
        )
        merged = IntegrationSettings.model_validate({**current, **incoming})

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(merged.model_dump(by_alias=True, exclude_none=True), indent=2),
            encoding="utf-8",
        )
        logger.info("settings_updated", keys=sorted(incoming))
        return merged

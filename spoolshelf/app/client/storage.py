"""Durable key-value storage for client preferences and the saved passcode."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

PASSCODE_STORAGE_KEY = "filament_passcode"
HIDE_OUT_OF_STOCK_STORAGE_KEY = "filament_hide_out_of_stock"


class MemoryStorage:
    """In-process storage; nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage(MemoryStorage):
    """JSON file backed storage, rewritten on every change.

    The file holds the edit passcode, so it is kept readable by the owner only.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable client storage %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Created owner-only; chmod also tightens a file left behind with looser bits
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(self._items, f, indent=2, sort_keys=True)

    def set_item(self, key: str, value: str) -> None:
        super().set_item(key, value)
        self._write()

    def remove_item(self, key: str) -> None:
        super().remove_item(key)
        self._write()

"""File-backed key/value storage, one JSON document per key."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from macromate.services.local_store import KeyValueStorage

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


@dataclass
class FileKeyValueStorage(KeyValueStorage):
    """Stores each key as ``<root>/<key>.json``."""

    root: Path

    def get_item(self, key: str) -> str | None:
        """Return the file contents for a key, if the file exists."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """Write a key atomically so readers never see a partial file."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        """Delete the file for a key."""
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

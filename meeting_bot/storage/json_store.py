"""Flat-file JSON persistence with atomic writes."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict

import structlog

from ..exceptions import StorageError

logger = structlog.get_logger()


class JsonFileStore:
    """A single JSON object stored in one file.

    read() never fails: a missing file is an empty object and a corrupt
    one is logged and treated as empty.  read_for_update() raises
    StorageError for a corrupt file instead.  Writes go to a temp file that
    is then renamed over the target, so readers never see a partial
    document.  ``lock`` serialises read-modify-write cycles within the
    process.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock = asyncio.Lock()

    def _read_sync(self, strict: bool = False) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            # ValueError covers both bad JSON and bytes that are not UTF-8.
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            if strict:
                raise StorageError(f"Failed to read {self.path}: {e}") from e
            logger.error("Error reading JSON store", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            if strict:
                raise StorageError(f"{self.path} does not hold a JSON object")
            logger.error("JSON store does not hold an object", path=str(self.path))
            return {}
        return data

    def _write_sync(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    async def read(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._read_sync)

    async def read_for_update(self) -> Dict[str, Any]:
        """Read before a write, raising StorageError on an unreadable file.

        Rewriting a corrupt file from an empty object would discard its
        contents, so read-modify-write callers use this instead of read().
        """
        return await asyncio.to_thread(self._read_sync, True)

    async def write(self, data: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_sync, data)

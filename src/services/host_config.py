from __future__ import annotations

import abc
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class HostConfigSlot(abc.ABC):
    """String key/value configuration owned by the host application."""

    @abc.abstractmethod
    def get_string(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abc.abstractmethod
    def set_string(self, key: str, value: str) -> None:
        """Store a value under key, replacing any previous one."""


class JsonFileConfigSlot(HostConfigSlot):
    """Host config slot persisted as a flat JSON object on disk."""

    def __init__(self, storage_path: Path | str) -> None:
        self._storage_path = Path(storage_path)

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def get_string(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        values = self._read_all()
        values[key] = value
        self._write_all(values)

    def _read_all(self) -> dict[str, object]:
        if not self._storage_path.exists():
            return {}
        try:
            payload = json.loads(self._storage_path.read_text(encoding="utf-8"))
        except OSError:
            logger.warning(
                "Host configuration unreadable, starting empty",
                extra={"path": str(self._storage_path)},
                exc_info=True,
            )
            return {}
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            self._preserve_corrupt_file()
            return {}
        return payload

    def _preserve_corrupt_file(self) -> None:
        # The next write replaces the file, keep what was there for recovery
        backup_path = self._storage_path.with_name(self._storage_path.name + ".corrupt")
        shutil.copyfile(self._storage_path, backup_path)
        logger.warning(
            "Host configuration corrupt, starting empty",
            extra={"path": str(self._storage_path), "backup": str(backup_path)},
        )

    def _write_all(self, values: dict[str, object]) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_name(self._storage_path.name + ".tmp")
        tmp_path.write_text(json.dumps(values, ensure_ascii=True, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._storage_path)


__all__ = ["HostConfigSlot", "JsonFileConfigSlot"]

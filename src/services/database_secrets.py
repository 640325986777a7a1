from __future__ import annotations

import logging
from typing import Optional

from src.services.sync_settings import HostDatabase

REFRESH_TOKEN_KEY = "KeeOneDriveSyncRefreshToken"

logger = logging.getLogger(__name__)


class DatabaseSecretStore:
    """Keeps the refresh token inside the open database's custom data.

    The token then travels encrypted with the database itself. It can only be
    read or written while the database is open in the host.
    """

    def __init__(self, key: str = REFRESH_TOKEN_KEY) -> None:
        self._key = key

    def write_secret(self, database: HostDatabase, token: str) -> None:
        if database.custom_data.get(self._key) == token:
            return
        database.custom_data[self._key] = token
        database.modified = True
        logger.info("Refresh token stored in database", extra={"key": self._key})

    def read_secret(self, database: HostDatabase) -> Optional[str]:
        return database.custom_data.get(self._key) or None


__all__ = ["DatabaseSecretStore", "REFRESH_TOKEN_KEY"]

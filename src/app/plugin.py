from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from src.core.errors import UserFacingError
from src.lib.hashing import sha1_file
from src.lib.paths import normalize_database_path
from src.services.credential_vault import CredentialVault, KeyringCredentialVault
from src.services.database_secrets import DatabaseSecretStore
from src.services.host_config import HostConfigSlot, JsonFileConfigSlot
from src.services.sync_config_store import LoadResult, SyncConfigStore
from src.services.sync_settings import HostDatabase, SyncSettings

Notifier = Callable[[UserFacingError], None]


def _show_dialog(error: UserFacingError) -> None:
    from src.ui import message_dialogs

    message_dialogs.show_user_error(error)


class SyncPlugin:
    """Owns the sync configuration store between plugin activation and deactivation.

    Database paths coming from the host are normalized before they are used as
    settings keys, so the same file opened as ``C:\\DB.kdbx`` and ``c:\\db.kdbx``
    shares one entry.
    """

    def __init__(
        self,
        *,
        config_slot_factory: Callable[[], HostConfigSlot],
        vault_factory: Callable[[], CredentialVault] = KeyringCredentialVault,
        notifier: Notifier | None = None,
    ) -> None:
        self._config_slot_factory = config_slot_factory
        self._vault_factory = vault_factory
        self._notifier = notifier or _show_dialog
        self._logger = logging.getLogger(__name__)
        self._store: SyncConfigStore | None = None

    @classmethod
    def with_defaults(cls, notifier: Notifier | None = None) -> "SyncPlugin":
        from src.lib.paths import plugin_config_path
        from src.logging.config import configure_logging

        configure_logging()
        return cls(
            config_slot_factory=lambda: JsonFileConfigSlot(plugin_config_path()),
            notifier=notifier,
        )

    @property
    def active(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> SyncConfigStore:
        if self._store is None:
            raise RuntimeError("Sync plugin is not active")
        return self._store

    def activate(self) -> LoadResult:
        if self._store is not None:
            return LoadResult(loaded=len(self._store))
        store = SyncConfigStore(
            config_slot=self._config_slot_factory(),
            vault=self._vault_factory(),
            database_secrets=DatabaseSecretStore(),
        )
        result = store.load()
        self._store = store
        if result.error is not None:
            self._notifier(result.error)
        self._logger.info("Sync plugin activated", extra={"databases": result.loaded})
        return result

    def deactivate(self) -> None:
        store = self._store
        if store is None:
            return
        try:
            store.save()
        finally:
            store.clear()
            self._store = None
        self._logger.info("Sync plugin deactivated")

    def database_opened(self, local_path: str, database: HostDatabase) -> SyncSettings:
        return self.store.attach_database(normalize_database_path(local_path), database)

    def database_closing(self, local_path: str) -> None:
        store = self.store
        store.save()
        store.detach_database(normalize_database_path(local_path))

    def database_synced(self, local_path: str, at: datetime | None = None) -> SyncSettings:
        """Record a completed sync: fingerprint the local file and flush the settings."""
        settings = self.store.get(normalize_database_path(local_path))
        settings.mark_synced(sha1_file(local_path), at=at)
        self.store.save()
        self._logger.info("Database synced", extra={"path": local_path, "hash": settings.local_file_hash})
        return settings

    def forget_database(self, local_path: str) -> None:
        self.store.delete(normalize_database_path(local_path))

    def settings_for(self, local_path: str) -> Optional[SyncSettings]:
        store = self.store
        key = normalize_database_path(local_path)
        return store.get(key) if key in store else None


__all__ = ["SyncPlugin", "Notifier"]

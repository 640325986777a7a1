from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from src.core.errors import ConfigurationLoadError
from src.services.credential_vault import CredentialVault
from src.services.database_secrets import DatabaseSecretStore
from src.services.host_config import HostConfigSlot
from src.services.sync_settings import HostDatabase, RefreshTokenStorage, SyncSettings

CONFIGURATION_KEY = "KeeOneDrive"


@dataclass(slots=True)
class LoadResult:
    loaded: int = 0
    error: Optional[ConfigurationLoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncConfigStore:
    """Sync settings for every known local database, keyed by local path.

    The persisted document lives in a single host configuration slot. Refresh
    tokens are only written into that document for DISK storage; the other
    storage targets receive the token on save and the document keeps a
    redacted record.
    """

    def __init__(
        self,
        *,
        config_slot: HostConfigSlot,
        vault: CredentialVault,
        database_secrets: DatabaseSecretStore | None = None,
        configuration_key: str = CONFIGURATION_KEY,
    ) -> None:
        self._config_slot = config_slot
        self._vault = vault
        self._database_secrets = database_secrets or DatabaseSecretStore()
        self._configuration_key = configuration_key
        self._entries: dict[str, SyncSettings] = {}
        self._logger = logging.getLogger(__name__)

    def __contains__(self, local_path: object) -> bool:
        return local_path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def paths(self) -> list[str]:
        return list(self._entries)

    def items(self) -> Iterator[tuple[str, SyncSettings]]:
        return iter(list(self._entries.items()))

    def get(self, local_path: str) -> SyncSettings:
        settings = self._entries.get(local_path)
        if settings is None:
            settings = SyncSettings()
            self._entries[local_path] = settings
        return settings

    def clone(self, settings: SyncSettings) -> SyncSettings:
        return settings.clone()

    def clear(self) -> None:
        self._entries.clear()

    def load(self) -> LoadResult:
        """Read the persisted document into memory.

        A corrupt document is not fatal: all settings are dropped, the empty
        state is written back and the failure is returned in the result.
        """
        value = self._config_slot.get_string(self._configuration_key)
        if not value:
            self._logger.info("No stored sync configuration", extra={"operation": "load"})
            return LoadResult(loaded=len(self._entries))

        error: Optional[ConfigurationLoadError] = None
        try:
            self._entries = self._parse_document(value)
        except (ValueError, TypeError) as exc:
            self._logger.error(
                "Stored sync configuration could not be parsed, resetting",
                extra={"operation": "load", "reason": str(exc)},
            )
            error = ConfigurationLoadError(
                "Unable to parse the OneDrive sync plugin configuration. All stored sync settings have been reset.",
                title="KeePass OneDriveSync Plugin",
                remediation="Configure synchronization again for your databases. If this happens again, please report it.",
            )
            error.__cause__ = exc
            self._entries = {}
            self.save()

        for local_path, settings in self._entries.items():
            if settings.token_storage is RefreshTokenStorage.CREDENTIAL_VAULT:
                settings.refresh_token = self._vault.get(local_path)

        self._logger.info(
            "Sync configuration loaded",
            extra={"operation": "load", "databases": len(self._entries)},
        )
        return LoadResult(loaded=len(self._entries), error=error)

    def save(self) -> None:
        document: dict[str, dict[str, Any]] = {}
        for local_path, settings in list(self._entries.items()):
            document[local_path] = self._persist_entry(local_path, settings)

        self._config_slot.set_string(self._configuration_key, json.dumps(document, ensure_ascii=True))
        self._logger.info(
            "Sync configuration saved",
            extra={"operation": "save", "databases": len(document)},
        )

    def delete(self, local_path: str) -> None:
        settings = self._entries.get(local_path)
        if settings is None:
            return

        storage = settings.token_storage
        if storage is RefreshTokenStorage.CREDENTIAL_VAULT:
            self._vault.delete(local_path)
        elif storage is RefreshTokenStorage.HOST_DATABASE:
            # The token can only be removed while the database is open and writable, so it stays there
            self._logger.info(
                "Refresh token left in database",
                extra={"operation": "delete", "path": local_path},
            )
        elif storage is RefreshTokenStorage.DISK or storage is None:
            pass
        else:
            raise ValueError(f"Unsupported refresh token storage: {storage!r}")

        del self._entries[local_path]
        self._logger.info("Sync configuration removed", extra={"operation": "delete", "path": local_path})
        self.save()

    def attach_database(self, local_path: str, database: HostDatabase) -> SyncSettings:
        """Bind the open host database to its settings for the rest of the session."""
        settings = self.get(local_path)
        settings.host_database = database
        if settings.token_storage is RefreshTokenStorage.HOST_DATABASE and not settings.refresh_token:
            settings.refresh_token = self._database_secrets.read_secret(database)
        return settings

    def detach_database(self, local_path: str) -> None:
        settings = self._entries.get(local_path)
        if settings is not None:
            settings.host_database = None

    # Internal helpers -------------------------------------------------
    def _persist_entry(self, local_path: str, settings: SyncSettings) -> dict[str, Any]:
        storage = settings.token_storage
        if storage is RefreshTokenStorage.DISK:
            return settings.as_payload()

        if storage is RefreshTokenStorage.HOST_DATABASE:
            if settings.host_database is not None and settings.refresh_token:
                self._database_secrets.write_secret(settings.host_database, settings.refresh_token)
            return settings.redacted().as_payload()

        if storage is RefreshTokenStorage.CREDENTIAL_VAULT:
            if settings.refresh_token:
                self._vault.set(local_path, settings.refresh_token)
            else:
                self._vault.delete(local_path)
            return settings.redacted().as_payload()

        if storage is None:
            # No storage chosen yet: keep the settings, never write the secret anywhere
            return settings.redacted().as_payload()

        raise ValueError(f"Unsupported refresh token storage: {storage!r}")

    @staticmethod
    def _parse_document(value: str) -> dict[str, SyncSettings]:
        payload = json.loads(value)
        if not isinstance(payload, dict):
            raise TypeError("sync configuration must be a JSON object")
        return {str(path): SyncSettings.from_payload(record) for path, record in payload.items()}


__all__ = ["SyncConfigStore", "LoadResult", "CONFIGURATION_KEY"]

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


class HostDatabase(Protocol):
    """Open database object as exposed by the host."""

    custom_data: dict[str, str]
    modified: bool


class RefreshTokenStorage(enum.Enum):
    DISK = "Disk"
    HOST_DATABASE = "HostDatabase"
    CREDENTIAL_VAULT = "CredentialVault"


@dataclass(frozen=True, slots=True)
class RedactedSyncSettings:
    """Persistable view of a database's sync settings without the refresh token."""

    token_storage: Optional[RefreshTokenStorage] = None
    cloud_service_name: Optional[str] = None
    remote_relative_path: Optional[str] = None
    sync_disabled: bool = False
    local_file_hash: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None

    def as_payload(self) -> dict[str, Any]:
        return {
            "RefreshTokenStorage": self.token_storage.value if self.token_storage else None,
            "OneDriveName": self.cloud_service_name,
            "RemoteDatabasePath": self.remote_relative_path,
            "DoNotSync": self.sync_disabled,
            "LocalFileHash": self.local_file_hash,
            "LastSyncedAt": _format_timestamp(self.last_synced_at),
            "LastCheckedAt": _format_timestamp(self.last_checked_at),
        }


@dataclass(slots=True)
class SyncSettings:
    refresh_token: Optional[str] = None
    token_storage: Optional[RefreshTokenStorage] = None
    cloud_service_name: Optional[str] = None
    remote_relative_path: Optional[str] = None
    sync_disabled: bool = False
    local_file_hash: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None
    # Runtime only, never persisted
    syncing_allowed: bool = True
    host_database: Optional[HostDatabase] = None

    @property
    def is_sync_enabled(self) -> bool:
        return not self.sync_disabled and self.syncing_allowed

    def clone(self) -> "SyncSettings":
        """Shallow copy; the host database handle is shared, not duplicated."""
        return replace(self)

    def redacted(self) -> RedactedSyncSettings:
        return RedactedSyncSettings(
            token_storage=self.token_storage,
            cloud_service_name=self.cloud_service_name,
            remote_relative_path=self.remote_relative_path,
            sync_disabled=self.sync_disabled,
            local_file_hash=self.local_file_hash,
            last_synced_at=self.last_synced_at,
            last_checked_at=self.last_checked_at,
        )

    def as_payload(self) -> dict[str, Any]:
        payload = {"RefreshToken": self.refresh_token}
        payload.update(self.redacted().as_payload())
        return payload

    def mark_checked(self, at: datetime | None = None) -> None:
        self.last_checked_at = at or datetime.now(timezone.utc)

    def mark_synced(self, file_hash: str, at: datetime | None = None) -> None:
        moment = at or datetime.now(timezone.utc)
        self.local_file_hash = file_hash
        self.last_synced_at = moment
        self.last_checked_at = moment

    @classmethod
    def from_payload(cls, payload: Any) -> "SyncSettings":
        """Build settings from one persisted record.

        Raises ValueError or TypeError when the record does not have the expected shape.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"settings record must be an object, got {type(payload).__name__}")
        raw_storage = payload.get("RefreshTokenStorage")
        return cls(
            refresh_token=_optional_str(payload, "RefreshToken"),
            token_storage=RefreshTokenStorage(raw_storage) if raw_storage is not None else None,
            cloud_service_name=_optional_str(payload, "OneDriveName"),
            remote_relative_path=_optional_str(payload, "RemoteDatabasePath"),
            sync_disabled=_bool(payload, "DoNotSync"),
            local_file_hash=_optional_str(payload, "LocalFileHash"),
            last_synced_at=_parse_timestamp(payload.get("LastSyncedAt")),
            last_checked_at=_parse_timestamp(payload.get("LastCheckedAt")),
        )


def _optional_str(payload: dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or isinstance(value, str):
        return value
    raise TypeError(f"{key} must be a string")


def _bool(payload: dict[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be a boolean")
    return value


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError("timestamp must be a string")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


__all__ = ["HostDatabase", "RefreshTokenStorage", "RedactedSyncSettings", "SyncSettings"]

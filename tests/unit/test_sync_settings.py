from datetime import datetime, timezone

import pytest

from src.services.sync_settings import RedactedSyncSettings, RefreshTokenStorage, SyncSettings


def test_defaults() -> None:
    settings = SyncSettings()
    assert settings.sync_disabled is False
    assert settings.token_storage is None
    assert settings.refresh_token is None
    assert settings.remote_relative_path is None
    assert settings.last_synced_at is None
    assert settings.syncing_allowed is True
    assert settings.host_database is None
    assert settings.is_sync_enabled


def test_clone_is_shallow_and_shares_database_handle() -> None:
    handle = object()
    original = SyncSettings(refresh_token="tok", token_storage=RefreshTokenStorage.DISK, host_database=handle)
    copy = original.clone()

    assert copy is not original
    assert copy == original
    assert copy.host_database is handle

    copy.refresh_token = None
    assert original.refresh_token == "tok"


def test_redacted_projection_has_no_token_field() -> None:
    settings = SyncSettings(refresh_token="secret", token_storage=RefreshTokenStorage.CREDENTIAL_VAULT)
    redacted = settings.redacted()

    assert isinstance(redacted, RedactedSyncSettings)
    assert not hasattr(redacted, "refresh_token")
    assert "RefreshToken" not in redacted.as_payload()
    assert redacted.as_payload()["RefreshTokenStorage"] == "CredentialVault"


def test_payload_uses_persisted_field_names() -> None:
    synced = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    settings = SyncSettings(
        refresh_token="tok",
        token_storage=RefreshTokenStorage.DISK,
        cloud_service_name="Personal",
        remote_relative_path="Documents/db.kdbx",
        sync_disabled=True,
        local_file_hash="abc",
        last_synced_at=synced,
    )
    payload = settings.as_payload()

    assert payload == {
        "RefreshToken": "tok",
        "RefreshTokenStorage": "Disk",
        "OneDriveName": "Personal",
        "RemoteDatabasePath": "Documents/db.kdbx",
        "DoNotSync": True,
        "LocalFileHash": "abc",
        "LastSyncedAt": "2024-03-01T12:30:00+00:00",
        "LastCheckedAt": None,
    }
    restored = SyncSettings.from_payload(payload)
    assert restored == settings


def test_from_payload_accepts_zulu_timestamps_and_missing_fields() -> None:
    settings = SyncSettings.from_payload({"LastCheckedAt": "2023-12-31T23:59:59Z"})
    assert settings.last_checked_at == datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert settings.token_storage is None
    assert settings.sync_disabled is False


@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {"RefreshTokenStorage": "FloppyDisk"},
        {"DoNotSync": "yes"},
        {"LastSyncedAt": "yesterday"},
        {"OneDriveName": 42},
    ],
)
def test_from_payload_rejects_malformed_records(payload) -> None:
    with pytest.raises((ValueError, TypeError)):
        SyncSettings.from_payload(payload)


def test_mark_synced_updates_hash_and_timestamps() -> None:
    settings = SyncSettings()
    moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
    settings.mark_synced("deadbeef", at=moment)
    assert settings.local_file_hash == "deadbeef"
    assert settings.last_synced_at == moment
    assert settings.last_checked_at == moment

    settings.mark_checked()
    assert settings.last_checked_at > moment


def test_sync_enabled_respects_both_flags() -> None:
    assert not SyncSettings(sync_disabled=True).is_sync_enabled
    assert not SyncSettings(syncing_allowed=False).is_sync_enabled

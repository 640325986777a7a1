from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterator, Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from src.core.errors import CredentialVaultError
from src.services.credential_vault import CredentialVault
from src.services.host_config import HostConfigSlot
from src.services.sync_config_store import SyncConfigStore


class FakeConfigSlot(HostConfigSlot):
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.values: dict[str, str] = dict(initial or {})
        self.writes: list[tuple[str, str]] = []

    def get_string(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_string(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes.append((key, value))


class FakeVault(CredentialVault):
    def __init__(self, secrets: Optional[dict[str, str]] = None) -> None:
        self.secrets: dict[str, str] = dict(secrets or {})
        self.deleted: list[str] = []

    def get(self, key: str) -> Optional[str]:
        return self.secrets.get(key)

    def set(self, key: str, value: str) -> None:
        self.secrets[key] = value

    def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.secrets.pop(key, None)


class UnavailableVault(CredentialVault):
    def _fail(self, key: str) -> CredentialVaultError:
        return CredentialVaultError(f"vault locked for {key}", title="Credential Vault Unavailable")

    def get(self, key: str) -> Optional[str]:
        raise self._fail(key)

    def set(self, key: str, value: str) -> None:
        raise self._fail(key)

    def delete(self, key: str) -> None:
        raise self._fail(key)


@dataclass
class FakeDatabase:
    custom_data: dict[str, str] = field(default_factory=dict)
    modified: bool = False


@pytest.fixture()
def config_slot() -> FakeConfigSlot:
    return FakeConfigSlot()


@pytest.fixture()
def vault() -> FakeVault:
    return FakeVault()


@pytest.fixture()
def unavailable_vault() -> UnavailableVault:
    return UnavailableVault()


@pytest.fixture()
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def store(config_slot: FakeConfigSlot, vault: FakeVault) -> SyncConfigStore:
    return SyncConfigStore(config_slot=config_slot, vault=vault)


@pytest.fixture(scope="session")
def qt_app() -> Iterator["QtWidgets.QApplication"]:
    from PySide6 import QtWidgets

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app

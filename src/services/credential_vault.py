"""
Credential vault access for OneDrive refresh tokens.

Refresh tokens are kept in the OS credential store (Windows Credential Manager,
macOS Keychain, Linux Secret Service) through python-keyring, addressed by the
local database path.
"""

from __future__ import annotations

import abc
import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from src.core.errors import CredentialVaultError

DEFAULT_SERVICE_NAME = "KeePassOneDriveSync"

logger = logging.getLogger(__name__)


class CredentialVault(abc.ABC):
    """Secret store addressed by a string key."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the secret stored under key, or None."""

    @abc.abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous secret."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove the secret stored under key. Missing keys are ignored."""


class KeyringCredentialVault(CredentialVault):
    """
    Credential vault backed by the system keyring.

    Failures of the keyring backend are raised as CredentialVaultError so the
    caller can surface them; nothing is retried.
    """

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME) -> None:
        self._service_name = service_name

    @property
    def service_name(self) -> str:
        return self._service_name

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self._service_name, key)
        except KeyringError as exc:
            raise self._vault_error("read", key) from exc

    def set(self, key: str, value: str) -> None:
        try:
            keyring.set_password(self._service_name, key, value)
        except KeyringError as exc:
            raise self._vault_error("store", key) from exc

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self._service_name, key)
        except PasswordDeleteError:
            logger.debug("No refresh token stored in vault", extra={"path": key})
        except KeyringError as exc:
            raise self._vault_error("delete", key) from exc

    def _vault_error(self, action: str, key: str) -> CredentialVaultError:
        logger.error(
            "Credential vault access failed",
            extra={"operation": action, "path": key, "service": self._service_name},
        )
        return CredentialVaultError(
            f"Unable to {action} the OneDrive refresh token for {key} in the credential vault.",
            title="Credential Vault Unavailable",
            remediation="Make sure the system credential store is unlocked and retry.",
        )


__all__ = ["CredentialVault", "KeyringCredentialVault", "DEFAULT_SERVICE_NAME"]

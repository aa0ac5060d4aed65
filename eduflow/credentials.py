"""Keyring storage for the one secret EduFlow needs: the Gemini API key.

The key is looked up by `eduflow create` after CLI flags and before the
`GEMINI_API_KEY` environment variable, and is written only on explicit request
(`--store-api-key` or `eduflow credentials --set-api-key`). Nothing here logs
or echoes the key.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

import keyring
from keyring.backends import fail as keyring_fail
from keyring.errors import KeyringError, PasswordDeleteError

GEMINI_KEY_SERVICE = "eduflow"
GEMINI_KEY_ACCOUNT = "gemini_api_key"


class CredentialStore:
    """Read, write, and clear the stored Gemini API key."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def get_api_key(self) -> str | None:
        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        raise NotImplementedError

    def clear_api_key(self) -> bool:
        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Gemini key entry in the OS keyring (`eduflow` / `gemini_api_key`)."""

    service_name: str = GEMINI_KEY_SERVICE
    account_name: str = GEMINI_KEY_ACCOUNT

    def _backend(self) -> ModuleType | None:
        # The fail backend means no usable keyring on this machine.
        if isinstance(keyring.get_keyring(), keyring_fail.Keyring):
            return None
        return keyring

    def is_available(self) -> bool:
        return self._backend() is not None

    def get_api_key(self) -> str | None:
        """Return the stored key, or `None` when unset, blank, or unreadable."""

        backend = self._backend()
        if backend is None:
            return None
        try:
            stored = backend.get_password(self.service_name, self.account_name)
        except KeyringError:
            return None
        return (stored or "").strip() or None

    def set_api_key(self, api_key: str) -> None:
        """Store the key for later `create` runs.

        Raises:
            ValueError: The key is blank.
            RuntimeError: No keyring backend is configured.
        """

        key = api_key.strip()
        if not key:
            raise ValueError("Gemini API key must be a non-empty string.")
        backend = self._backend()
        if backend is None:
            raise RuntimeError("No keyring backend is configured for storing the Gemini API key.")
        backend.set_password(self.service_name, self.account_name, key)

    def clear_api_key(self) -> bool:
        """Delete the stored key; return `False` when there was nothing to delete."""

        backend = self._backend()
        if backend is None or self.get_api_key() is None:
            return False
        try:
            backend.delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    return KeyringCredentialStore()

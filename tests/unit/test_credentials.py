"""Unit tests for keyring-backed Gemini key storage."""

import pytest
from keyring.errors import PasswordDeleteError

from eduflow.credentials import GEMINI_KEY_ACCOUNT, GEMINI_KEY_SERVICE, KeyringCredentialStore


class FakeKeyringModule:
    """In-memory keyring stand-in keyed by (service, account)."""

    def __init__(self) -> None:
        self._storage: dict[tuple[str, str], str] = {}

    def get_password(self, service_name: str, account_name: str) -> str | None:
        return self._storage.get((service_name, account_name))

    def set_password(self, service_name: str, account_name: str, value: str) -> None:
        self._storage[(service_name, account_name)] = value

    def delete_password(self, service_name: str, account_name: str) -> None:
        if (service_name, account_name) not in self._storage:
            raise PasswordDeleteError("not found")
        del self._storage[(service_name, account_name)]


def test_gemini_key_set_get_clear(monkeypatch: pytest.MonkeyPatch) -> None:
    """The Gemini key should be stored trimmed under the eduflow keyring entry."""

    fake_keyring = FakeKeyringModule()
    store = KeyringCredentialStore()
    monkeypatch.setattr(store, "_backend", lambda: fake_keyring)

    assert store.is_available() is True
    assert store.get_api_key() is None

    store.set_api_key("  AIza-test  ")
    assert store.get_api_key() == "AIza-test"
    assert fake_keyring._storage == {(GEMINI_KEY_SERVICE, GEMINI_KEY_ACCOUNT): "AIza-test"}

    assert store.clear_api_key() is True
    assert store.get_api_key() is None
    assert store.clear_api_key() is False


def test_blank_gemini_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    store = KeyringCredentialStore()
    monkeypatch.setattr(store, "_backend", lambda: FakeKeyringModule())

    with pytest.raises(ValueError, match="non-empty"):
        store.set_api_key("   ")


def test_missing_keyring_backend_reads_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a backend, reads return nothing and writes fail loudly."""

    store = KeyringCredentialStore()
    monkeypatch.setattr(store, "_backend", lambda: None)

    assert store.is_available() is False
    assert store.get_api_key() is None
    assert store.clear_api_key() is False
    with pytest.raises(RuntimeError, match="No keyring backend"):
        store.set_api_key("AIza-test")

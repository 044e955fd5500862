import pytest

from lingualink.credentials import (
    CredentialStore,
    MissingCredential,
    resolve_credential,
)
from lingualink.storage import LocalStore


def test_override_takes_priority():
    assert resolve_credential("openai", "user-key", "server-key") == "user-key"


def test_blank_override_uses_default():
    assert resolve_credential("openai", "   ", "server-key") == "server-key"
    assert resolve_credential("openai", None, "server-key") == "server-key"


def test_missing_credential():
    with pytest.raises(MissingCredential) as excinfo:
        resolve_credential("deepgram", "", None)
    assert excinfo.value.provider == "deepgram"
    assert "Deepgram" in str(excinfo.value)


def test_store_headers_only_for_requested_provider(tmp_path):
    credentials = CredentialStore(LocalStore(db_path=tmp_path / "local.db"))
    credentials.set("deepgram", "dg-key")
    credentials.set("openai", "sk-user")

    assert credentials.headers_for("deepgram") == {"X-Custom-Deepgram-Key": "dg-key"}
    assert credentials.headers_for("openai") == {"X-Custom-OpenAI-Key": "sk-user"}
    assert credentials.headers_for("elevenlabs") == {}


def test_store_blank_value_removes_override(tmp_path):
    credentials = CredentialStore(LocalStore(db_path=tmp_path / "local.db"))
    credentials.set("elevenlabs", "xi-key")
    credentials.set("elevenlabs", "")

    assert credentials.get("elevenlabs") is None
    assert credentials.headers_for("elevenlabs") == {}


def test_unknown_provider_rejected(tmp_path):
    credentials = CredentialStore(LocalStore(db_path=tmp_path / "local.db"))
    with pytest.raises(ValueError):
        credentials.set("azure", "key")

"""Credential resolution for the upstream providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .storage import LocalStore


@dataclass(frozen=True)
class Provider:
    name: str
    display_name: str
    header: str
    env_var: str
    storage_key: str


DEEPGRAM = Provider(
    name="deepgram",
    display_name="Deepgram",
    header="X-Custom-Deepgram-Key",
    env_var="DEEPGRAM_API_KEY",
    storage_key="deepgramApiKey",
)
OPENAI = Provider(
    name="openai",
    display_name="OpenAI",
    header="X-Custom-OpenAI-Key",
    env_var="OPENAI_API_KEY",
    storage_key="openaiApiKey",
)
ELEVENLABS = Provider(
    name="elevenlabs",
    display_name="ElevenLabs",
    header="X-Custom-ElevenLabs-Key",
    env_var="ELEVENLABS_API_KEY",
    storage_key="elevenlabsApiKey",
)

PROVIDERS: Dict[str, Provider] = {p.name: p for p in (DEEPGRAM, OPENAI, ELEVENLABS)}


class MissingCredential(RuntimeError):
    """Raised when neither an override nor a server default key is available."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        display = PROVIDERS[provider].display_name if provider in PROVIDERS else provider
        super().__init__(f"{display} API key is missing")


def get_provider(name: str) -> Provider:
    try:
        return PROVIDERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown provider: {name}") from exc


def resolve_credential(provider: str, override: Optional[str], default: Optional[str]) -> str:
    """Return the key to use for ``provider``.

    A non-blank user override takes priority over the server default. Raises
    :class:`MissingCredential` when neither is usable.
    """

    if override and override.strip():
        return override.strip()
    if default and default.strip():
        return default.strip()
    raise MissingCredential(provider)


class CredentialStore:
    """Per-provider user overrides kept in client-local storage."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    def get(self, provider: str) -> Optional[str]:
        value = self._store.get_item(get_provider(provider).storage_key)
        if value is None or not value.strip():
            return None
        return value

    def set(self, provider: str, value: Optional[str]) -> None:
        key = get_provider(provider).storage_key
        if value is None or not value.strip():
            self._store.remove_item(key)
        else:
            self._store.set_item(key, value.strip())

    def headers_for(self, provider: str) -> Dict[str, str]:
        """Return the override header for ``provider`` only, if one is set."""

        value = self.get(provider)
        if value is None:
            return {}
        return {get_provider(provider).header: value}

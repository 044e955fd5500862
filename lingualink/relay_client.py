"""HTTP client for the lingualink relay endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .adapters import TransportError, UpstreamError
from .credentials import DEEPGRAM, ELEVENLABS, OPENAI, CredentialStore
from .models import Config, SynthesizedAudio


def _relay_error(provider: str, response: httpx.Response) -> UpstreamError:
    detail = response.reason_phrase or "request failed"
    try:
        payload = response.json()
        if isinstance(payload, dict):
            detail = payload.get("error", detail)
    except ValueError:
        detail = response.text or detail
    return UpstreamError(provider, response.status_code, detail)


def _json_field(provider: str, response: httpx.Response, key: str) -> str:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError(provider, response.status_code, "Relay returned invalid JSON") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get(key), str):
        raise UpstreamError(provider, response.status_code, f"Relay response is missing {key!r}")
    return payload[key]


class RelayClient:
    """Call the relay with the user's credential overrides attached.

    Each call only carries the override header of the provider it targets.
    Failure statuses raise :class:`UpstreamError`; network failures and
    timeouts raise :class:`TransportError`.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Optional[CredentialStore] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            verify=verify_ssl,
        )

    @classmethod
    def from_config(cls, cfg: Config, credentials: Optional[CredentialStore] = None) -> "RelayClient":
        return cls(
            cfg.server_url,
            credentials=credentials,
            timeout=cfg.api_timeout,
            verify_ssl=cfg.verify_ssl,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self, provider: str) -> Dict[str, str]:
        if self._credentials is None:
            return {}
        return self._credentials.headers_for(provider)

    async def _post(self, provider: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.post(path, **kwargs)
        except httpx.HTTPError as exc:
            logging.debug("Relay request to %s failed: %s", path, exc)
            raise TransportError("relay", str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise _relay_error(provider, response)
        return response

    async def transcribe(self, audio: bytes, source_language: str, content_type: str = "audio/wav") -> str:
        response = await self._post(
            DEEPGRAM.name,
            "/api/speech-to-text",
            headers=self._headers(DEEPGRAM.name),
            data={"sourceLanguage": source_language},
            files={"audio": ("recording.wav", audio, content_type)},
        )
        return _json_field(DEEPGRAM.name, response, "text")

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        response = await self._post(
            OPENAI.name,
            "/api/translate",
            headers=self._headers(OPENAI.name),
            json={"text": text, "sourceLanguage": source_language, "targetLanguage": target_language},
        )
        translated = _json_field(OPENAI.name, response, "translatedText")
        if not translated.strip():
            raise UpstreamError(OPENAI.name, response.status_code, "Relay returned an empty translation")
        return translated

    async def synthesize(self, text: str, language: str) -> SynthesizedAudio:
        response = await self._post(
            ELEVENLABS.name,
            "/api/text-to-speech",
            headers=self._headers(ELEVENLABS.name),
            json={"text": text, "language": language},
        )
        content_type = response.headers.get("content-type", "audio/mpeg").split(";")[0].strip()
        return SynthesizedAudio(content=response.content, content_type=content_type or "audio/mpeg")

    async def health(self) -> Dict[str, Any]:
        try:
            response = await self._client.get("/health")
        except httpx.HTTPError as exc:
            raise TransportError("relay", str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise _relay_error("relay", response)
        return response.json()

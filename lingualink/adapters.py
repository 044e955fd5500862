"""Adapters wrapping the upstream speech and translation APIs."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .languages import DEEPGRAM_LOCALES, ELEVENLABS_VOICES, ProviderLocaleTable, language_name
from .models import SynthesizedAudio

DEFAULT_TIMEOUT = 30.0

DEEPGRAM_URL = "https://api.deepgram.com"
DEEPGRAM_MODEL = "nova-2"
OPENAI_MODEL = "gpt-4o"
ELEVENLABS_URL = "https://api.elevenlabs.io"
ELEVENLABS_MODEL = "eleven_multilingual_v2"

TRANSLATION_PROMPT = (
    "You are a medical translator specializing in healthcare terminology. "
    "Translate the following text from {source} to {target}. "
    "Maintain medical accuracy and use appropriate healthcare terminology. "
    "Only respond with the translated text, nothing else."
)


class AdapterError(RuntimeError):
    """Base class for failures talking to an upstream provider."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(message)


class UpstreamError(AdapterError):
    """The provider answered with a non-success status."""

    def __init__(self, provider: str, status: int, message: Optional[str] = None) -> None:
        self.status = status
        super().__init__(provider, message or f"{provider} request failed with status {status}")


class TransportError(AdapterError):
    """The provider could not be reached."""

    def __init__(self, provider: str, detail: str = "") -> None:
        message = f"Could not reach {provider}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(provider, message)


def _raise_for_upstream(provider: str, response: httpx.Response) -> None:
    if response.is_success:
        return
    # Provider bodies stay in the server log; callers only see the status.
    logging.warning("%s API error (%s): %s", provider, response.status_code, response.text)
    raise UpstreamError(provider, response.status_code)


class _HttpAdapter:
    provider = "upstream"

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._http_client() as client:
                response = await client.post(f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logging.warning("%s request failed: %s", self.provider, exc)
            raise TransportError(self.provider, str(exc) or type(exc).__name__) from exc
        _raise_for_upstream(self.provider, response)
        return response


class TranscriptionAdapter(_HttpAdapter):
    """Speech-to-text through the Deepgram listen API."""

    provider = "deepgram"

    def __init__(
        self,
        base_url: str = DEEPGRAM_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        locales: ProviderLocaleTable = DEEPGRAM_LOCALES,
        model: str = DEEPGRAM_MODEL,
    ) -> None:
        super().__init__(base_url, client, timeout)
        self.locales = locales
        self.model = model

    async def invoke(
        self,
        audio: bytes,
        source_language: str,
        api_key: str,
        content_type: str = "audio/wav",
    ) -> str:
        """Return the transcript, or ``""`` when no speech was detected."""

        response = await self._post(
            "/v1/listen",
            params={"model": self.model, "language": self.locales.resolve(source_language)},
            headers={"Authorization": f"Token {api_key}", "Content-Type": content_type},
            content=audio,
        )
        return _extract_transcript(response)


def _extract_transcript(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError("deepgram", response.status_code, "Deepgram returned invalid JSON") from exc
    try:
        transcript = payload["results"]["channels"][0]["alternatives"][0].get("transcript")
    except (KeyError, IndexError, TypeError):
        return ""
    return (transcript or "").strip()


class TranslationAdapter:
    """Text translation through an OpenAI chat completion."""

    provider = "openai"

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        model: str = OPENAI_MODEL,
        temperature: float = 0.3,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.model = model
        self.temperature = temperature
        self._client = client

    def build_messages(self, text: str, source_language: str, target_language: str) -> list[Dict[str, str]]:
        instruction = TRANSLATION_PROMPT.format(
            source=language_name(source_language),
            target=language_name(target_language),
        )
        return [
            {"role": "system", "content": instruction},
            {"role": "user", "content": text},
        ]

    async def invoke(self, text: str, source_language: str, target_language: str, api_key: str) -> str:
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=self._client,
        )
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(text, source_language, target_language),
                temperature=self.temperature,
            )
        except openai.APIStatusError as exc:
            logging.warning("openai API error (%s): %s", exc.status_code, exc.response.text)
            raise UpstreamError(self.provider, exc.status_code) from exc
        except openai.APIConnectionError as exc:
            logging.warning("openai request failed: %s", exc)
            raise TransportError(self.provider, str(exc)) from exc
        finally:
            if self._client is None:
                await client.close()

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise UpstreamError(self.provider, 502, "OpenAI returned an empty translation")
        return content.strip()


class SpeechSynthesisAdapter(_HttpAdapter):
    """Text-to-speech through the ElevenLabs API."""

    provider = "elevenlabs"

    def __init__(
        self,
        base_url: str = ELEVENLABS_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        voices: ProviderLocaleTable = ELEVENLABS_VOICES,
        model: str = ELEVENLABS_MODEL,
    ) -> None:
        super().__init__(base_url, client, timeout)
        self.voices = voices
        self.model = model

    async def invoke(self, text: str, language: str, api_key: str) -> SynthesizedAudio:
        voice_id = self.voices.resolve(language)
        response = await self._post(
            f"/v1/text-to-speech/{voice_id}",
            headers={"xi-api-key": api_key, "Accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": self.model,
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
            },
        )
        content_type = response.headers.get("content-type", "audio/mpeg").split(";")[0].strip()
        return SynthesizedAudio(content=response.content, content_type=content_type or "audio/mpeg")

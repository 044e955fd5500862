import asyncio
import json

import httpx
import pytest

from lingualink.adapters import TransportError, UpstreamError
from lingualink.credentials import CredentialStore
from lingualink.relay_client import RelayClient
from lingualink.storage import LocalStore


def _relay(handler, credentials=None) -> RelayClient:
    client = httpx.AsyncClient(base_url="http://relay.test", transport=httpx.MockTransport(handler))
    return RelayClient("http://relay.test", credentials=credentials, client=client)


@pytest.fixture
def credentials(tmp_path):
    store = CredentialStore(LocalStore(db_path=tmp_path / "local.db"))
    store.set("deepgram", "dg-user")
    store.set("openai", "sk-user")
    return store


def test_transcribe_sends_multipart_with_only_deepgram_header(credentials):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json={"text": "hello"})

    text = asyncio.run(_relay(handler, credentials).transcribe(b"RIFF", "en"))

    request = seen["request"]
    assert text == "hello"
    assert request.url.path == "/api/speech-to-text"
    assert request.headers["X-Custom-Deepgram-Key"] == "dg-user"
    assert "X-Custom-OpenAI-Key" not in request.headers
    assert b'name="sourceLanguage"' in request.content
    assert b'name="audio"' in request.content


def test_translate_posts_json(credentials):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(200, json={"translatedText": "hola"})

    result = asyncio.run(_relay(handler, credentials).translate("hello", "en", "es"))

    assert result == "hola"
    assert seen["body"] == {"text": "hello", "sourceLanguage": "en", "targetLanguage": "es"}
    assert seen["headers"]["X-Custom-OpenAI-Key"] == "sk-user"
    assert "X-Custom-Deepgram-Key" not in seen["headers"]


def test_synthesize_without_override_sends_no_key(credentials):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200, content=b"ID3", headers={"content-type": "audio/mpeg"})

    audio = asyncio.run(_relay(handler, credentials).synthesize("hola", "es"))

    assert audio.content == b"ID3"
    assert audio.content_type == "audio/mpeg"
    assert not any(name.lower().startswith("x-custom-") for name in seen["headers"])


def test_failure_status_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "OpenAI API key is missing"})

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(_relay(handler).translate("hello", "en", "es"))

    assert excinfo.value.status == 401
    assert excinfo.value.provider == "openai"
    assert str(excinfo.value) == "OpenAI API key is missing"


def test_network_failure_becomes_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError):
        asyncio.run(_relay(handler).transcribe(b"RIFF", "en"))


def test_missing_translation_field_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"text": "hola"})

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(_relay(handler).translate("hello", "en", "es"))
    assert excinfo.value.provider == "openai"


def test_empty_translation_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"translatedText": "  "})

    with pytest.raises(UpstreamError):
        asyncio.run(_relay(handler).translate("hello", "en", "es"))


def test_non_object_body_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["hola"])

    with pytest.raises(UpstreamError):
        asyncio.run(_relay(handler).transcribe(b"RIFF", "en"))


def test_empty_transcript_is_returned_as_is():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"text": ""})

    assert asyncio.run(_relay(handler).transcribe(b"RIFF", "en")) == ""

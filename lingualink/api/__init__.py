"""FastAPI relay between lingualink clients and the upstream AI providers."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import (
    Depends,
    FastAPI,
    File,
    Form,
    Header,
    Request,
    UploadFile,
    status,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from ..adapters import (
    AdapterError,
    SpeechSynthesisAdapter,
    TranscriptionAdapter,
    TranslationAdapter,
)
from ..config import server_default
from ..credentials import (
    DEEPGRAM,
    ELEVENLABS,
    OPENAI,
    PROVIDERS,
    MissingCredential,
    Provider,
    resolve_credential,
)

app = FastAPI(
    title="lingualink relay",
    description="Relays transcription, translation and speech synthesis requests to upstream providers.",
    version="0.1.0",
)

_transcription = TranscriptionAdapter()
_translation = TranslationAdapter()
_synthesis = SpeechSynthesisAdapter()


class HealthResponse(BaseModel):
    status: str = "ok"
    providers: Dict[str, bool] = Field(default_factory=dict)


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    source_language: Optional[str] = Field(None, alias="sourceLanguage")
    target_language: Optional[str] = Field(None, alias="targetLanguage")


class SpeechRequest(BaseModel):
    text: Optional[str] = None
    language: Optional[str] = None


def get_transcription_adapter() -> TranscriptionAdapter:
    return _transcription


def get_translation_adapter() -> TranslationAdapter:
    return _translation


def get_synthesis_adapter() -> SpeechSynthesisAdapter:
    return _synthesis


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _credential(provider: Provider, override: Optional[str]) -> str:
    return resolve_credential(provider.name, override, server_default(provider.env_var))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logging.debug("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return _error("Missing required parameters", status.HTTP_400_BAD_REQUEST)


@app.exception_handler(MissingCredential)
async def missing_credential_handler(request: Request, exc: MissingCredential) -> JSONResponse:
    return _error(str(exc), status.HTTP_400_BAD_REQUEST)


@app.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    return HealthResponse(
        providers={name: server_default(p.env_var) is not None for name, p in PROVIDERS.items()}
    )


@app.post("/api/speech-to-text")
async def speech_to_text(
    audio: Optional[UploadFile] = File(None),
    source_language: str = Form("en", alias="sourceLanguage"),
    override: Optional[str] = Header(None, alias=DEEPGRAM.header),
    adapter: TranscriptionAdapter = Depends(get_transcription_adapter),
) -> JSONResponse:
    if audio is None:
        return _error("No audio file provided", status.HTTP_400_BAD_REQUEST)
    api_key = _credential(DEEPGRAM, override)

    payload = await audio.read()
    if not payload:
        return _error("No audio file provided", status.HTTP_400_BAD_REQUEST)

    try:
        text = await adapter.invoke(
            payload,
            source_language,
            api_key,
            content_type=audio.content_type or "audio/wav",
        )
    except AdapterError as exc:
        logging.error("Speech-to-text error: %s", exc)
        return _error("Failed to process speech", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse({"text": text})


@app.post("/api/translate")
async def translate(
    body: TranslateRequest,
    override: Optional[str] = Header(None, alias=OPENAI.header),
    adapter: TranslationAdapter = Depends(get_translation_adapter),
) -> JSONResponse:
    if not body.text or not body.source_language or not body.target_language:
        return _error("Missing required parameters", status.HTTP_400_BAD_REQUEST)
    api_key = _credential(OPENAI, override)

    try:
        translated = await adapter.invoke(body.text, body.source_language, body.target_language, api_key)
    except AdapterError as exc:
        logging.error("Translation error: %s", exc)
        return _error("Failed to translate text", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse({"translatedText": translated})


@app.post("/api/text-to-speech")
async def text_to_speech(
    body: SpeechRequest,
    override: Optional[str] = Header(None, alias=ELEVENLABS.header),
    adapter: SpeechSynthesisAdapter = Depends(get_synthesis_adapter),
) -> Response:
    if not body.text or not body.language:
        return _error("Missing required parameters", status.HTTP_400_BAD_REQUEST)
    api_key = _credential(ELEVENLABS, override)

    try:
        audio = await adapter.invoke(body.text, body.language, api_key)
    except AdapterError as exc:
        logging.error("Text-to-speech error: %s", exc)
        return _error("Failed to generate speech", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(content=audio.content, media_type=audio.content_type)

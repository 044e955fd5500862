"""Dataclasses describing persistent objects for lingualink."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class Language:
    """A selectable language: short code plus display name."""

    code: str
    name: str


@dataclass(frozen=True, slots=True)
class TranslationRecord:
    """One completed original/translated pair. Immutable once created."""

    id: str
    original_text: str
    translated_text: str
    source_language: str
    target_language: str
    created_at: datetime

    @classmethod
    def create(
        cls,
        original_text: str,
        translated_text: str,
        source_language: str,
        target_language: str,
        created_at: Optional[datetime] = None,
    ) -> "TranslationRecord":
        return cls(
            id=uuid.uuid4().hex,
            original_text=original_text,
            translated_text=translated_text,
            source_language=source_language,
            target_language=target_language,
            created_at=created_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "originalText": self.original_text,
            "translatedText": self.translated_text,
            "sourceLanguage": self.source_language,
            "targetLanguage": self.target_language,
            "timestamp": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TranslationRecord":
        return cls(
            id=str(payload["id"]),
            original_text=payload["originalText"],
            translated_text=payload["translatedText"],
            source_language=payload["sourceLanguage"],
            target_language=payload["targetLanguage"],
            created_at=datetime.fromisoformat(payload["timestamp"]),
        )


@dataclass(frozen=True, slots=True)
class SynthesizedAudio:
    """Binary audio returned by the speech synthesis provider."""

    content: bytes
    content_type: str = "audio/mpeg"


@dataclass(slots=True)
class Config:
    """User configuration stored on disk."""

    server_url: str = "http://127.0.0.1:8000"
    api_timeout: float = 30.0
    verify_ssl: bool = True
    source_language: str = "en"
    target_language: str = "es"
    auto_play: bool = False
    samplerate: int = 16000

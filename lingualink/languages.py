"""Supported languages and per-provider locale tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .models import Language

LANGUAGES: List[Language] = [
    Language("en", "English"),
    Language("es", "Spanish"),
    Language("fr", "French"),
    Language("zh", "Chinese"),
    Language("ig", "Igbo"),
    Language("ha", "Hausa"),
    Language("yo", "Yoruba"),
]

_NAMES: Dict[str, str] = {language.code: language.name for language in LANGUAGES}


def is_supported(code: str) -> bool:
    return code in _NAMES


def language_name(code: str) -> str:
    """Return the display name for ``code``, or the code itself when unknown."""

    return _NAMES.get(code, code)


@dataclass(frozen=True)
class ProviderLocaleTable:
    """Map language codes to a provider-specific locale or voice.

    Codes without a direct entry resolve to ``default`` rather than failing, so
    every language the UI offers can be sent to every provider.
    """

    provider: str
    default: str
    mapping: Mapping[str, str] = field(default_factory=dict)

    def resolve(self, code: str) -> str:
        return self.mapping.get(code, self.default)


DEEPGRAM_LOCALES = ProviderLocaleTable(
    provider="deepgram",
    default="en",
    mapping={
        "en": "en-US",
        "es": "es",
        "fr": "fr",
        "zh": "zh",
        # Igbo, Hausa and Yoruba have no Deepgram model; transcribe as English.
        "ig": "en",
        "ha": "en",
        "yo": "en",
    },
)

ENGLISH_VOICE = "21m00Tcm4TlvDq8ikWAM"  # Rachel

ELEVENLABS_VOICES = ProviderLocaleTable(
    provider="elevenlabs",
    default=ENGLISH_VOICE,
    mapping={
        "en": ENGLISH_VOICE,
        "es": "AZnzlk1XvdvUeBnXmlld",  # Antonio
        "fr": "MF3mGyEYCl7XYWbV9V6O",  # Nicole
        "zh": "TxGEqnHWrfWFTfGW9XjX",  # Xiaoxiao
        "ig": ENGLISH_VOICE,
        "ha": ENGLISH_VOICE,
        "yo": ENGLISH_VOICE,
    },
)

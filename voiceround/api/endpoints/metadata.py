"""
Metadata API endpoints

Provides reference data for:
- Interview rounds
- Spoken languages
- Synthesis voices
- Session configuration defaults
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from voiceround.config.settings import get_settings
from voiceround.models.catalog import LANGUAGE_NAMES, VOICES, Round
from voiceround.models.session import CONFIG_DEFAULTS

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class RoundInfo(BaseModel):
    """Information about an interview round."""
    id: str
    name: str
    focus: str


class LanguageInfo(BaseModel):
    """Information about a spoken language."""
    code: str
    name: str


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/rounds")
async def get_rounds() -> list[RoundInfo]:
    """Get all known interview rounds."""
    return [
        RoundInfo(id=round_.value, name=round_.display_name, focus=round_.focus)
        for round_ in Round
    ]


@router.get("/languages")
async def get_languages() -> list[LanguageInfo]:
    """Get languages with named prompts. Other codes are passed through as-is."""
    return [LanguageInfo(code=code, name=name) for code, name in LANGUAGE_NAMES.items()]


@router.get("/voices")
async def get_voices() -> list[str]:
    """Get synthesis voices."""
    return list(VOICES)


@router.get("/defaults")
async def get_defaults() -> dict[str, Any]:
    """Get the defaults applied to fields missing from a start message."""
    settings = get_settings()
    return {
        **CONFIG_DEFAULTS,
        "max_turns": settings.default_max_turns,
        "max_turns_limit": settings.max_turns_limit,
        "voice": settings.tts_voice,
    }

"""
Data model: sheet music, cifras, and the gateway request/response contract.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class CifraStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def new_id() -> str:
    """Opaque unique identifier for collection entries."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SheetMusic:
    """An uploaded PDF. `locator` is only resolvable while the sheet is in the collection."""

    id: str
    name: str
    data: bytes = field(repr=False)
    locator: str
    page_count: int = 1


@dataclass(frozen=True)
class Cifra:
    """A lyric sheet annotated with chords."""

    id: str
    name: str
    lyrics: str = ""
    chords: str = ""
    status: CifraStatus = CifraStatus.PROCESSING
    key: str | None = None

    def chord_list(self) -> list[str]:
        """Split the delimited chord string back into chord names."""
        return [c.strip() for c in self.chords.split(",") if c.strip()]


# =============================================================================
# GATEWAY REQUESTS
# =============================================================================

@dataclass(frozen=True)
class RawAudioRequest:
    """Transcribe lyrics and chords straight from audio."""

    audio: bytes = field(repr=False)
    filename: str
    mime_type: str
    detect_key: bool = True

    mode = "raw_audio"

    @property
    def audio_format(self) -> str:
        """Audio format hint for the gateway: wav or mp3."""
        return "wav" if "wav" in (self.mime_type or "").lower() else "mp3"


@dataclass(frozen=True)
class FormatOnlyRequest:
    """Reformat known lyrics into a chord-above-lyric cifra in a given key."""

    lyrics: str
    key: str
    song_name: str = ""

    mode = "format_only"


@dataclass(frozen=True)
class LegacyFilenameRequest:
    """Deprecated: ask the model to produce a cifra from the filename alone."""

    filename: str

    mode = "legacy_filename"


GatewayRequest = Union[RawAudioRequest, FormatOnlyRequest, LegacyFilenameRequest]


# =============================================================================
# GATEWAY RESPONSE
# =============================================================================

@dataclass(frozen=True)
class GatewayResponse:
    success: bool
    lyrics: str = ""
    chords: list[str] = field(default_factory=list)
    detected_key: str | None = None
    error: str | None = None
    status: int = 200

    @classmethod
    def ok(cls, lyrics: str, chords: list[str], detected_key: str = None) -> "GatewayResponse":
        return cls(success=True, lyrics=lyrics, chords=list(chords), detected_key=detected_key)

    @classmethod
    def failure(cls, error: str, status: int = 500) -> "GatewayResponse":
        return cls(success=False, error=error, status=status)

    def to_dict(self) -> dict:
        """Wire representation sent by the transcription endpoint."""
        if not self.success:
            return {"error": self.error, "success": False}

        payload = {"lyrics": self.lyrics, "chords": self.chords, "success": True}
        if self.detected_key:
            payload["detectedKey"] = self.detected_key
        return payload

    @classmethod
    def from_dict(cls, payload: dict, status: int = 200) -> "GatewayResponse":
        """Parse the wire representation (tolerates missing optional fields)."""
        if not payload.get("success"):
            return cls.failure(payload.get("error") or "Unknown error", status=status if status >= 400 else 500)

        return cls.ok(
            lyrics=payload.get("lyrics") or "",
            chords=payload.get("chords") or [],
            detected_key=payload.get("detectedKey"),
        )

"""
Transcription request handling.

Turns a JSON request body into a gateway request variant, runs it, and
returns the (status, payload) pair the HTTP layer sends back. Every failure
becomes a structured `{"error": ..., "success": false}` payload.
"""

import logging
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import llm
from . import music
from .encoder import decode_base64
from .errors import MusicFolioError, ValidationError
from .models import (
    FormatOnlyRequest,
    GatewayRequest,
    GatewayResponse,
    LegacyFilenameRequest,
    RawAudioRequest,
)

logger = logging.getLogger(__name__)


class TranscribeBody(BaseModel):
    """JSON body accepted by the transcription endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    audio_base64: Optional[str] = Field(None, alias="audioBase64")
    file_name: Optional[str] = Field(None, alias="fileName")
    mime_type: Optional[str] = Field(None, alias="mimeType")
    detect_key: bool = Field(True, alias="detectKey")
    format_only: bool = Field(False, alias="formatOnly")
    lyrics: Optional[str] = None
    key: Optional[str] = None
    song_name: Optional[str] = Field(None, alias="songName")
    legacy_filename_only: bool = Field(False, alias="legacyFilenameOnly")


def _raw_audio_request(body: TranscribeBody) -> RawAudioRequest:
    return RawAudioRequest(
        audio=decode_base64(body.audio_base64),
        filename=body.file_name or "audio",
        mime_type=body.mime_type or "audio/mpeg",
        detect_key=body.detect_key,
    )


def _format_only_request(body: TranscribeBody) -> FormatOnlyRequest:
    if not body.lyrics or not body.lyrics.strip():
        raise ValidationError("No lyrics provided")
    if not body.key or not music.is_valid_key(body.key):
        raise ValidationError(f"Invalid key: {body.key!r}")
    return FormatOnlyRequest(
        lyrics=body.lyrics,
        key=music.normalize_key(body.key),
        song_name=body.song_name or "",
    )


def _legacy_request(body: TranscribeBody) -> LegacyFilenameRequest:
    if not body.file_name:
        raise ValidationError("No file name provided")
    return LegacyFilenameRequest(filename=body.file_name)


def parse_body(payload) -> GatewayRequest:
    """
    Select the request variant for a JSON body.

    formatOnly wins, then audio; the legacy mode must be requested explicitly.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        body = TranscribeBody.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid request body: {e.errors()[0]['msg']}")

    if body.format_only:
        return _format_only_request(body)
    if body.audio_base64:
        return _raw_audio_request(body)
    if body.legacy_filename_only:
        logger.warning("Legacy filename-only transcription requested")
        return _legacy_request(body)

    raise ValidationError("No audio data provided")


def describe(request: GatewayRequest) -> str:
    """Short description of a request for logging."""
    if isinstance(request, RawAudioRequest):
        return f"audio file: {request.filename} ({len(request.audio)} bytes, {request.audio_format})"
    if isinstance(request, FormatOnlyRequest):
        return f"format: {request.song_name or '(untitled)'} in {request.key}"
    return f"legacy filename: {request.filename}"


def handle(payload, client_factory: Callable[[], llm.GatewayClient] = None) -> tuple[int, dict]:
    """
    Handle one transcription request body.

    Returns (HTTP status, JSON payload).
    """
    try:
        # A missing credential fails every request, whatever the body
        client = (client_factory or llm.require_client)()
        request = parse_body(payload)
        logger.info(f"Processing {describe(request)}")
        response = client.transcribe(request)

    except MusicFolioError as e:
        logger.error(f"Transcription error: {e}")
        response = GatewayResponse.failure(str(e), status=e.status)
    except Exception as e:
        logger.exception("Transcription error")
        response = GatewayResponse.failure(str(e) or "Unknown error")

    return response.status, response.to_dict()

"""
HTTP client for a running transcription endpoint (see server.py).
"""

import logging

import requests

import config
from .encoder import encode_base64
from .models import (
    FormatOnlyRequest,
    GatewayRequest,
    GatewayResponse,
    LegacyFilenameRequest,
    RawAudioRequest,
)

logger = logging.getLogger(__name__)


def request_to_body(request: GatewayRequest) -> dict:
    """Serialize a request variant into the endpoint's JSON body."""
    if isinstance(request, RawAudioRequest):
        return {
            "audioBase64": encode_base64(request.audio),
            "fileName": request.filename,
            "mimeType": request.mime_type,
            "detectKey": request.detect_key,
        }
    if isinstance(request, FormatOnlyRequest):
        return {
            "formatOnly": True,
            "lyrics": request.lyrics,
            "key": request.key,
            "songName": request.song_name,
        }
    if isinstance(request, LegacyFilenameRequest):
        return {"legacyFilenameOnly": True, "fileName": request.filename}
    raise TypeError(f"Unknown gateway request: {type(request).__name__}")


class EndpointClient:
    """Calls the transcription endpoint over HTTP."""

    def __init__(self, url: str, timeout: float = None, session: requests.Session = None):
        self.url = url.rstrip("/")
        self.timeout = timeout or config.GATEWAY_TIMEOUT
        self.session = session or requests.Session()

    def transcribe(self, request: GatewayRequest) -> GatewayResponse:
        """
        POST one request and parse the reply.

        Transport errors and non-JSON replies come back as failed responses.
        """
        try:
            r = self.session.post(self.url, json=request_to_body(request), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Endpoint unreachable: {e}")
            return GatewayResponse.failure(f"Endpoint unreachable: {e}")

        try:
            payload = r.json()
        except ValueError:
            logger.error(f"Endpoint returned non-JSON reply ({r.status_code})")
            return GatewayResponse.failure(f"Unexpected reply from endpoint: {r.status_code}",
                                           status=r.status_code if r.status_code >= 400 else 500)

        if not isinstance(payload, dict):
            return GatewayResponse.failure(f"Unexpected reply from endpoint: {r.status_code}")

        return GatewayResponse.from_dict(payload, status=r.status_code)

    __call__ = transcribe

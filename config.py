"""
Configuration settings for Music Folio.
Override the gateway settings through environment variables.
"""

import os

# =============================================================================
# AI GATEWAY
# =============================================================================

# Name of the environment variable holding the gateway bearer credential
API_KEY_ENV = "AI_GATEWAY_API_KEY"

# OpenAI-compatible chat completion endpoint
GATEWAY_URL = os.environ.get("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1")
GATEWAY_MODEL = os.environ.get("AI_GATEWAY_MODEL", "google/gemini-2.5-flash")
GATEWAY_TIMEOUT = float(os.environ.get("AI_GATEWAY_TIMEOUT", "120"))

# Transcription endpoint used by the CLI when --endpoint is not given.
# Empty means "call the gateway in-process".
ENDPOINT_URL = os.environ.get("MUSICFOLIO_ENDPOINT", "")

# =============================================================================
# UPLOADS
# =============================================================================

# Window size for base64 encoding of uploaded media
ENCODE_CHUNK_SIZE = 32768

PDF_MIME_TYPE = "application/pdf"
MEDIA_MIME_MARKERS = ("audio", "video")

# Extensions stripped from media filenames to build the display name
MEDIA_EXTENSIONS = (".mp3", ".mp4", ".wav", ".m4a")

# Concurrent transcriptions in a single CLI run
MAX_PARALLEL_UPLOADS = 4

# =============================================================================
# SHEET VIEWER GESTURES
# =============================================================================

DOUBLE_CLICK_WINDOW = 0.3  # seconds
SWIPE_THRESHOLD = 100  # horizontal drag units
PAGES_PER_SPREAD = 2

# =============================================================================
# SERVER
# =============================================================================

CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

HOST = os.environ.get("MUSICFOLIO_HOST", "127.0.0.1")
PORT = int(os.environ.get("MUSICFOLIO_PORT", "8000"))

# =============================================================================
# LOGGING
# =============================================================================

LOG_DIR = "logs"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

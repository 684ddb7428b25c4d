"""
Chunked base64 encoding for uploaded media.

Media is read in fixed-size windows and the windows are joined before a
single base64 pass, so window boundaries never land inside a base64 quantum.
"""

import base64
import binascii
from pathlib import Path
from typing import Iterator

import config
from .errors import ValidationError


def iter_windows(data: bytes, size: int = config.ENCODE_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield consecutive windows of at most `size` bytes."""
    if size <= 0:
        raise ValueError(f"Window size must be positive, got {size}")

    view = memoryview(data)
    for start in range(0, len(view), size):
        yield view[start:start + size].tobytes()


def encode_base64(data: bytes, chunk_size: int = config.ENCODE_CHUNK_SIZE) -> str:
    """
    Encode binary content as standard base64 text.

    The buffer is accumulated window by window and encoded once; the result
    decodes to exactly the input bytes for any length.
    """
    buffer = bytearray()
    for window in iter_windows(data, chunk_size):
        buffer.extend(window)

    return base64.b64encode(bytes(buffer)).decode("ascii")


def encode_file(path: Path, chunk_size: int = config.ENCODE_CHUNK_SIZE) -> str:
    """Read a media file window by window and return its base64 text."""
    buffer = bytearray()
    with open(path, "rb") as f:
        while True:
            window = f.read(chunk_size)
            if not window:
                break
            buffer.extend(window)

    return base64.b64encode(bytes(buffer)).decode("ascii")


def decode_base64(text: str) -> bytes:
    """Strictly decode base64 text, raising ValidationError on bad input."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base64 audio data: {e}")

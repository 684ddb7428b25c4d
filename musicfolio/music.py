"""
Music theory helpers for keys and harmonic fields.
"""

import re

# Note names by semitone, for key indexing and harmonic fields
NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NOTES_FLAT = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Keys conventionally spelled with flats
FLAT_KEYS = {"F", "Bb", "Eb", "Ab", "Db", "Gb", "Dm", "Gm", "Cm", "Fm", "Bbm", "Ebm"}

KEY_PATTERN = re.compile(r'^[A-G][#b]?m?$')

# Semitone offsets and triad qualities of the diatonic degrees
MAJOR_DEGREES = [(0, ""), (2, "m"), (4, "m"), (5, ""), (7, ""), (9, "m"), (11, "dim")]
MINOR_DEGREES = [(0, "m"), (2, "dim"), (3, ""), (5, "m"), (7, "m"), (8, ""), (10, "")]


def normalize_key(key: str) -> str:
    """Normalize key name (handle flats, sharps, minor notation)."""
    if not key:
        return None

    key = key.strip()

    # Handle common variations (longest first)
    key = key.replace("minor", "m").replace("min", "m")
    key = key.replace("major", "").replace("maj", "").strip()

    # Normalize case: root uppercase, accidental and m lowercase
    if len(key) >= 1:
        root = key[0].upper()
        rest = key[1:].lower() if len(key) > 1 else ""
        key = root + rest

    return key


def is_valid_key(key: str) -> bool:
    """Check that a key reads as root + optional accidental + optional m."""
    key = normalize_key(key)
    return bool(key) and KEY_PATTERN.match(key) is not None


def is_minor(key: str) -> bool:
    """Check if a key is minor."""
    if not key:
        return False
    return "m" in key.lower() and "maj" not in key.lower()


def get_root(key: str) -> str:
    """Extract root note from key (e.g., 'Am' -> 'A', 'F#m' -> 'F#')."""
    key = normalize_key(key)
    if not key:
        return None

    root = key[:-1] if key.endswith("m") else key

    # Handle sharps/flats
    if len(root) > 1 and root[1] in "#b":
        return root[:2]
    return root[0] if root else None


def key_to_index(key: str) -> int:
    """Convert key to semitone index (0-11)."""
    root = get_root(key)
    if not root:
        return -1

    if root in NOTES:
        return NOTES.index(root)
    if root in NOTES_FLAT:
        return NOTES_FLAT.index(root)

    return -1


def harmonic_field(key: str) -> list[str]:
    """
    Get the seven diatonic triads of a key, in degree order.

    E.g., "C" -> ["C", "Dm", "Em", "F", "G", "Am", "Bdim"]
          "Am" -> ["Am", "Bdim", "C", "Dm", "Em", "F", "G"]
    """
    key = normalize_key(key)
    idx = key_to_index(key)
    if idx < 0:
        return []

    spelling = NOTES_FLAT if (key in FLAT_KEYS or "b" in get_root(key)) else NOTES
    degrees = MINOR_DEGREES if is_minor(key) else MAJOR_DEGREES

    return [spelling[(idx + offset) % 12] + quality for offset, quality in degrees]

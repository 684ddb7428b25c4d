"""
Gateway response parsing and chord extraction.

Model output is free-form text, so everything here is best-effort: when the
expected section markers are missing, the whole response is used as content.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


# Chord grammar: A, Am, A7, C7M, Amaj7, A#dim, Bb, Csus4, E7(9), D/F#, etc.
CHORD = (
    r'[A-G][#b]?'                         # Root note (A-G with optional sharp/flat)
    r'(?:maj|min|m|M|dim|aug|\+|°)?'      # Quality
    r'(?:[0-9]{1,2}M?)?'                  # Extension (7, 9, 13), 7M major seventh
    r'(?:sus[24]?)?'                      # Suspended
    r'(?:add[0-9]{1,2})?'                 # Added tone
    r'(?:\([0-9b#+,]+\))?'                # Tensions in parentheses: E7(9), G(b13)
    r'(?:/[A-G][#b]?)?'                   # Bass note (slash chord)
)

CHORD_PATTERN = re.compile(rf'^{CHORD}$')

# Inline chords: [Am], [G/B]. "[?]" marks uncertain lyrics and never matches.
BRACKET_CHORD_PATTERN = re.compile(rf'\[({CHORD})\]')

# Bare chords on formatted cifra text, not glued to other word characters
BARE_CHORD_PATTERN = re.compile(rf'(?<![\w#/(\[]){CHORD}(?![\w#/)\]])')

# Key line, possibly wrapped in markdown ("**TOM: Dm**") or followed by an
# extension ("TOM: Am7"). A trailing letter means a word, not a key.
KEY_PATTERN = re.compile(r'TOM:\s*([A-G][#b]?m?)(?![^\W\d_])')

# Delimiter pairs, searched in order
SECTION_MARKERS = [
    ("---RESPOSTA---", "---FIM---"),
    ("---LETRA---", "---FIM---"),
]

# Single-letter chords that collide with Portuguese words ("A casa", "E depois")
AMBIGUOUS_BARE_CHORDS = {"A", "E"}


@dataclass
class ParsedResponse:
    lyrics: str
    chords: list[str] = field(default_factory=list)
    detected_key: str | None = None


def extract_section(content: str) -> str | None:
    """
    Return the trimmed text between the first known delimiter pair.

    Returns None when no pair is present.
    """
    for start, end in SECTION_MARKERS:
        match = re.search(re.escape(start) + r'([\s\S]*?)' + re.escape(end), content)
        if match:
            return match.group(1).strip()
    return None


def extract_key(content: str) -> str | None:
    """Extract the key announced on a `TOM: <key>` line."""
    match = KEY_PATTERN.search(content)
    return match.group(1) if match else None


def _unique(chords) -> list[str]:
    """Collapse duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for chord in chords:
        if chord not in seen:
            seen.add(chord)
            result.append(chord)
    return result


def extract_bracket_chords(content: str) -> list[str]:
    """Extract distinct inline `[Chord]` annotations in order of appearance."""
    return _unique(BRACKET_CHORD_PATTERN.findall(content))


def is_chord_line(line: str) -> bool:
    """True when every token on a non-empty line is a chord."""
    tokens = line.split()
    return bool(tokens) and all(CHORD_PATTERN.match(token) for token in tokens)


def _is_padded(line: str, start: int, end: int) -> bool:
    """True when a token has two whitespace chars (or the line edge) on both sides."""
    before = line[max(0, start - 2):start]
    after = line[end:end + 2]
    left = start == 0 or (len(before) == 2 and before.isspace())
    right = end == len(line) or (len(after) == 2 and after.isspace())
    return left and right


def extract_bare_chords(content: str) -> list[str]:
    """
    Extract distinct chords written without brackets above lyric lines.

    Bare "A" and "E" are only kept when they stand on a chord-only line or
    are padded by whitespace; otherwise they are read as words.
    """
    found = []
    for line in content.splitlines():
        chord_line = is_chord_line(line)
        for match in BARE_CHORD_PATTERN.finditer(line):
            chord = match.group(0)
            if chord in AMBIGUOUS_BARE_CHORDS and not chord_line:
                if not _is_padded(line, match.start(), match.end()):
                    continue
            found.append(chord)

    return _unique(found)


def parse_response(content: str, bare_chords: bool = False) -> ParsedResponse:
    """
    Parse raw model output into lyrics, chords and the detected key.

    Args:
        content: The assistant message text
        bare_chords: Use bare chord matching (formatted cifras) instead of
                     bracketed inline chords
    """
    content = content or ""

    lyrics = extract_section(content)
    if lyrics is None:
        logger.debug("No section markers found, using the whole response")
        lyrics = content

    if bare_chords:
        chords = extract_bare_chords(lyrics)
    else:
        chords = extract_bracket_chords(content)

    return ParsedResponse(
        lyrics=lyrics,
        chords=chords,
        detected_key=extract_key(content),
    )

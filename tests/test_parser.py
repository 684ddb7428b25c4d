"""
Unit tests for musicfolio/parser.py - sections, key and chord extraction.
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from musicfolio.parser import (
    extract_bare_chords,
    extract_bracket_chords,
    extract_key,
    extract_section,
    is_chord_line,
    parse_response,
)


class TestExtractSection:
    """Tests for extract_section()"""

    def test_letra_markers(self):
        """Content between ---LETRA--- and ---FIM--- is returned trimmed"""
        content = "Claro! Aqui está:\n---LETRA--- X ---FIM---\nEspero que ajude."
        assert extract_section(content) == "X"

    def test_resposta_markers(self):
        content = "TOM: G\n---RESPOSTA---\n[G]Olha que coisa\n---FIM---"
        assert extract_section(content) == "[G]Olha que coisa"

    def test_resposta_preferred_over_letra(self):
        content = "---LETRA---a---FIM--- ---RESPOSTA---b---FIM---"
        assert extract_section(content) == "b"

    def test_no_markers(self):
        assert extract_section("just text") is None

    def test_unterminated_section(self):
        """A start marker without ---FIM--- is not a section"""
        assert extract_section("---LETRA---\nsome lyrics") is None


class TestExtractKey:
    """Tests for extract_key()"""

    def test_minor_key(self):
        assert extract_key("TOM: Dm\n---RESPOSTA---\n...\n---FIM---") == "Dm"

    def test_sharp_and_flat_keys(self):
        assert extract_key("TOM: F#m") == "F#m"
        assert extract_key("TOM: Bb") == "Bb"

    def test_key_on_later_line(self):
        assert extract_key("Análise concluída.\nTOM: E\n") == "E"

    def test_no_key(self):
        assert extract_key("[C]Sem tom informado") is None

    def test_not_a_key(self):
        """Words after TOM: that are not notes are ignored"""
        assert extract_key("TOM: Dó maior") is None

    def test_key_with_extension(self):
        """Only the key token is taken from an extended chord"""
        assert extract_key("TOM: Am7") == "Am"

    def test_key_in_markdown(self):
        assert extract_key("**TOM: Dm**\n---RESPOSTA---\nx\n---FIM---") == "Dm"


class TestExtractBracketChords:
    """Tests for extract_bracket_chords()"""

    def test_duplicates_collapsed_in_order(self):
        """[Am] [G] [Am] -> Am, G"""
        assert extract_bracket_chords("[Am] [G] [Am]") == ["Am", "G"]

    def test_complex_chords(self):
        content = "[Cmaj7]Olha [A7/C#]que [Dm7]coisa [G7sus4]mais [F#m7]linda [Bbdim]"
        assert extract_bracket_chords(content) == ["Cmaj7", "A7/C#", "Dm7", "G7sus4", "F#m7", "Bbdim"]

    def test_major_seventh_m_suffix(self):
        """Brazilian 7M spelling for major seventh"""
        assert extract_bracket_chords("[C7M]Olha [Am7M]que [G]coisa") == ["C7M", "Am7M", "G"]

    def test_uncertain_marker_ignored(self):
        """[?] marks uncertain lyrics, not a chord"""
        assert extract_bracket_chords("[C]Eu [?] você [G]") == ["C", "G"]

    def test_section_labels_ignored(self):
        assert extract_bracket_chords("[Refrão]\n[Em]Tudo [Intro]") == ["Em"]


class TestExtractBareChords:
    """Tests for extract_bare_chords() - formatted cifras"""

    def test_chords_above_lyrics(self):
        content = """[Intro]
G  D  Em  C

[Verso]
G              D
Quando a gente ama
Em            C
Sempre fica assim
"""
        assert extract_bare_chords(content) == ["G", "D", "Em", "C"]

    def test_a_and_e_on_chord_line(self):
        """A and E are chords on a chord-only line"""
        content = "A E D\nA casa é azul\nE depois choveu"
        assert extract_bare_chords(content) == ["A", "E", "D"]

    def test_a_and_e_as_words_skipped(self):
        """Capitalised 'A' and 'E' starting lyric lines are words"""
        content = "A vida é bela\nE o vento levou"
        assert extract_bare_chords(content) == []

    def test_padded_a_kept(self):
        """An A with wide spacing on a mixed line reads as a chord"""
        content = "Intro:  A  (2x)"
        assert "A" in extract_bare_chords(content)

    def test_major_seventh_on_chord_line(self):
        assert extract_bare_chords("C7M  Am\nOlha que coisa") == ["C7M", "Am"]

    def test_chords_glued_to_words_skipped(self):
        assert extract_bare_chords("Dança comigo\nBem devagar") == []

    def test_bracketed_chords_not_counted(self):
        assert extract_bare_chords("[Am]la la") == []


class TestIsChordLine:
    """Tests for is_chord_line()"""

    def test_chord_line(self):
        assert is_chord_line("  Am   F   C/E  G7 ") is True

    def test_lyric_line(self):
        assert is_chord_line("A casa caiu") is False

    def test_blank_line(self):
        assert is_chord_line("   ") is False


class TestParseResponse:
    """Tests for parse_response()"""

    def test_letra_response(self):
        content = "Ok!\n---LETRA---\n[Am]Fui [G]ver o [Am]mar\n---FIM---\nFim."
        parsed = parse_response(content)
        assert parsed.lyrics == "[Am]Fui [G]ver o [Am]mar"
        assert parsed.chords == ["Am", "G"]
        assert parsed.detected_key is None

    def test_key_detection_response(self):
        content = "TOM: Dm\n---RESPOSTA---\n[Dm]Noite [A7]fria\n---FIM---"
        parsed = parse_response(content)
        assert parsed.lyrics == "[Dm]Noite [A7]fria"
        assert parsed.chords == ["Dm", "A7"]
        assert parsed.detected_key == "Dm"

    def test_fallback_to_whole_text(self):
        """No delimiter pair: the entire response is the lyrics"""
        content = "Não consegui delimitar, mas: [C]Lá [G]vem"
        parsed = parse_response(content)
        assert parsed.lyrics == content
        assert parsed.chords == ["C", "G"]

    def test_fallback_without_chords(self):
        parsed = parse_response("Só texto")
        assert parsed.lyrics == "Só texto"
        assert parsed.chords == []

    def test_bare_mode(self):
        content = "---RESPOSTA---\n[Verso]\nC        G\nA casa caiu\n---FIM---"
        parsed = parse_response(content, bare_chords=True)
        assert parsed.chords == ["C", "G"]

    def test_empty_response(self):
        parsed = parse_response(None)
        assert parsed.lyrics == ""
        assert parsed.chords == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

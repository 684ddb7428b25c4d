"""
Unit tests for musicfolio/views.py - tab views and the root page.
"""

import fitz  # PyMuPDF
import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from musicfolio.models import (
    CifraStatus,
    FormatOnlyRequest,
    GatewayResponse,
    RawAudioRequest,
)
from musicfolio.state import Tab
from musicfolio.views import (
    EMPTY_CHORDS,
    EMPTY_LYRICS,
    ERROR_LYRICS,
    MSG_INVALID_MEDIA,
    MSG_INVALID_PDF,
    RootPage,
    count_pages,
)


def make_pdf(pages: int) -> bytes:
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data


class FakeTranscriber:
    """Records requests and answers with a fixed response."""

    def __init__(self, response: GatewayResponse = None, error: Exception = None):
        self.response = response or GatewayResponse.ok("[Am]Letra", ["Am"], "Am")
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.response


def make_page(transcriber=None):
    notices = []
    page = RootPage(transcriber or FakeTranscriber(), notify=notices.append)
    return page, notices


class TestRootPage:
    """Tests for RootPage tab selection"""

    def test_starts_on_partituras(self):
        page, _ = make_page()
        assert page.active_view() is page.partituras

    def test_switch_to_cifras(self):
        page, _ = make_page()
        page.set_tab(Tab.CIFRAS)
        assert page.active_view() is page.cifras


class TestPartiturasUpload:
    """Tests for PartiturasView.upload()"""

    def test_pdf_added(self):
        page, notices = make_page()
        sheet = page.partituras.upload("Asa Branca.pdf", "application/pdf", make_pdf(3))

        assert sheet.name == "Asa Branca"
        assert sheet.page_count == 3
        assert sheet.locator.startswith("blob:")
        assert page.state.sheets == (sheet,)
        assert notices[-1].level == "success"

    def test_non_pdf_rejected(self):
        """Non-PDF selection: notice only, no state change"""
        page, notices = make_page()
        before = page.state

        assert page.partituras.upload("notes.txt", "text/plain", b"hello") is None
        assert page.state == before
        assert len(notices) == 1
        assert notices[0].level == "error"
        assert notices[0].message == MSG_INVALID_PDF

    def test_unreadable_pdf_counts_one_page(self):
        assert count_pages(b"not really a pdf") == 1

    def test_remove_clears_selection(self):
        page, _ = make_page()
        sheet = page.partituras.upload("a.pdf", "application/pdf", make_pdf(1))
        page.partituras.select(sheet.id)

        page.partituras.remove(sheet.id)
        assert page.state.sheets == ()
        assert page.partituras.selected is None


class TestPartiturasNavigation:
    """Tests for two-up page navigation"""

    @pytest.fixture
    def view(self):
        page, _ = make_page()
        sheet = page.partituras.upload("score.pdf", "application/pdf", make_pdf(5))
        page.partituras.select(sheet.id)
        return page.partituras

    def test_first_spread(self, view):
        assert view.visible_pages() == [1, 2]

    def test_single_click_turns_forward(self, view):
        view.click(now=10.0)
        assert view.visible_pages() == [3, 4]

    def test_double_click_turns_back(self, view):
        view.click(now=10.0)
        view.click(now=11.0)
        assert view.current_page == 5
        view.click(now=11.2)  # within 300ms of the previous click
        assert view.visible_pages() == [3, 4]

    def test_slow_clicks_keep_going_forward(self, view):
        view.click(now=10.0)
        view.click(now=10.5)
        assert view.visible_pages() == [5]

    def test_stops_at_last_spread(self, view):
        for t in range(10):
            view.click(now=float(t))
        assert view.visible_pages() == [5]

    def test_drag_past_threshold(self, view):
        view.drag(-150)
        assert view.current_page == 3
        view.drag(150)
        assert view.current_page == 1

    def test_small_drag_ignored(self, view):
        view.drag(-100)
        view.drag(60)
        assert view.current_page == 1

    def test_back_resets(self, view):
        view.drag(-150)
        view.back()
        assert view.selected is None
        assert view.visible_pages() == []


class TestCifrasUpload:
    """Tests for CifrasView uploads"""

    def test_completed_upload(self):
        transcriber = FakeTranscriber(GatewayResponse.ok("[Am]Letra [G]aqui", ["Am", "G"], "Am"))
        page, notices = make_page(transcriber)

        cifra = page.cifras.upload("Minha Música.mp3", "audio/mpeg", b"ID3audio")

        assert cifra.name == "Minha Música"
        assert cifra.status == CifraStatus.COMPLETED
        assert cifra.chords == "Am, G"
        assert cifra.key == "Am"
        assert len(page.state.cifras) == 1
        assert [n.level for n in notices] == ["info", "success"]

        request = transcriber.requests[0]
        assert isinstance(request, RawAudioRequest)
        assert request.audio == b"ID3audio"
        assert request.audio_format == "mp3"

    def test_video_accepted(self):
        page, _ = make_page()
        assert page.cifras.upload("show.mp4", "video/mp4", b"video") is not None

    def test_text_file_rejected(self):
        """text/plain upload: no entry added, validation notice only"""
        transcriber = FakeTranscriber()
        page, notices = make_page(transcriber)

        assert page.cifras.upload("letra.txt", "text/plain", b"la la") is None
        assert page.state.cifras == ()
        assert transcriber.requests == []
        assert len(notices) == 1
        assert notices[0].message == MSG_INVALID_MEDIA

    def test_placeholder_replaced_not_duplicated(self):
        """Processing placeholder and final result share one row"""
        page, _ = make_page()
        pending = page.cifras.begin_upload("a.wav", "audio/wav", b"RIFF")

        assert len(page.state.cifras) == 1
        assert page.state.cifras[0].status == CifraStatus.PROCESSING
        assert page.cifras.is_processing is True

        page.cifras.finish_upload(pending, page.cifras.run(pending))

        assert len(page.state.cifras) == 1
        assert page.state.cifras[0].status == CifraStatus.COMPLETED
        assert page.cifras.is_processing is False

    def test_concurrent_uploads_tracked_by_id(self):
        page, _ = make_page()
        first = page.cifras.begin_upload("a.mp3", "audio/mpeg", b"a")
        second = page.cifras.begin_upload("b.mp3", "audio/mpeg", b"b")

        page.cifras.finish_upload(second, GatewayResponse.ok("B", ["C"]))
        page.cifras.finish_upload(first, GatewayResponse.failure("boom"))

        names = [(c.name, c.status) for c in page.state.cifras]
        assert names == [("a", CifraStatus.ERROR), ("b", CifraStatus.COMPLETED)]

    def test_failed_upload_kept_as_error(self):
        page, notices = make_page(FakeTranscriber(GatewayResponse.failure("Rate limit exceeded.", 429)))
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")

        assert cifra.status == CifraStatus.ERROR
        assert cifra.lyrics == ERROR_LYRICS
        assert page.state.cifras == (cifra,)
        assert notices[-1].level == "error"

    def test_raising_transcriber_kept_as_error(self):
        page, _ = make_page(FakeTranscriber(error=ConnectionError("offline")))
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")
        assert cifra.status == CifraStatus.ERROR

    def test_empty_result_uses_fallback_texts(self):
        page, _ = make_page(FakeTranscriber(GatewayResponse.ok("", [])))
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")
        assert cifra.lyrics == EMPTY_LYRICS
        assert cifra.chords == EMPTY_CHORDS

    def test_late_result_after_removal_discarded(self):
        """Removing a processing entry drops its eventual result"""
        page, notices = make_page()
        pending = page.cifras.begin_upload("a.mp3", "audio/mpeg", b"a")
        page.cifras.remove(pending.cifra_id)

        result = page.cifras.finish_upload(pending, GatewayResponse.ok("late", ["G"]))

        assert result is None
        assert page.state.cifras == ()
        assert notices[-1].message != "Cifra gerada com sucesso!"


class TestCifrasSelection:
    """Tests for CifrasView.select()"""

    def test_processing_entry_cannot_be_opened(self):
        page, _ = make_page()
        pending = page.cifras.begin_upload("a.mp3", "audio/mpeg", b"a")
        assert page.cifras.select(pending.cifra_id) is False

    def test_failed_entry_cannot_be_opened(self):
        page, _ = make_page(FakeTranscriber(GatewayResponse.failure("boom")))
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")

        assert cifra.status == CifraStatus.ERROR
        assert page.cifras.select(cifra.id) is False
        assert page.cifras.selected is None

    def test_open_and_remove(self):
        page, _ = make_page()
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")
        assert page.cifras.select(cifra.id) is True
        assert page.cifras.selected == cifra

        page.cifras.remove(cifra.id)
        assert page.cifras.selected is None


class TestCifrasReformat:
    """Tests for CifrasView.reformat()"""

    def test_reformat_updates_same_entry(self):
        transcriber = FakeTranscriber(GatewayResponse.ok("[Am]Letra", ["Am"]))
        page, _ = make_page(transcriber)
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")

        transcriber.response = GatewayResponse.ok("Am   G\nLetra", ["Am", "G"], "Am")
        result = page.cifras.reformat(cifra.id, "am")

        assert len(page.state.cifras) == 1
        assert result.lyrics == "Am   G\nLetra"
        assert result.chords == "Am, G"
        assert result.key == "Am"
        assert result.status == CifraStatus.COMPLETED

        request = transcriber.requests[-1]
        assert isinstance(request, FormatOnlyRequest)
        assert request.key == "Am"
        assert request.song_name == "a"

    def test_failed_reformat_restores_previous(self):
        transcriber = FakeTranscriber()
        page, notices = make_page(transcriber)
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")

        transcriber.response = GatewayResponse.failure("AI gateway error: 500")
        result = page.cifras.reformat(cifra.id, "C")

        assert result == cifra
        assert page.state.cifras == (cifra,)
        assert notices[-1].level == "error"

    def test_invalid_key_rejected(self):
        transcriber = FakeTranscriber()
        page, notices = make_page(transcriber)
        cifra = page.cifras.upload("a.mp3", "audio/mpeg", b"a")

        assert page.cifras.reformat(cifra.id, "H#") is None
        assert len(transcriber.requests) == 1
        assert notices[-1].level == "error"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Partituras and Cifras tab views, and the root page that owns their state.

Views never own the collections: they read them through a getter and change
them only through the callbacks handed down by RootPage. What they do own is
the current selection, the page of the open sheet, and the in-flight count.
"""

import logging
import re
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

import fitz  # PyMuPDF

import config
from . import music
from . import state as app_state
from .models import (
    Cifra,
    CifraStatus,
    FormatOnlyRequest,
    GatewayRequest,
    GatewayResponse,
    RawAudioRequest,
    SheetMusic,
    new_id,
)
from .state import AppState, Tab

logger = logging.getLogger(__name__)

Transcriber = Callable[[GatewayRequest], GatewayResponse]

MEDIA_EXTENSION_PATTERN = re.compile(
    r'\.(' + "|".join(ext.lstrip(".") for ext in config.MEDIA_EXTENSIONS) + r')$',
    re.IGNORECASE,
)

# User-facing messages
MSG_SHEET_ADDED = "Partitura adicionada!"
MSG_SHEET_REMOVED = "Partitura removida"
MSG_INVALID_PDF = "Selecione um arquivo PDF válido"
MSG_PROCESSING = "Processando música com IA..."
MSG_CIFRA_DONE = "Cifra gerada com sucesso!"
MSG_CIFRA_FAILED = "Erro ao processar a música"
MSG_CIFRA_REMOVED = "Cifra removida"
MSG_INVALID_MEDIA = "Selecione um arquivo de áudio ou vídeo"
MSG_FORMAT_DONE = "Cifra formatada!"
MSG_FORMAT_FAILED = "Erro ao formatar a cifra"
MSG_INVALID_KEY = "Tom inválido"

ERROR_LYRICS = "Erro ao processar a música. Tente novamente."
EMPTY_LYRICS = "Não foi possível transcrever a letra."
EMPTY_CHORDS = "Acordes não identificados"


@dataclass(frozen=True)
class Notice:
    level: str  # info | success | error
    message: str


def _ignore(notice: Notice):
    pass


def count_pages(data: bytes) -> int:
    """Number of pages in a PDF, or 1 when the document cannot be read."""
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            return max(doc.page_count, 1)
    except (RuntimeError, ValueError) as e:
        logger.warning(f"Could not read PDF page count: {e}")
        return 1


# =============================================================================
# PARTITURAS
# =============================================================================

class PartiturasView:
    """PDF list with a two-up page viewer."""

    def __init__(self, get_sheets: Callable[[], tuple], on_add: Callable[[SheetMusic], None],
                 on_remove: Callable[[str], None], notify: Callable[[Notice], None] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.get_sheets = get_sheets
        self.on_add = on_add
        self.on_remove = on_remove
        self.notify = notify or _ignore
        self.clock = clock

        self.selected_id = None
        self.current_page = 1
        self._last_click = None

    def upload(self, filename: str, mime_type: str, data: bytes) -> SheetMusic | None:
        """Add a PDF. Anything else is rejected with a notice and no state change."""
        if mime_type != config.PDF_MIME_TYPE:
            logger.info(f"Rejected non-PDF upload: {filename} ({mime_type})")
            self.notify(Notice("error", MSG_INVALID_PDF))
            return None

        sheet_id = new_id()
        sheet = SheetMusic(
            id=sheet_id,
            name=Path(filename).stem,
            data=data,
            locator=f"blob:musicfolio/{sheet_id}",
            page_count=count_pages(data),
        )
        self.on_add(sheet)
        self.notify(Notice("success", MSG_SHEET_ADDED))
        return sheet

    @property
    def selected(self) -> SheetMusic | None:
        if self.selected_id is None:
            return None
        return next((s for s in self.get_sheets() if s.id == self.selected_id), None)

    def select(self, sheet_id: str) -> bool:
        if not any(s.id == sheet_id for s in self.get_sheets()):
            return False
        self.selected_id = sheet_id
        self.current_page = 1
        self._last_click = None
        return True

    def back(self):
        self.selected_id = None
        self.current_page = 1
        self._last_click = None

    def remove(self, sheet_id: str):
        self.on_remove(sheet_id)
        if self.selected_id == sheet_id:
            self.back()
        self.notify(Notice("success", MSG_SHEET_REMOVED))

    @property
    def page_count(self) -> int:
        sheet = self.selected
        return sheet.page_count if sheet else 0

    def visible_pages(self) -> list[int]:
        """Pages shown side by side for the current spread."""
        if not self.selected:
            return []
        last = min(self.current_page + config.PAGES_PER_SPREAD - 1, self.page_count)
        return list(range(self.current_page, last + 1))

    def next_page(self):
        if self.current_page + config.PAGES_PER_SPREAD <= self.page_count:
            self.current_page += config.PAGES_PER_SPREAD

    def previous_page(self):
        if self.current_page > 1:
            self.current_page = max(1, self.current_page - config.PAGES_PER_SPREAD)

    def click(self, now: float = None):
        """Single click turns forward; a second click within the window turns back."""
        now = self.clock() if now is None else now
        if self._last_click is not None and now - self._last_click < config.DOUBLE_CLICK_WINDOW:
            self.previous_page()
        else:
            self.next_page()
        self._last_click = now

    def drag(self, offset_x: float):
        """Horizontal drag past the threshold: left turns forward, right turns back."""
        if offset_x < -config.SWIPE_THRESHOLD:
            self.next_page()
        elif offset_x > config.SWIPE_THRESHOLD:
            self.previous_page()


# =============================================================================
# CIFRAS
# =============================================================================

@dataclass(frozen=True)
class PendingUpload:
    cifra_id: str
    name: str
    request: RawAudioRequest


class CifrasView:
    """Chord sheet list; uploads audio/video for transcription."""

    def __init__(self, get_cifras: Callable[[], tuple], on_add: Callable[[Cifra], None],
                 on_remove: Callable[[str], None], transcriber: Transcriber,
                 notify: Callable[[Notice], None] = None):
        self.get_cifras = get_cifras
        self.on_add = on_add
        self.on_remove = on_remove
        self.transcriber = transcriber
        self.notify = notify or _ignore

        self.selected_id = None
        self.in_flight = 0

    @property
    def is_processing(self) -> bool:
        return self.in_flight > 0

    def _find(self, cifra_id: str) -> Cifra | None:
        return next((c for c in self.get_cifras() if c.id == cifra_id), None)

    def _merge_if_present(self, cifra: Cifra) -> bool:
        """Replace by id unless the entry was removed while the call was in flight."""
        if self._find(cifra.id) is None:
            logger.info(f"Discarding late result for removed cifra: {cifra.name}")
            return False
        self.on_add(cifra)
        return True

    def begin_upload(self, filename: str, mime_type: str, data: bytes) -> PendingUpload | None:
        """
        Validate the upload and insert a `processing` placeholder.

        Returns None (after a notice) when the file is not audio or video.
        """
        mime_type = mime_type or ""
        if not any(marker in mime_type for marker in config.MEDIA_MIME_MARKERS):
            logger.info(f"Rejected non-media upload: {filename} ({mime_type})")
            self.notify(Notice("error", MSG_INVALID_MEDIA))
            return None

        name = MEDIA_EXTENSION_PATTERN.sub("", filename)
        pending = PendingUpload(
            cifra_id=new_id(),
            name=name,
            request=RawAudioRequest(audio=data, filename=name, mime_type=mime_type),
        )

        self.on_add(Cifra(id=pending.cifra_id, name=name, status=CifraStatus.PROCESSING))
        self.in_flight += 1
        self.notify(Notice("info", MSG_PROCESSING))
        return pending

    def run(self, pending: PendingUpload) -> GatewayResponse:
        """Call the transcriber. Safe to run off the main thread: touches no state."""
        try:
            return self.transcriber(pending.request)
        except Exception as e:
            logger.error(f"Error transcribing {pending.name}: {e}")
            return GatewayResponse.failure(str(e) or type(e).__name__)

    def finish_upload(self, pending: PendingUpload, response: GatewayResponse) -> Cifra | None:
        """Turn the placeholder into a completed or error entry."""
        self.in_flight = max(0, self.in_flight - 1)

        if response.success:
            cifra = Cifra(
                id=pending.cifra_id,
                name=pending.name,
                lyrics=response.lyrics or EMPTY_LYRICS,
                chords=", ".join(response.chords) or EMPTY_CHORDS,
                status=CifraStatus.COMPLETED,
                key=response.detected_key,
            )
        else:
            logger.error(f"Transcription failed for {pending.name}: {response.error}")
            cifra = Cifra(
                id=pending.cifra_id,
                name=pending.name,
                lyrics=ERROR_LYRICS,
                chords="",
                status=CifraStatus.ERROR,
            )

        if not self._merge_if_present(cifra):
            return None

        if cifra.status == CifraStatus.COMPLETED:
            self.notify(Notice("success", MSG_CIFRA_DONE))
        else:
            self.notify(Notice("error", MSG_CIFRA_FAILED))
        return cifra

    def upload(self, filename: str, mime_type: str, data: bytes) -> Cifra | None:
        """Validate, transcribe and merge one file synchronously."""
        pending = self.begin_upload(filename, mime_type, data)
        if pending is None:
            return None
        return self.finish_upload(pending, self.run(pending))

    def reformat(self, cifra_id: str, key: str) -> Cifra | None:
        """
        Reformat a completed cifra as chords-above-lyrics in the given key.

        On failure the previous content is restored.
        """
        previous = self._find(cifra_id)
        if previous is None or previous.status != CifraStatus.COMPLETED:
            return None
        if not music.is_valid_key(key):
            self.notify(Notice("error", MSG_INVALID_KEY))
            return None

        key = music.normalize_key(key)
        self.on_add(replace(previous, status=CifraStatus.PROCESSING))
        self.in_flight += 1

        request = FormatOnlyRequest(lyrics=previous.lyrics, key=key, song_name=previous.name)
        try:
            response = self.transcriber(request)
        except Exception as e:
            logger.error(f"Error formatting {previous.name}: {e}")
            response = GatewayResponse.failure(str(e) or type(e).__name__)
        finally:
            self.in_flight = max(0, self.in_flight - 1)

        if response.success:
            cifra = replace(
                previous,
                lyrics=response.lyrics or previous.lyrics,
                chords=", ".join(response.chords) or previous.chords,
                key=response.detected_key or key,
            )
        else:
            logger.error(f"Formatting failed for {previous.name}: {response.error}")
            cifra = previous

        if not self._merge_if_present(cifra):
            return None

        if response.success:
            self.notify(Notice("success", MSG_FORMAT_DONE))
        else:
            self.notify(Notice("error", MSG_FORMAT_FAILED))
        return cifra

    @property
    def selected(self) -> Cifra | None:
        if self.selected_id is None:
            return None
        return self._find(self.selected_id)

    def select(self, cifra_id: str) -> bool:
        """Open a cifra. Only completed entries can be opened."""
        cifra = self._find(cifra_id)
        if cifra is None or cifra.status != CifraStatus.COMPLETED:
            return False
        self.selected_id = cifra_id
        return True

    def back(self):
        self.selected_id = None

    def remove(self, cifra_id: str):
        self.on_remove(cifra_id)
        if self.selected_id == cifra_id:
            self.back()
        self.notify(Notice("success", MSG_CIFRA_REMOVED))


# =============================================================================
# ROOT PAGE
# =============================================================================

class RootPage:
    """Owns the session state and renders one tab view at a time."""

    def __init__(self, transcriber: Transcriber, notify: Callable[[Notice], None] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.state = AppState()
        self.partituras = PartiturasView(
            get_sheets=lambda: self.state.sheets,
            on_add=self.add_sheet,
            on_remove=self.remove_sheet,
            notify=notify,
            clock=clock,
        )
        self.cifras = CifrasView(
            get_cifras=lambda: self.state.cifras,
            on_add=self.add_cifra,
            on_remove=self.remove_cifra,
            transcriber=transcriber,
            notify=notify,
        )

    def add_sheet(self, sheet: SheetMusic):
        self.state = app_state.add_sheet(self.state, sheet)

    def remove_sheet(self, sheet_id: str):
        self.state = app_state.remove_sheet(self.state, sheet_id)

    def add_cifra(self, cifra: Cifra):
        self.state = app_state.upsert_cifra(self.state, cifra)

    def remove_cifra(self, cifra_id: str):
        self.state = app_state.remove_cifra(self.state, cifra_id)

    def set_tab(self, tab: Tab):
        self.state = app_state.set_tab(self.state, tab)

    def active_view(self):
        if self.state.active_tab == Tab.CIFRAS:
            return self.cifras
        return self.partituras

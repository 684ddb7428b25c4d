#!/usr/bin/env python3
"""
Music Folio

Collect sheet music PDFs and turn recordings into chord sheets (cifras)
with an AI gateway. State only lives for the duration of one command.

Usage:
    python folio.py transcribe song.mp3 other.wav      # requires AI_GATEWAY_API_KEY
    python folio.py transcribe song.mp3 --endpoint http://127.0.0.1:8000/transcribe-audio
    python folio.py format letra.txt --key Am
    python folio.py sheets score.pdf --pages
    python folio.py serve
"""

import argparse
import logging
import mimetypes
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path

import config
from musicfolio import llm
from musicfolio import state as app_state
from musicfolio.endpoint import EndpointClient
from musicfolio.errors import ConfigurationError
from musicfolio.models import Cifra, CifraStatus, LegacyFilenameRequest, new_id
from musicfolio.state import Tab
from musicfolio.views import Notice, RootPage

logger = logging.getLogger(__name__)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging():
    """Configure logging to a file, with only warnings on the console."""
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"folio_{timestamp}.log"

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            console,
        ],
    )


# =============================================================================
# HELPERS
# =============================================================================

NOTICE_PREFIX = {"info": "..", "success": "OK", "error": "!!"}


def print_notice(notice: Notice):
    print(f"[{NOTICE_PREFIX.get(notice.level, '--')}] {notice.message}")


def get_transcriber(endpoint: str = None):
    """Use a running endpoint when given, otherwise call the gateway in-process."""
    endpoint = endpoint or config.ENDPOINT_URL
    if endpoint:
        return EndpointClient(endpoint)
    return llm.require_client()


def guess_mime(path: Path, override: str = None) -> str:
    if override:
        return override
    mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


def print_cifra(cifra: Cifra):
    print(f"\n{'='*60}")
    print(f"{cifra.name}  [{cifra.status.value}]")
    print(f"{'='*60}")
    if cifra.key:
        print(f"Tom: {cifra.key}")
    chords = cifra.chord_list()
    if chords:
        print(f"Acordes: {'  '.join(chords)}")
    print()
    print(cifra.lyrics)


def read_file(path: Path) -> bytes | None:
    if not path.exists():
        print(f"Error: File not found: {path}")
        return None
    return path.read_bytes()


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_transcribe(args):
    """Transcribe audio/video files into cifras, several at a time."""
    try:
        transcriber = get_transcriber(args.endpoint)
    except ConfigurationError as e:
        print(f"Error: {e}")
        print(f"Set {config.API_KEY_ENV} or pass --endpoint.")
        sys.exit(1)

    page = RootPage(transcriber, notify=print_notice)
    page.set_tab(Tab.CIFRAS)
    view = page.active_view()

    pending = []
    for name in args.files:
        path = Path(name)
        data = read_file(path)
        if data is None:
            continue
        print(f"{path.name}...")
        upload = view.begin_upload(path.name, guess_mime(path, args.mime), data)
        if upload is not None:
            pending.append(upload)

    if not pending:
        print("Nothing to transcribe.")
        return

    logger.info(f"Transcribing {len(pending)} file(s)")

    # Gateway calls run in parallel; state is only touched here, on the main thread
    with ThreadPoolExecutor(max_workers=config.MAX_PARALLEL_UPLOADS) as executor:
        futures = {executor.submit(view.run, upload): upload for upload in pending}
        for future in as_completed(futures):
            view.finish_upload(futures[future], future.result())

    for cifra in page.state.cifras:
        print_cifra(cifra)

    failed = sum(1 for c in page.state.cifras if c.status == CifraStatus.ERROR)
    print(f"\nTranscription complete!")
    print(f"  Completed: {len(page.state.cifras) - failed}")
    print(f"  Failed: {failed}")


def cmd_format(args):
    """Reformat a lyrics file as a chords-above-lyrics cifra in a given key."""
    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}")
        sys.exit(1)

    try:
        transcriber = get_transcriber(args.endpoint)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    page = RootPage(transcriber, notify=print_notice)
    cifra = Cifra(
        id=new_id(),
        name=args.name or path.stem,
        lyrics=path.read_text(encoding="utf-8"),
        status=CifraStatus.COMPLETED,
    )
    page.add_cifra(cifra)

    result = page.cifras.reformat(cifra.id, args.key)
    if result is None:
        sys.exit(1)

    print_cifra(app_state.find_cifra(page.state, cifra.id))


def cmd_generate(args):
    """Legacy: ask the model for a cifra based on a song name only."""
    try:
        transcriber = get_transcriber(args.endpoint)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print("Warning: the filename-only mode invents content for unknown songs.")
    response = transcriber(LegacyFilenameRequest(filename=args.name))

    if not response.success:
        print(f"Error: {response.error}")
        sys.exit(1)

    print_cifra(Cifra(
        id=new_id(),
        name=args.name,
        lyrics=response.lyrics,
        chords=", ".join(response.chords),
        status=CifraStatus.COMPLETED,
        key=response.detected_key,
    ))


def cmd_sheets(args):
    """Load PDF sheet music and show page spreads."""
    page = RootPage(transcriber=None, notify=print_notice)
    view = page.active_view()

    for name in args.files:
        path = Path(name)
        data = read_file(path)
        if data is None:
            continue
        view.upload(path.name, guess_mime(path), data)

    sheets = page.state.sheets
    if not sheets:
        print("No sheet music loaded.")
        return

    print(f"\nPartituras ({len(sheets)} loaded):\n")
    for sheet in sheets:
        size_kb = len(app_state.resolve_locator(page.state, sheet.locator) or b"") // 1024
        print(f"  {sheet.name} - {sheet.page_count} page(s), {size_kb} KB  {sheet.locator}")

    if not args.pages:
        return

    for sheet in sheets:
        view.select(sheet.id)
        print(f"\n{sheet.name}:")
        spreads = []
        while True:
            spreads.append(view.visible_pages())
            before = view.current_page
            view.drag(-(config.SWIPE_THRESHOLD + 1))
            if view.current_page == before:
                break
        print("  " + "  |  ".join("-".join(str(p) for p in spread) for spread in spreads))
        view.back()


def cmd_serve(args):
    """Run the transcription endpoint."""
    import uvicorn

    from server import app

    print(f"Serving transcription endpoint on http://{args.host}:{args.port}/transcribe-audio")
    uvicorn.run(app, host=args.host, port=args.port)


def main():
    parser_main = argparse.ArgumentParser(
        description="Music Folio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  transcribe  Transcribe audio/video files into cifras (lyrics + chords)
  format      Reformat lyrics into a cifra in a given key
  generate    (legacy) Generate a cifra from a song name only
  sheets      Load PDF sheet music and show page spreads
  serve       Run the HTTP transcription endpoint

Examples:
  python folio.py transcribe "Garota de Ipanema.mp3"
  python folio.py transcribe a.mp3 b.wav --endpoint http://127.0.0.1:8000/transcribe-audio
  python folio.py format letra.txt --key F#m --name "Minha Música"
  python folio.py sheets partitura.pdf --pages
  python folio.py serve --port 8000
        """,
    )

    subparsers = parser_main.add_subparsers(dest="command", help="Command to run")

    # transcribe command
    p_transcribe = subparsers.add_parser("transcribe", help="Transcribe audio/video into cifras")
    p_transcribe.add_argument("files", nargs="+", help="Audio or video files")
    p_transcribe.add_argument("--endpoint", "-e", help="Transcription endpoint URL (default: call gateway directly)")
    p_transcribe.add_argument("--mime", help="Override the detected MIME type")
    p_transcribe.set_defaults(func=cmd_transcribe)

    # format command
    p_format = subparsers.add_parser("format", help="Reformat lyrics into a cifra")
    p_format.add_argument("file", help="Text file with the lyrics")
    p_format.add_argument("--key", "-k", required=True, help="Key (e.g., C, Am, F#m, Bb)")
    p_format.add_argument("--name", "-n", help="Song name (default: file name)")
    p_format.add_argument("--endpoint", "-e", help="Transcription endpoint URL")
    p_format.set_defaults(func=cmd_format)

    # generate command (legacy)
    p_generate = subparsers.add_parser("generate", help="(legacy) Cifra from a song name only")
    p_generate.add_argument("name", help="Song or file name")
    p_generate.add_argument("--endpoint", "-e", help="Transcription endpoint URL")
    p_generate.set_defaults(func=cmd_generate)

    # sheets command
    p_sheets = subparsers.add_parser("sheets", help="Load PDF sheet music")
    p_sheets.add_argument("files", nargs="+", help="PDF files")
    p_sheets.add_argument("--pages", "-p", action="store_true", help="Page through each sheet")
    p_sheets.set_defaults(func=cmd_sheets)

    # serve command
    p_serve = subparsers.add_parser("serve", help="Run the transcription endpoint")
    p_serve.add_argument("--host", default=config.HOST, help=f"Bind address (default: {config.HOST})")
    p_serve.add_argument("--port", type=int, default=config.PORT, help=f"Port (default: {config.PORT})")
    p_serve.set_defaults(func=cmd_serve)

    args = parser_main.parse_args()

    if not args.command:
        parser_main.print_help()
        sys.exit(1)

    setup_logging()
    args.func(args)


if __name__ == "__main__":
    main()

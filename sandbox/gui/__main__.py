import argparse
import logging
import tkinter as tk
from pathlib import Path

from sandbox import setup_logging
import sandbox.config as sandbox_config
from sandbox.config import load_database_dsn, load_hotkeys, load_settings
from sandbox.database import SandboxDatabaseError, SessionRepository
from sandbox.engine.game_state import GameStateStore
from sandbox.engine.persistence import MemorySessionStore, SessionStore
from sandbox.engine.session import create_new_session, get_session_id
from sandbox.gui.field_view import FieldView
from sandbox.gui.scheduler import TkScheduler
from sandbox.imports.constants import ImportFormat
from sandbox.imports.deck_validation import DeckImportError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Launch the card sandbox")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--import-json", type=Path, default=None, help="Import a JSON deck file on startup")
    parser.add_argument("--import-tts", type=Path, default=None, help="Import a file of TTS codes on startup")
    parser.add_argument("--images", type=Path, default=None, help="Directory of local card scans")
    parser.add_argument("--new-session", action="store_true", help="Start a fresh session id")
    parser.add_argument("--memory", action="store_true", help="Keep the session in memory only")
    return parser


def build_repository(args: argparse.Namespace) -> SessionStore:
    if args.memory:
        return MemorySessionStore()
    repository = SessionRepository(load_database_dsn(args.config))
    try:
        repository.ensure_schema()
    except SandboxDatabaseError:
        # The store records the failure again on load and keeps playing offline
        logger.warning("Could not prepare the session table", exc_info=True)
    return repository


def import_on_startup(store: GameStateStore, view: FieldView, path: Path, fmt: ImportFormat) -> None:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Could not read %s: %s", path, exc)
        view.show_warning(f"Could not read {path.name}")
        return
    try:
        result = store.import_text(text, fmt)
    except DeckImportError as exc:
        logger.error("%s", exc)
        view.show_warning(str(exc))
        return
    for message in result.messages:
        logger.info("[%s] %s", message.severity.value, message.message)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    debug_enabled = args.debug or sandbox_config.DEBUG_MODE
    setup_logging(debug=debug_enabled)
    sandbox_config.DEBUG_MODE = debug_enabled

    settings = load_settings(args.config)
    session_id = (
        create_new_session(settings.session_file)
        if args.new_session
        else get_session_id(settings.session_file)
    )
    logger.info("Using session %s", session_id)

    root = tk.Tk()
    root.title("Card Sandbox" if not debug_enabled else "Card Sandbox (debug)")

    store = GameStateStore(
        session_id,
        build_repository(args),
        scheduler=TkScheduler(root),
        debounce_ms=settings.autosave_debounce_ms,
        test_deck_size=settings.test_deck_size,
    )
    store.load()

    view = FieldView(
        root,
        store,
        width=settings.playfield_width,
        height=settings.playfield_height,
        settings=settings,
        image_dir=args.images,
    )
    view.pack(fill="both", expand=True)
    view.configure_hotkeys(load_hotkeys(args.config))
    store.on_warning = view.show_warning

    if args.import_json is not None:
        import_on_startup(store, view, args.import_json, ImportFormat.JSON)
    if args.import_tts is not None:
        import_on_startup(store, view, args.import_tts, ImportFormat.TTS)

    def on_close() -> None:
        store.close()
        root.destroy()

    root.protocol("WM_DELETE_WINDOW", on_close)
    root.mainloop()


if __name__ == "__main__":
    main()

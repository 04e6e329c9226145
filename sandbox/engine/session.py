import logging
import uuid
from pathlib import Path

from sandbox.config import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


def _resolve(path: str | Path | None) -> Path:
    return Path(path) if path else DEFAULT_SETTINGS.session_file


def _temporary_id() -> str:
    return f"temp-{uuid.uuid4()}"


def get_session_id(path: str | Path | None = None) -> str:
    """
    Return the session id stored at ``path``, creating one if absent.

    Parameters
    ----------
    path : str or Path, optional
        State file holding the id; defaults to the configured session file

    Returns
    -------
    session_id : str
        The stored id, or a ``temp-`` prefixed id when the file cannot be used
    """
    state_file = _resolve(path)
    try:
        if state_file.exists():
            existing = state_file.read_text(encoding="utf-8").strip()
            if existing:
                return existing
        return _write_new_id(state_file)
    except OSError:
        logger.exception("Failed to access session file %s", state_file)
        return _temporary_id()


def _write_new_id(state_file: Path) -> str:
    new_id = str(uuid.uuid4())
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_file.write_text(new_id, encoding="utf-8")
    logger.info("Created session %s", new_id)
    return new_id


def create_new_session(path: str | Path | None = None) -> str:
    """Replace any stored session id with a fresh one."""
    state_file = _resolve(path)
    try:
        return _write_new_id(state_file)
    except OSError:
        logger.exception("Failed to create new session in %s", state_file)
        return _temporary_id()


def clear_session(path: str | Path | None = None) -> None:
    state_file = _resolve(path)
    try:
        state_file.unlink(missing_ok=True)
    except OSError:
        logger.exception("Failed to clear session file %s", state_file)

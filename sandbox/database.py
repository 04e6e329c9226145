import logging
from contextlib import contextmanager
from collections.abc import Generator

import psycopg2
from psycopg2.extras import Json, RealDictCursor
from pydantic import ValidationError

from sandbox import DEFAULT_DSN
from sandbox.engine.persistence import PersistenceError
from sandbox.schemas import SessionSnapshot

logger = logging.getLogger(__name__)

# Seconds; debounced saves connect from the Tk event loop
CONNECT_TIMEOUT_S = 5


class SandboxDatabaseError(PersistenceError):
    """A session row could not be read, written or decoded."""


SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS game_sessions (
        id BIGSERIAL PRIMARY KEY,
        session_id VARCHAR(64) UNIQUE NOT NULL,
        deck_state JSONB NOT NULL DEFAULT '{"cards": [], "originalCount": 0}'::jsonb,
        hand_state JSONB NOT NULL DEFAULT '{"cards": []}'::jsonb,
        playfield_state JSONB NOT NULL DEFAULT '{"cards": []}'::jsonb,
        deck_metadata JSONB,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    CREATE INDEX IF NOT EXISTS idx_game_sessions_updated_at ON game_sessions(updated_at);
"""


@contextmanager
def get_db_connection(
    dsn: str | None = None, connect_timeout: int = CONNECT_TIMEOUT_S
) -> Generator[psycopg2.extensions.connection, None, None]:
    """
    Context manager for database connections.

    Parameters
    ----------
    dsn : str, optional
        PostgreSQL connection string; defaults to ``SANDBOX_DATABASE_URL``
    connect_timeout : int
        Seconds to wait for the server before giving up

    Yields
    ------
    conn : psycopg2 connection
        Database connection with autocommit enabled
    """
    conn = psycopg2.connect(dsn or DEFAULT_DSN, connect_timeout=connect_timeout)
    conn.autocommit = True
    try:
        yield conn
    finally:
        conn.close()


def _dump(model) -> Json:
    return Json(model.model_dump(mode="json", by_alias=True))


class SessionRepository:
    """Reads and writes session snapshots in the ``game_sessions`` table."""

    def __init__(self, dsn: str | None = None, connect_timeout: int = CONNECT_TIMEOUT_S):
        self.dsn = dsn or DEFAULT_DSN
        self.connect_timeout = connect_timeout

    def ensure_schema(self) -> None:
        try:
            with get_db_connection(self.dsn, self.connect_timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_SQL)
        except psycopg2.Error as exc:
            raise SandboxDatabaseError(f"Could not create game_sessions table: {exc}") from exc
        logger.debug("game_sessions schema ensured")

    def load(self, session_id: str) -> SessionSnapshot | None:
        """
        Fetch the snapshot stored for a session.

        Returns
        -------
        snapshot : SessionSnapshot or None
            None when no row exists yet for ``session_id``
        """
        try:
            with get_db_connection(self.dsn, self.connect_timeout) as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(
                        """
                        SELECT deck_state, hand_state, playfield_state, deck_metadata,
                               created_at, updated_at
                        FROM game_sessions
                        WHERE session_id = %s
                        """,
                        (session_id,),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as exc:
            raise SandboxDatabaseError(f"Failed to load session {session_id}: {exc}") from exc

        if row is None:
            logger.debug("No stored session %s", session_id)
            return None

        try:
            return SessionSnapshot.model_validate(
                {
                    "deck": row["deck_state"],
                    "hand": row["hand_state"],
                    "playfield": row["playfield_state"],
                    "deckMetadata": row["deck_metadata"],
                    "createdAt": row["created_at"],
                    "updatedAt": row["updated_at"],
                }
            )
        except ValidationError as exc:
            raise SandboxDatabaseError(f"Stored session {session_id} is malformed: {exc}") from exc

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        metadata = _dump(snapshot.deck_metadata) if snapshot.deck_metadata is not None else None
        try:
            with get_db_connection(self.dsn, self.connect_timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO game_sessions
                            (session_id, deck_state, hand_state, playfield_state, deck_metadata)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (session_id) DO UPDATE SET
                            deck_state = EXCLUDED.deck_state,
                            hand_state = EXCLUDED.hand_state,
                            playfield_state = EXCLUDED.playfield_state,
                            deck_metadata = EXCLUDED.deck_metadata,
                            updated_at = NOW()
                        """,
                        (
                            session_id,
                            _dump(snapshot.deck),
                            _dump(snapshot.hand),
                            _dump(snapshot.playfield),
                            metadata,
                        ),
                    )
        except psycopg2.Error as exc:
            raise SandboxDatabaseError(f"Failed to save session {session_id}: {exc}") from exc
        logger.debug("Upserted session %s", session_id)

    def delete(self, session_id: str) -> bool:
        try:
            with get_db_connection(self.dsn, self.connect_timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM game_sessions WHERE session_id = %s", (session_id,))
                    return cur.rowcount > 0
        except psycopg2.Error as exc:
            raise SandboxDatabaseError(f"Failed to delete session {session_id}: {exc}") from exc

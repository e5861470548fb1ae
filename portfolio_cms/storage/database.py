"""SQLite database handles with per-call connections and transaction handling."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from portfolio_cms.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """Handle on one SQLite database file.

    Connections are not pooled: each session opens its own connection and
    releases the file descriptor when it closes.
    """

    def __init__(self, path: str | Path, metadata: MetaData, journal_mode: str | None = None):
        """
        Initialize the database handle.

        Args:
            path: Path of the SQLite file (created on first connect).
            metadata: Table metadata used by create_tables()/drop_tables().
            journal_mode: SQLite journal mode. If None, reads from settings.
        """
        settings = get_settings()

        if journal_mode is None:
            journal_mode = settings.journal_mode

        self.path = Path(path)
        self.metadata = metadata

        self.engine = create_engine(
            f"sqlite:///{self.path}",
            poolclass=NullPool,
            echo=settings.sql_echo,
        )

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if journal_mode:
                cursor.execute(f"PRAGMA journal_mode={journal_mode}")
            cursor.close()

        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def create_tables(self) -> None:
        """Create all tables of this database's metadata."""
        logger.debug(f"Creating tables in {self.path.name}")
        self.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all tables of this database's metadata."""
        self.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions with automatic transaction handling.

        Commits when the block completes, rolls back and re-raises on any
        exception, and always closes the session.

        Usage:
            with db.session() as session:
                save_full_content(session, content)
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release every resource held by the engine."""
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"<Database(path={str(self.path)!r})>"

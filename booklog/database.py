from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from fastapi import Request
from pathlib import Path
from typing import Iterator, Optional
import logging
import time

from booklog.core.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 200.0

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _attach_slow_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Store query start time before execution."""
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Log slow queries after execution."""
        if hasattr(context, "_query_start_time"):
            elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
            if elapsed_ms >= SLOW_QUERY_THRESHOLD_MS:
                statement_first_line = statement.split("\n")[0].strip()[:100]
                logger.warning(f"SLOW_QUERY: {elapsed_ms:.2f}ms - {statement_first_line}")


def configure_engine(engine: Engine, debug: bool = False) -> Engine:
    """Install the per-connection hooks every booklog engine needs."""
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    if debug:
        _attach_slow_query_logging(engine)
    return engine


class Database:
    """
    Store handle shared by the whole application.

    Owns the engine and the session factory. Created once at start-up
    (see ``booklog.main.lifespan``) and disposed at shutdown.
    """

    def __init__(self, url: Optional[str] = None, debug: Optional[bool] = None):
        self.url = url or settings.DATABASE_URL
        debug = settings.DEBUG if debug is None else debug

        connect_args = {}
        if self.url.startswith("sqlite"):
            # Request handlers run in a threadpool
            connect_args["check_same_thread"] = False
            self._ensure_sqlite_directory(self.url)

        self.engine = configure_engine(
            create_engine(
                self.url,
                pool_pre_ping=True,
                echo=False,
                connect_args=connect_args,
            ),
            debug=debug,
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @staticmethod
    def _ensure_sqlite_directory(url: str) -> None:
        path = url.split("///", 1)[-1]
        if not path or path == ":memory:":
            return
        Path(path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    def session(self) -> Session:
        return self.SessionLocal()

    def init_db(self, seed_genres: Optional[bool] = None) -> None:
        """
        Create missing tables and seed the default genres.

        create_all() only creates tables that don't exist; it never alters
        existing ones.
        """
        init_db(self.engine)
        if settings.SEED_GENRES if seed_genres is None else seed_genres:
            from booklog.services import genres as genre_service

            db = self.session()
            try:
                created = genre_service.seed_default_genres(db)
                if created:
                    logger.info("Seeded %d default genres", created)
            finally:
                db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def init_db(engine: Engine) -> None:
    # Import all models to ensure they're registered with Base.metadata
    from booklog import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting database session."""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

# Mirrors the readyState codes reported by /api/health
DISCONNECTED = 0
CONNECTED = 1
STATE_NAMES = {DISCONNECTED: "disconnected", CONNECTED: "connected"}


class Database:
    """
    Owns the engine and session factory for one database URL.

    The engine is created on first use, so the app can start while the
    database is still unreachable. A failed health check disposes the pool
    and the next checkout opens fresh connections.
    """

    def __init__(self, url: str):
        if not url:
            raise ValueError("DATABASE_URL is not set in .env file")
        self.url = url
        self._engine: Optional[Engine] = None
        self._session_factory = None
        self.state = DISCONNECTED

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._connect()
        return self._engine

    def _connect(self):
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine = create_engine(
            self.url,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )
        # Registers every table on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self.state = CONNECTED
        logger.info("Connected to database %s", self.name)

    @property
    def name(self) -> str:
        return self.url.rsplit("/", 1)[-1] or "N/A"

    def session(self):
        if self._session_factory is None:
            self._connect()
        return self._session_factory()

    def ping(self) -> int:
        """Run a trivial query and return the resulting connection state."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.state = CONNECTED
        except SQLAlchemyError as exc:
            logger.warning("Database health check failed: %s", exc)
            self.state = DISCONNECTED
            if self._engine is not None:
                self._engine.dispose()
        return self.state

    def close(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self.state = DISCONNECTED


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()

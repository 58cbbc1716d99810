from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from sprintboard.core.config import Settings


def _engine_kwargs(settings: Settings) -> dict:
    url = settings.DATABASE_URL
    timeout = settings.DB_TIMEOUT_S
    if url.startswith("sqlite"):
        # SQLite + FastAPI: sessions are used from worker threads
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    connect_args = {}
    if url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        }
    return {"connect_args": connect_args, "pool_timeout": timeout, "pool_pre_ping": True}


class Database:
    """Store handle: one engine plus its session factory.

    Built once at process start (see ``create_app``) and disposed at shutdown.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings))
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("select 1"))

    def dispose(self) -> None:
        self.engine.dispose()


# FastAPI dependency: one session per request, always closed
def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

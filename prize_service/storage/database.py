"""Engine and session plumbing for the rule store and payout history."""

from collections.abc import Generator
import os

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prize_service.db")


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # Every session must see the same in-memory database.
        options["poolclass"] = StaticPool
    return create_engine(url, **options)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False)


engine = create_db_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    from prize_service.storage import models  # noqa: F401  registers tables

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    with SessionLocal() as db:
        yield db

# clinic_slots/db/base.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_slots.core.config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL, echo: bool = DB_ECHO):
    """
    Create an engine for the given URL.
    SQLite connections are shared across request threads, so they get a
    generous busy timeout instead of failing fast on a locked database.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=300)


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None):
    """Create all tables. Models are imported here so they register with Base.metadata."""
    from clinic_slots.db.models import (  # noqa: F401
        appointment,
        block,
        leave,
        schedule,
        slot,
        slot_configuration,
    )

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

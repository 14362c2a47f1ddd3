# plainweb/database.py
import logging
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from .settings import get_settings

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()


def _engine_kwargs(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Detect broken connections
        "pool_recycle": 1800,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
    }


def make_engine(url: str):
    return create_engine(url, future=True, **_engine_kwargs(url))


# ── Database Engine ──────────────────────────────────────────────────────────
engine = make_engine(get_settings().DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def init_db(bind=None, drop_all: bool = False) -> None:
    """
    Create tables if they don't exist.

    WARNING: drop_all=True will DELETE ALL DATA; use only in dev/testing!
    """
    bind = bind or engine
    try:
        # Import all models so they register with Base.metadata
        from . import models  # noqa: F401

        if drop_all:
            logger.warning("Dropping all tables! This will delete all data.")
            Base.metadata.drop_all(bind=bind)

        Base.metadata.create_all(bind=bind)
        logger.info("Database initialized successfully.")
    except SQLAlchemyError as e:
        logger.error("Database initialization failed: %s", e)
        raise


def dispose_engine() -> None:
    engine.dispose()
    logger.info("Database engine disposed.")

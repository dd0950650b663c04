"""
Database connection and setup
SQLAlchemy engine and sessions, URL taken from settings
"""
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config.settings import settings
from league.models import Base

logger = logging.getLogger("league.db")

DATABASE_URL = settings.database_url

# SQLite needs check_same_thread off to be shared across request threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=settings.sql_echo,
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@retry(
    stop=stop_after_attempt(settings.db_connect_attempts),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
def wait_for_db(bind=None):
    """Block until the database accepts connections."""
    with (bind or engine).connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db(bind=None):
    """
    Initialize database - create all tables
    Safe to call multiple times (won't recreate existing tables)
    """
    bind = bind or engine
    wait_for_db(bind)
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database initialized at: {bind.url}")


def get_db():
    """
    Get database session - use in FastAPI dependencies
    Yields a session and closes it when done
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

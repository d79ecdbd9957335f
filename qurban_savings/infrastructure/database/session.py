"""Database engine and per-request sessions for the savings store"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from qurban_savings.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Engine for the given URL.

    SQLite (local runs and tests) gets a thread-shareable connection; server
    databases get a pool of 20 connections recycled hourly.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Session dependency; callers commit or roll back, the session is always closed"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

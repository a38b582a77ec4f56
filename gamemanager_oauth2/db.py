from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .models import Base

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def create_db_engine(url: str, echo: bool = False) -> Engine:
    if url.startswith('sqlite'):
        args = {"check_same_thread": False}
    else:
        args = {}
    return create_engine(url, echo=echo, connect_args=args)


def create_tables(engine: Engine) -> None:
    """Create any missing tables.

    This is a synchronous call"""
    Base.metadata.create_all(bind=engine)

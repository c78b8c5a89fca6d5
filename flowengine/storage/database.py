"""Database connection and session management."""

import os
from typing import Optional
from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./flow_engine.db"

# Global engine instance
_engine: Optional[Engine] = None

# Base class for all database models
Base = declarative_base()

# Session factory, bound when the engine is created
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def get_database_engine(database_url: Optional[str] = None, 
                        echo: bool = False,
                        connect_args: Optional[dict] = None) -> Engine:
    """Get or create the database engine."""
    global _engine
    
    if _engine is None:
        _engine = build_engine(database_url, echo=echo, connect_args=connect_args)
        SessionLocal.configure(bind=_engine)
    
    return _engine


def build_engine(database_url: Optional[str] = None,
                 echo: bool = False,
                 connect_args: Optional[dict] = None) -> Engine:
    """Create a new engine without touching the global one."""
    if database_url is None:
        database_url = os.getenv("FLOW_ENGINE_DATABASE_URL", DEFAULT_DATABASE_URL)
    
    if connect_args is None:
        if database_url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
        else:
            connect_args = {}
    
    # An in-memory SQLite database only exists on its one connection
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=StaticPool,
            echo=echo
        )
    
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_tables(engine: Optional[Engine] = None):
    """Create all database tables."""
    from . import models  # noqa: F401  registers the mappers on Base
    Base.metadata.create_all(bind=engine or get_database_engine())


def drop_tables(engine: Optional[Engine] = None):
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine or get_database_engine())

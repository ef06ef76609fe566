"""
Database connection setup for the local credential store
"""

import os
import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

# Create Base class
Base = declarative_base()


def create_db_engine(url: Optional[str] = None) -> Engine:
    """
    Create the SQLAlchemy engine for the credential store.
    File-backed SQLite databases get their parent directory created first.
    """
    config = dict(settings.database_config)
    if url is not None:
        config["url"] = url
        if url.startswith("sqlite"):
            config["connect_args"] = {"check_same_thread": False}
        else:
            config.pop("connect_args", None)

    db_url = make_url(config["url"])
    if db_url.get_backend_name() == "sqlite" and db_url.database and db_url.database != ":memory:":
        directory = os.path.dirname(os.path.abspath(db_url.database))
        os.makedirs(directory, exist_ok=True)

    return create_engine(**config)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def test_connection(engine: Engine) -> bool:
    """Test database connection"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logging.error(f"Credential store connection test failed: {e}")
        return False

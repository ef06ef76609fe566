"""
Database models for the Grovi client
Persists the bearer credential between runs
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy import create_engine

from .database import Base, create_db_engine, create_session_factory

logger = logging.getLogger(__name__)

# Single row holding the active credential
CREDENTIAL_ROW_ID = "active"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# =====================================
# DATABASE MODELS
# =====================================

class StoredCredential(Base):
    """Bearer token issued by the backend at login"""
    __tablename__ = 'stored_credentials'

    id = Column(String, primary_key=True, default=CREDENTIAL_ROW_ID)
    access_token = Column(Text, nullable=False)
    username = Column(String, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<StoredCredential(username={self.username}, updated_at={self.updated_at})>"

    def to_dict(self):
        """Convert to dictionary without exposing the token"""
        return {
            'username': self.username,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

# =====================================
# CREDENTIAL STORE
# =====================================

class CredentialStore:
    """Durable storage for the bearer credential"""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine if engine is not None else create_db_engine()
        self.SessionLocal = create_session_factory(self.engine)
        Base.metadata.create_all(bind=self.engine)

    @classmethod
    def in_memory(cls) -> "CredentialStore":
        """Store backed by a private in-memory SQLite database"""
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        return cls(engine)

    def get_token(self) -> Optional[str]:
        """Return the persisted token, if any"""
        with self.SessionLocal() as db:
            row = db.get(StoredCredential, CREDENTIAL_ROW_ID)
            return row.access_token if row else None

    def get_record(self) -> Optional[dict]:
        with self.SessionLocal() as db:
            row = db.get(StoredCredential, CREDENTIAL_ROW_ID)
            return row.to_dict() if row else None

    def save_token(self, token: str, username: Optional[str] = None) -> None:
        """Persist a token, replacing any previous one"""
        with self.SessionLocal() as db:
            row = db.get(StoredCredential, CREDENTIAL_ROW_ID)
            if row:
                row.access_token = token
                row.username = username
            else:
                db.add(StoredCredential(id=CREDENTIAL_ROW_ID, access_token=token, username=username))
            db.commit()
        logger.debug(f"Stored credential for {username or 'unknown user'}")

    def clear(self) -> bool:
        """Erase the persisted token. Returns True when a token was removed."""
        with self.SessionLocal() as db:
            deleted = db.query(StoredCredential)\
                        .filter(StoredCredential.id == CREDENTIAL_ROW_ID)\
                        .delete()
            db.commit()
        return bool(deleted)

"""SQLAlchemy models and session handling for users and resumes."""
from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, TypeDecorator, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from hiremind.log import get_logger

log = get_logger(__name__)

Base = declarative_base()
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, future=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONType(TypeDecorator):
    """JSON stored as text; works the same on SQLite and server databases."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return json.loads(value)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    llm_api_key_encrypted = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    resumes = relationship(
        "Resume",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Resume.uploaded_at.desc()",
    )

    def to_dict(self) -> dict:
        # never expose the password hash or the encrypted key
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    extracted_data = Column(JSONType, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="resumes")

    def to_dict(self, with_data: bool = True) -> dict:
        data = {
            "id": self.id,
            "file_name": self.file_name,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
        if with_data:
            data["extracted_data"] = self.extracted_data
        return data


def init_db(url: str):
    """Bind the session factory to *url* and create missing tables."""
    connect_args = {}
    if url.startswith("sqlite"):
        # requests are served from FastAPI's threadpool
        connect_args = {"check_same_thread": False}
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, future=True, connect_args=connect_args)
    SessionLocal.configure(bind=engine)
    Base.metadata.create_all(engine)
    log.info("Database ready: %s", engine.url.render_as_string(hide_password=True))
    return engine


@contextmanager
def session_scope() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

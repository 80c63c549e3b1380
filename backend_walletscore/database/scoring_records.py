"""
Scoring records: SQLAlchemy-backed, append-only audit trail of computed scores.

Uses WALLETSCORE_DB_URL or DATABASE_URL (e.g. PostgreSQL) when set; otherwise
SQLite at WALLETSCORE_DB_PATH (default walletscore.db). Rows are never updated:
scoring the same resolved address, chain and score type again inserts a new
row whose version is one above the latest.
"""

from __future__ import annotations

import os
import threading
import time
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Column, Float, Integer, String, Text, UniqueConstraint, create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

DEFAULT_SQLITE_PATH = "walletscore.db"
MAX_SAVE_ATTEMPTS = 5


class ScoringRecord(Base):
    """One computed score: request/resolved address, chain, score, serialized stats, version."""

    __tablename__ = "scoring_records"
    __table_args__ = (
        UniqueConstraint("resolved_address", "chain_id", "score_type", "version", name="uq_scoring_record_version"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_address = Column(String(256), nullable=False)
    resolved_address = Column(String(64), nullable=False, index=True)
    chain_id = Column(Integer, nullable=False, index=True)
    score_type = Column(String(16), nullable=False, default="finance")
    score = Column(Float, nullable=False)
    stat_data = Column(Text, nullable=False)  # WalletStats JSON, None blocks omitted
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(Integer, nullable=False, index=True)  # Unix seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "request_address": self.request_address,
            "resolved_address": self.resolved_address,
            "chain_id": self.chain_id,
            "score_type": self.score_type,
            "score": self.score,
            "stat_data": self.stat_data,
            "version": self.version,
            "created_at": self.created_at,
        }


def _get_database_url() -> str:
    """WALLETSCORE_DB_URL or DATABASE_URL if set; else SQLite from WALLETSCORE_DB_PATH or default."""
    url = (os.getenv("WALLETSCORE_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("WALLETSCORE_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


_engine = None
_SessionLocal: sessionmaker | None = None
_save_lock = threading.Lock()


def _get_engine():
    global _engine
    if _engine is None:
        url = _get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("scoring_records_engine", url=url.split("?")[0].split("//")[-1])
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Commit on success, roll back on error."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create tables if they do not exist. Safe to call on every startup."""
    engine = _get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("scoring_records_init_db", url=_get_database_url().split("?")[0].split("//")[-1])


def save_scoring_record(
    request_address: str,
    resolved_address: str,
    chain_id: int,
    score_type: str,
    score: float,
    stat_data: str,
) -> dict[str, Any]:
    """
    Append a scoring record and return it as a dict.

    version = 1 + latest version for (resolved_address, chain_id, score_type).
    Saves in this process are serialized; a version taken concurrently by another
    writer fails the unique constraint and the insert is retried.
    """
    resolved = resolved_address.strip().lower()
    saved: dict[str, Any] | None = None
    with _save_lock:
        for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
            try:
                saved = _insert_next_version(
                    request_address.strip(), resolved, chain_id, score_type, score, stat_data
                )
                break
            except IntegrityError:
                if attempt == MAX_SAVE_ATTEMPTS:
                    raise
                logger.info(
                    "scoring_record_version_conflict",
                    wallet=resolved,
                    chain_id=chain_id,
                    score_type=score_type,
                    attempt=attempt,
                )
    logger.info(
        "scoring_record_saved",
        wallet=resolved,
        chain_id=chain_id,
        score_type=score_type,
        version=saved["version"],
    )
    return saved


def _insert_next_version(
    request_address: str,
    resolved: str,
    chain_id: int,
    score_type: str,
    score: float,
    stat_data: str,
) -> dict[str, Any]:
    with _session_scope() as session:
        latest = session.execute(
            select(func.max(ScoringRecord.version)).where(
                ScoringRecord.resolved_address == resolved,
                ScoringRecord.chain_id == chain_id,
                ScoringRecord.score_type == score_type,
            )
        ).scalar()
        record = ScoringRecord(
            request_address=request_address,
            resolved_address=resolved,
            chain_id=chain_id,
            score_type=score_type,
            score=score,
            stat_data=stat_data,
            version=(latest or 0) + 1,
            created_at=int(time.time()),
        )
        session.add(record)
        session.flush()
        return record.to_dict()


def list_scoring_records(
    resolved_address: str,
    chain_id: int | None = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """Records for a wallet, newest first."""
    query = select(ScoringRecord).where(ScoringRecord.resolved_address == resolved_address.strip().lower())
    if chain_id is not None:
        query = query.where(ScoringRecord.chain_id == chain_id)
    query = query.order_by(ScoringRecord.created_at.desc(), ScoringRecord.id.desc()).limit(limit)
    with _session_scope() as session:
        return [r.to_dict() for r in session.execute(query).scalars().all()]


def reset_engine_for_test() -> None:
    """Drop cached engine and session factory (tests point the DB elsewhere between runs)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None

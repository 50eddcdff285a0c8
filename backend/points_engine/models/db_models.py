"""
Points Engine - SQLAlchemy ORM Models
Persistent storage for reports, the point ledger and owner aggregates
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, Boolean, Index
from ..database import Base


class UserDB(Base):
    """
    Owner aggregate: counters and badges earned from reports and votes.

    Written only by the aggregate updater, inside the same transaction as the
    ledger write that justified the change. `version` is bumped on every
    write so concurrent read-modify-write cycles fail instead of interleaving.
    """
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)  # Owner uid from the auth provider

    # Canonical points counter. UI aliases (points / accountPoints) are
    # produced by the read endpoint, not stored.
    score = Column(Integer, nullable=False, default=0)
    reports_count = Column(Integer, nullable=False, default=0)
    approvals_count = Column(Integer, nullable=False, default=0)

    # Badge names in the order they were earned. Never shrinks.
    earned_badges = Column(JSON, nullable=False, default=list)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}


class GhostReportDB(Base):
    """A ghost report - the subject being voted on. Written by the surrounding app."""
    __tablename__ = "ghost_reports"

    id = Column(String(128), primary_key=True)
    uid = Column(String(128), nullable=True, index=True)  # Author; nullable for legacy/anonymous reports
    title = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class PointLedgerDB(Base):
    """
    Last contribution a (report, voter) pair made to the owner's score.

    Keyed under the owner so the ledger and the aggregate it justifies live in
    the same namespace. No foreign key to users: the aggregate row may be
    created later in the same transaction. Rows are never deleted; a
    retracted vote is recorded as last_is_valid = False.

    `version` guards reconcile's read-then-write: of two transactions that
    read the same entry, only the first to write it back succeeds. This holds
    on backends that ignore FOR UPDATE (SQLite).
    """
    __tablename__ = "point_ledger"

    owner_id = Column(String(128), primary_key=True)
    report_id = Column(String(128), primary_key=True)
    voter_id = Column(String(128), primary_key=True)

    last_is_valid = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_point_ledger_report_voter", "report_id", "voter_id"),
    )
    __mapper_args__ = {"version_id_col": version}


class NetworkPostDB(Base):
    """Network post with raw up/down vote counters mirrored from its votes."""
    __tablename__ = "network_posts"

    id = Column(String(128), primary_key=True)
    votes_up = Column(Integer, nullable=False, default=0)
    votes_down = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

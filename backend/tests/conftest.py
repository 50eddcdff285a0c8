"""Shared fixtures: an in-memory SQLite store and seeding helpers."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from points_engine.database import TransactionalStore, init_db
from points_engine.models.db_models import GhostReportDB, NetworkPostDB, UserDB
from points_engine.services.event_adapter import VoteEventAdapter


@pytest.fixture
def engine():
    """Fresh in-memory database shared across threads (TestClient runs handlers in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return TransactionalStore.from_engine(engine)


@pytest.fixture
def adapter(store):
    return VoteEventAdapter(store)


@pytest.fixture
def seed_report(store):
    """Insert a ghost report; returns its id."""
    def _seed(report_id: str = "report-1", uid: str = "author-1") -> str:
        db = store.session()
        db.add(GhostReportDB(id=report_id, uid=uid, title="Footsteps in the attic"))
        db.commit()
        db.close()
        return report_id
    return _seed


@pytest.fixture
def seed_user(store):
    """Insert an owner aggregate with the given counters."""
    def _seed(uid: str = "author-1", **counters) -> str:
        db = store.session()
        db.add(UserDB(
            id=uid,
            score=counters.get("score", 0),
            reports_count=counters.get("reports_count", 0),
            approvals_count=counters.get("approvals_count", counters.get("score", 0)),
            earned_badges=list(counters.get("earned_badges", [])),
        ))
        db.commit()
        db.close()
        return uid
    return _seed


@pytest.fixture
def read_user(store):
    """Load an owner aggregate (or None) in a fresh session."""
    def _read(uid: str = "author-1"):
        db = store.session()
        try:
            return db.get(UserDB, uid)
        finally:
            db.close()
    return _read


@pytest.fixture
def read_post(store):
    def _read(post_id: str):
        db = store.session()
        try:
            return db.get(NetworkPostDB, post_id)
        finally:
            db.close()
    return _read

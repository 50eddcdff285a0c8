"""
Tests for overlapping transactions on a file-backed SQLite database.

Each test lets a second, complete transaction commit while the first one is
still open, then checks that the first is re-run instead of applying on top
of stale reads.

Key tests:
1. A redelivered retraction that commits mid-transaction removes one point, not two
2. Two voters on the same owner both count (optimistic version retry)
3. Two voters racing to create the owner row both count (unique violation retry)
"""
import pytest
from sqlalchemy import create_engine

from points_engine.database import init_db
from points_engine.models.db_models import PointLedgerDB
from points_engine.models.domain import CounterDelta, SemanticValue
from points_engine.services.aggregate_updater import AggregateUpdater
from points_engine.services.badge_rules import BadgeRuleEngine
from points_engine.services.event_adapter import VoteEventAdapter
from points_engine.services.transition_ledger import TransitionLedgerService


AUTHOR = "author-1"
REPORT = "report-1"


def vote(value):
    return {"value": value}


@pytest.fixture
def engine(tmp_path):
    """File-backed database: every session gets its own connection."""
    engine = create_engine(f"sqlite:///{tmp_path / 'points.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


class InterleavingBadgeEngine(BadgeRuleEngine):
    """Runs a competing handler between the owner read and its write-back, once."""

    def __init__(self, competing_handler):
        super().__init__()
        self.competing_handler = competing_handler
        self.calls = 0

    def evaluate(self, old, new):
        self.calls += 1
        if self.calls == 1:
            self.competing_handler()
        return super().evaluate(old, new)


# =============================================================================
# SAME (REPORT, VOTER) PAIR
# =============================================================================

class TestOverlappingRedelivery:

    def test_redelivered_retraction_removes_one_point(self, store, adapter, seed_report, read_user):
        seed_report(REPORT, AUTHOR)
        adapter.on_report_vote_written(REPORT, "voter-1", None, vote("valid"))
        adapter.on_report_vote_written(REPORT, "voter-2", None, vote("valid"))
        assert read_user(AUTHOR).score == 2

        attempts = []

        def retract(tx):
            attempts.append(1)
            delta = TransitionLedgerService(tx).reconcile(AUTHOR, REPORT, "voter-1", SemanticValue.UNSET)
            if len(attempts) == 1:
                # Redelivered copy of the same retraction commits first
                adapter.on_report_vote_written(REPORT, "voter-1", vote("valid"), None)
            if delta == 0:
                return delta
            AggregateUpdater(tx).apply_delta(AUTHOR, CounterDelta(score=delta, approvals=delta))
            return delta

        assert store.with_transaction(retract) == 0
        assert len(attempts) == 2

        user = read_user(AUTHOR)
        assert user.score == 1
        assert user.approvals_count == 1

        db = store.session()
        try:
            entry = db.get(PointLedgerDB, (AUTHOR, REPORT, "voter-1"))
            assert entry.last_is_valid is False
            assert entry.version == 2
        finally:
            db.close()

    def test_redelivered_vote_through_adapter_applies_once(self, store, seed_report, seed_user, read_user):
        seed_report(REPORT, AUTHOR)
        seed_user(AUTHOR)
        plain = VoteEventAdapter(store)
        engine = InterleavingBadgeEngine(
            lambda: plain.on_report_vote_written(REPORT, "voter-1", None, vote("valid"))
        )
        racing = VoteEventAdapter(store, badge_engine=engine)

        outcome = racing.on_report_vote_written(REPORT, "voter-1", None, vote("valid"))

        assert outcome.applied is False
        assert engine.calls == 1
        user = read_user(AUTHOR)
        assert user.score == 1
        assert user.approvals_count == 1


# =============================================================================
# SAME OWNER, DIFFERENT VOTERS
# =============================================================================

class TestOverlappingVoters:

    def test_stale_owner_version_is_retried(self, store, seed_report, seed_user, read_user):
        seed_report(REPORT, AUTHOR)
        seed_user(AUTHOR)
        plain = VoteEventAdapter(store)
        engine = InterleavingBadgeEngine(
            lambda: plain.on_report_vote_written(REPORT, "voter-2", None, vote("valid"))
        )
        racing = VoteEventAdapter(store, badge_engine=engine)

        outcome = racing.on_report_vote_written(REPORT, "voter-1", None, vote("valid"))

        assert outcome.applied
        # First attempt lost the race and the whole block was re-run
        assert engine.calls == 2
        user = read_user(AUTHOR)
        assert user.score == 2
        assert user.approvals_count == 2

    def test_concurrent_owner_creation_is_retried(self, store, seed_report, read_user):
        seed_report(REPORT, AUTHOR)
        plain = VoteEventAdapter(store)
        engine = InterleavingBadgeEngine(
            lambda: plain.on_report_vote_written(REPORT, "voter-2", None, vote("valid"))
        )
        racing = VoteEventAdapter(store, badge_engine=engine)

        outcome = racing.on_report_vote_written(REPORT, "voter-1", None, vote("valid"))

        assert outcome.applied
        assert engine.calls == 2
        assert read_user(AUTHOR).score == 2

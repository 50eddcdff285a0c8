"""
Aggregate Updater

Applies counter deltas to an owner's aggregate row and unions in any badges
the move qualifies for. Always runs inside the transaction that also
persists the ledger change justifying the delta; the two commit together or
not at all.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models.db_models import UserDB
from ..models.domain import AggregateChange, AggregateSnapshot, CounterDelta
from .badge_rules import BadgeRuleEngine

logger = logging.getLogger(__name__)


def snapshot_of(user: UserDB) -> AggregateSnapshot:
    """Read a UserDB row into an immutable snapshot."""
    return AggregateSnapshot(
        owner_id=user.id,
        score=user.score or 0,
        reports_count=user.reports_count or 0,
        approvals_count=user.approvals_count or 0,
        earned_badges=tuple(user.earned_badges or ()),
    )


class AggregateUpdater:
    """
    Read-modify-write of an owner's counters within the caller's transaction.

    The owner row is read with a row lock and written back with an optimistic
    version check, so a concurrent writer either waits or forces a retry of
    the whole transaction.
    """

    def __init__(self, db: Session, badge_engine: Optional[BadgeRuleEngine] = None):
        self.db = db
        self.badge_engine = badge_engine or BadgeRuleEngine()

    def load_owner(self, owner_id: str) -> UserDB:
        """Locked read of the owner row, creating an empty aggregate if none exists yet."""
        user = self.db.get(UserDB, owner_id, with_for_update=True)
        if user is None:
            user = UserDB(
                id=owner_id,
                score=0,
                reports_count=0,
                approvals_count=0,
                earned_badges=[],
            )
            self.db.add(user)
        return user

    def apply_delta(self, owner_id: str, delta: CounterDelta) -> AggregateChange:
        """
        Apply a delta to the owner's counters and award newly earned badges.

        Args:
            owner_id: Owner whose aggregate changes
            delta: Score / approvals / reports increments

        Returns:
            Snapshots before and after, plus the badges awarded by this change
        """
        user = self.load_owner(owner_id)
        before = snapshot_of(user)
        counted = before.apply(delta)

        awarded = self.badge_engine.evaluate(before, counted)
        after = counted.with_badges(awarded)

        user.score = after.score
        user.reports_count = after.reports_count
        user.approvals_count = after.approvals_count
        # New list so the JSON column registers the change
        user.earned_badges = list(after.earned_badges)
        user.updated_at = datetime.utcnow()
        self.db.flush()

        logger.info(
            f"Owner {owner_id}: score {before.score}->{after.score}, "
            f"approvals {before.approvals_count}->{after.approvals_count}, "
            f"reports {before.reports_count}->{after.reports_count}"
        )
        if awarded:
            logger.info(f"Owner {owner_id} earned badges: {', '.join(awarded)}")

        return AggregateChange(before=before, after=after, badges_awarded=tuple(awarded))

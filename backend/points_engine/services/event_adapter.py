"""
Trigger Event Adapter

Turns document notifications from the trigger substrate into aggregate
updates:

1. Report created      -> owner's reports_count += 1 (badge rules run)
2. Report vote written -> ledger reconcile -> owner score/approvals -> badges
3. Network post vote   -> raw up/down counters on the post (no ledger)

Handlers share no in-process state; all correctness comes from the store's
transactions. Each handler is safe to re-run on redelivery except the two
plain counters (reports_count and the network post mirror), which count
deliveries rather than transitions.
"""
import logging
from datetime import datetime
from typing import Any, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import TransactionalStore
from ..errors import FatalWriteFailure
from ..models.db_models import GhostReportDB, NetworkPostDB
from ..models.domain import (
    CounterDelta,
    SemanticValue,
    SkipReason,
    TriggerOutcome,
    TriggerStatus,
)
from .aggregate_updater import AggregateUpdater
from .badge_rules import BadgeRuleEngine
from .normalizer import VOTE_VALUE_FIELD, normalize_document
from .transition_ledger import TransitionLedgerService

logger = logging.getLogger(__name__)

# Report documents store their author under "uid"
REPORT_OWNER_FIELD = "uid"


def valid_delta(before: SemanticValue, after: SemanticValue) -> int:
    """+1 moving to valid, -1 moving away from it, 0 otherwise."""
    return int(after == SemanticValue.VALID) - int(before == SemanticValue.VALID)


def raw_direction(document: Optional[dict]) -> int:
    """Network post votes are 1 / -1; anything else (including absent) counts as 0."""
    value: Any = (document or {}).get(VOTE_VALUE_FIELD, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if value == 1:
        return 1
    if value == -1:
        return -1
    return 0


def mirror_deltas(before: Optional[dict], after: Optional[dict]) -> Tuple[int, int]:
    """(delta_up, delta_down) for a network post vote mutation."""
    old_value = raw_direction(before)
    new_value = raw_direction(after)
    delta_up = int(new_value == 1) - int(old_value == 1)
    delta_down = int(new_value == -1) - int(old_value == -1)
    return delta_up, delta_down


class VoteEventAdapter:
    """
    Entry point for trigger notifications.

    Usage:
        adapter = VoteEventAdapter(store)
        outcome = adapter.on_report_vote_written(report_id, voter_id, before, after)
    """

    def __init__(self, store: TransactionalStore, badge_engine: Optional[BadgeRuleEngine] = None):
        self.store = store
        self.badge_engine = badge_engine or BadgeRuleEngine()

    # =========================================================================
    # GHOST REPORTS: creation
    # =========================================================================

    def on_report_created(self, report_id: str, document: Optional[dict]) -> TriggerOutcome:
        """
        Count a new report against its author and run the badge rules.

        There is no ledger for creation: it is not a toggle, so the counter is
        a plain increment.
        """
        owner_id = (document or {}).get(REPORT_OWNER_FIELD)
        # Only a non-empty string is an owner id; anything else is treated as absent
        if not isinstance(owner_id, str) or not owner_id:
            logger.debug(f"Report {report_id} has no owner, skipping creation count")
            return TriggerOutcome.skipped(SkipReason.MISSING_REFERENCE)

        def count_report(tx: Session):
            updater = AggregateUpdater(tx, self.badge_engine)
            return updater.apply_delta(owner_id, CounterDelta(reports=1))

        change = self.store.with_transaction(count_report)
        logger.info(f"Counted report {report_id} for owner {owner_id}")

        return TriggerOutcome(
            status=TriggerStatus.APPLIED,
            owner_id=owner_id,
            badges_awarded=list(change.badges_awarded),
        )

    # =========================================================================
    # GHOST REPORTS: votes
    # =========================================================================

    def find_report_owner(self, report_id: str) -> Optional[str]:
        """Author of the report, or None if the report or its author is gone."""
        session = self.store.session()
        try:
            report = session.get(GhostReportDB, report_id)
            return report.uid if report is not None else None
        except SQLAlchemyError as e:
            raise FatalWriteFailure(f"Report lookup failed: {e}") from e
        finally:
            session.close()

    def on_report_vote_written(
        self,
        report_id: str,
        voter_id: str,
        before: Optional[dict],
        after: Optional[dict],
    ) -> TriggerOutcome:
        """
        Award or remove a point when a vote toggles in or out of 'valid'.

        Args:
            report_id: Report the vote belongs to
            voter_id: Voter (vote document id)
            before: Vote document before the write, None on create
            after: Vote document after the write, None on delete

        Returns:
            What was applied, or why nothing was
        """
        prev_value = normalize_document(before)
        next_value = normalize_document(after)

        # No change in semantic value: don't even open a transaction
        if prev_value == next_value:
            return TriggerOutcome.skipped(SkipReason.NO_SEMANTIC_CHANGE)

        owner_id = self.find_report_owner(report_id)
        if not owner_id:
            logger.debug(f"Vote on {report_id}: report or author missing, skipping")
            return TriggerOutcome.skipped(SkipReason.MISSING_REFERENCE)

        if owner_id == voter_id:
            return TriggerOutcome.skipped(SkipReason.SELF_VOTE, owner_id=owner_id)

        logger.debug(
            f"Vote {report_id}/{voter_id}: {prev_value.value} -> {next_value.value} "
            f"(nominal delta {valid_delta(prev_value, next_value)})"
        )

        def reconcile_and_apply(tx: Session):
            ledger = TransitionLedgerService(tx)
            effective_delta = ledger.reconcile(owner_id, report_id, voter_id, next_value)
            if effective_delta == 0:
                return effective_delta, None
            updater = AggregateUpdater(tx, self.badge_engine)
            change = updater.apply_delta(
                owner_id,
                CounterDelta(score=effective_delta, approvals=effective_delta),
            )
            return effective_delta, change

        effective_delta, change = self.store.with_transaction(reconcile_and_apply)

        if change is None:
            return TriggerOutcome.skipped(SkipReason.ALREADY_APPLIED, owner_id=owner_id)

        return TriggerOutcome(
            status=TriggerStatus.APPLIED,
            owner_id=owner_id,
            effective_delta=effective_delta,
            badges_awarded=list(change.badges_awarded),
        )

    # =========================================================================
    # NETWORK POSTS: vote counter mirror
    # =========================================================================

    def on_network_post_vote_written(
        self,
        post_id: str,
        before: Optional[dict],
        after: Optional[dict],
    ) -> TriggerOutcome:
        """
        Keep votes_up / votes_down on the post in step with its votes.

        Plain atomic increments with no ledger and no self-vote exclusion:
        a redelivered event is counted again.
        """
        delta_up, delta_down = mirror_deltas(before, after)
        if delta_up == 0 and delta_down == 0:
            return TriggerOutcome.skipped(SkipReason.NO_SEMANTIC_CHANGE)

        def increment(tx: Session):
            now = datetime.utcnow()
            result = tx.execute(
                update(NetworkPostDB)
                .where(NetworkPostDB.id == post_id)
                .values(
                    votes_up=NetworkPostDB.votes_up + delta_up,
                    votes_down=NetworkPostDB.votes_down + delta_down,
                    updated_at=now,
                )
            )
            if result.rowcount == 0:
                tx.add(NetworkPostDB(
                    id=post_id,
                    votes_up=delta_up,
                    votes_down=delta_down,
                    updated_at=now,
                ))

        self.store.with_transaction(increment)
        logger.info(f"Network post {post_id}: votes_up {delta_up:+d}, votes_down {delta_down:+d}")

        # Two counters move independently, so there is no single effective delta
        return TriggerOutcome(status=TriggerStatus.APPLIED)

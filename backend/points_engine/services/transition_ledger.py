"""
Transition Ledger Service

Per-(report, voter) record of the last contribution a vote made to its
owner's score. Deltas are computed against the ledger rather than against the
event's "before" value, so redelivered or stale events cannot double-apply.

Core rules:
1. Must run inside the caller's transaction.
2. A zero effective delta writes nothing.
3. Rows are never deleted; retractions are recorded as last_is_valid = False.
4. Entries are versioned. If another transaction rewrote the entry after it
   was read here, the flush raises StaleDataError and the store re-runs the
   whole block against the new value.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..models.db_models import PointLedgerDB
from ..models.domain import SemanticValue

logger = logging.getLogger(__name__)


class TransitionLedgerService:
    """
    Reconciles a vote's new semantic value against its ledger entry.

    Usage:
        ledger = TransitionLedgerService(tx)
        delta = ledger.reconcile(owner_id, report_id, voter_id, SemanticValue.VALID)
    """

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, owner_id: str, report_id: str, voter_id: str, lock: bool = False):
        """Point lookup by (owner, report, voter). Optionally row-locks it."""
        return self.db.get(
            PointLedgerDB,
            (owner_id, report_id, voter_id),
            with_for_update=lock,
        )

    def reconcile(
        self,
        owner_id: str,
        report_id: str,
        voter_id: str,
        new_value: SemanticValue,
    ) -> int:
        """
        Record the vote's new contribution and return the effective delta.

        Args:
            owner_id: Report author whose score the vote feeds
            report_id: Report being voted on
            voter_id: Voter; callers must already have excluded self-votes
            new_value: Semantic value after the mutation

        Returns:
            +1 when the vote starts counting as valid, -1 when it stops,
            0 when the ledger already reflects this value
        """
        entry = self.get_entry(owner_id, report_id, voter_id, lock=True)

        was_valid = bool(entry.last_is_valid) if entry is not None else False
        is_valid = new_value == SemanticValue.VALID
        effective_delta = int(is_valid) - int(was_valid)

        if effective_delta == 0:
            logger.debug(
                f"Ledger already at valid={is_valid} for {report_id}/{voter_id}, nothing to apply"
            )
            return 0

        if entry is None:
            entry = PointLedgerDB(
                owner_id=owner_id,
                report_id=report_id,
                voter_id=voter_id,
            )
            self.db.add(entry)

        entry.last_is_valid = is_valid
        entry.updated_at = datetime.utcnow()

        return effective_delta

"""
Points Engine - Domain Models

Plain value objects passed between the normalizer, ledger, updater and badge
engine. Nothing here touches the database.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class SemanticValue(str, Enum):
    """Normalized classification of a raw vote field."""
    VALID = "valid"
    NEEDS_MORE = "needs_more"
    INVALID = "invalid"
    UNSET = "unset"


class TriggerStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    """Why a trigger produced no aggregate change."""
    NO_SEMANTIC_CHANGE = "no_semantic_change"
    MISSING_REFERENCE = "missing_reference"
    SELF_VOTE = "self_vote"
    ALREADY_APPLIED = "already_applied"


# =============================================================================
# COUNTERS
# =============================================================================

@dataclass(frozen=True)
class CounterDelta:
    """Increments for an owner's counters. score and approvals move together for votes."""
    score: int = 0
    approvals: int = 0
    reports: int = 0

    def is_zero(self) -> bool:
        return self.score == 0 and self.approvals == 0 and self.reports == 0


@dataclass(frozen=True)
class AggregateSnapshot:
    """Point-in-time view of an owner's aggregate, as read inside a transaction."""
    owner_id: str
    score: int = 0
    reports_count: int = 0
    approvals_count: int = 0
    earned_badges: Tuple[str, ...] = ()

    def apply(self, delta: CounterDelta) -> "AggregateSnapshot":
        """Counters after the delta. Badges are left untouched."""
        return AggregateSnapshot(
            owner_id=self.owner_id,
            score=self.score + delta.score,
            reports_count=self.reports_count + delta.reports,
            approvals_count=self.approvals_count + delta.approvals,
            earned_badges=self.earned_badges,
        )

    def with_badges(self, badges: List[str]) -> "AggregateSnapshot":
        """Union badges in, keeping the order they were earned."""
        merged = list(self.earned_badges)
        for badge in badges:
            if badge not in merged:
                merged.append(badge)
        return AggregateSnapshot(
            owner_id=self.owner_id,
            score=self.score,
            reports_count=self.reports_count,
            approvals_count=self.approvals_count,
            earned_badges=tuple(merged),
        )


@dataclass(frozen=True)
class AggregateChange:
    """Result of applying a delta: the snapshots either side and what was newly earned."""
    before: AggregateSnapshot
    after: AggregateSnapshot
    badges_awarded: Tuple[str, ...] = ()


# =============================================================================
# TRIGGER RESULTS
# =============================================================================

@dataclass
class TriggerOutcome:
    """What a trigger handler did with one notification."""
    status: TriggerStatus
    reason: Optional[SkipReason] = None
    owner_id: Optional[str] = None
    effective_delta: int = 0
    badges_awarded: List[str] = field(default_factory=list)

    @classmethod
    def skipped(cls, reason: SkipReason, owner_id: Optional[str] = None) -> "TriggerOutcome":
        return cls(status=TriggerStatus.SKIPPED, reason=reason, owner_id=owner_id)

    @property
    def applied(self) -> bool:
        return self.status == TriggerStatus.APPLIED

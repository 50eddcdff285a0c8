"""
Badge Rule Engine

Stateless rules evaluated against an owner's aggregate before and after a
delta. Rules only ever add badges; the updater unions their output into the
owner's earned set and never removes anything.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..models.domain import AggregateSnapshot


# =============================================================================
# RULE CONFIGURATION
# =============================================================================

EVENT_BADGES = {
    "FIRST_REPORT": "Polter-Position Spotter",
    "FIVE_APPROVALS": "Revealer",
}

# (score threshold, badge) - highest first, as the profile page lists them
POINT_BADGES: Tuple[Tuple[int, str], ...] = (
    (5000, "Golden Guide"),
    (2000, "Eternal Echo"),
    (1000, "That's... a thousand..."),
    (500, "Nightly Knight"),
    (200, "Apparition Avoider"),
    (100, "Phantom Fighter"),
    (50, "Wraith Wrecker"),
    (25, "Soul Saver"),
    (10, "Whisp Whisperer"),
)


def crossed(old: int, new: int, boundary: int) -> bool:
    """True when a counter moves from below the boundary to at or above it."""
    return old < boundary <= new


@dataclass(frozen=True)
class EventRule:
    """Fires once when a named counter first reaches its boundary."""
    badge: str
    counter: str
    boundary: int

    def evaluate(self, old: AggregateSnapshot, new: AggregateSnapshot) -> List[str]:
        if crossed(getattr(old, self.counter), getattr(new, self.counter), self.boundary):
            return [self.badge]
        return []


@dataclass(frozen=True)
class ThresholdRule:
    """Fires every tier whose threshold the score crosses in this update."""
    tiers: Tuple[Tuple[int, str], ...]
    counter: str = "score"

    def evaluate(self, old: AggregateSnapshot, new: AggregateSnapshot) -> List[str]:
        old_value = getattr(old, self.counter)
        new_value = getattr(new, self.counter)
        return [
            badge
            for threshold, badge in self.tiers
            if crossed(old_value, new_value, threshold)
        ]


DEFAULT_RULES = (
    EventRule(badge=EVENT_BADGES["FIRST_REPORT"], counter="reports_count", boundary=1),
    EventRule(badge=EVENT_BADGES["FIVE_APPROVALS"], counter="approvals_count", boundary=5),
    ThresholdRule(tiers=POINT_BADGES),
)


class BadgeRuleEngine:
    """
    Evaluates a fixed rule set against old/new aggregate snapshots.

    Usage:
        engine = BadgeRuleEngine()
        new_badges = engine.evaluate(before, after)
    """

    def __init__(self, rules: Sequence = DEFAULT_RULES):
        self.rules = tuple(rules)

    def evaluate(self, old: AggregateSnapshot, new: AggregateSnapshot) -> List[str]:
        """
        Badges newly qualified by the move from old to new.

        Already-earned badges are filtered out, so replaying an update that
        re-crosses a boundary (e.g. score 50 -> 49 -> 50) awards nothing.
        Order follows the rule set; duplicates are dropped.
        """
        earned = set(old.earned_badges)
        awarded: List[str] = []
        for rule in self.rules:
            for badge in rule.evaluate(old, new):
                if badge not in earned and badge not in awarded:
                    awarded.append(badge)
        return awarded

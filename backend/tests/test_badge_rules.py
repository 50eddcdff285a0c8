"""
Tests for the Badge Rule Engine.

Key tests:
1. Event rules fire on the first crossing only
2. Threshold rules fire every tier crossed in one update
3. Already-earned badges are never re-awarded
4. Moving down across a threshold awards nothing
"""
from points_engine.models.domain import AggregateSnapshot
from points_engine.services.badge_rules import (
    BadgeRuleEngine,
    EventRule,
    ThresholdRule,
    POINT_BADGES,
    crossed,
)


def snap(**kwargs) -> AggregateSnapshot:
    return AggregateSnapshot(owner_id="author-1", **kwargs)


# =============================================================================
# PRIMITIVES
# =============================================================================

class TestCrossed:

    def test_below_to_at_boundary(self):
        assert crossed(49, 50, 50) is True

    def test_already_at_boundary(self):
        assert crossed(50, 51, 50) is False

    def test_moving_down(self):
        assert crossed(50, 49, 50) is False


class TestEventRule:

    def test_first_report_fires_on_zero_to_one(self):
        rule = EventRule(badge="Polter-Position Spotter", counter="reports_count", boundary=1)
        assert rule.evaluate(snap(reports_count=0), snap(reports_count=1)) == ["Polter-Position Spotter"]

    def test_first_report_silent_on_second_report(self):
        rule = EventRule(badge="Polter-Position Spotter", counter="reports_count", boundary=1)
        assert rule.evaluate(snap(reports_count=1), snap(reports_count=2)) == []

    def test_five_approvals(self):
        rule = EventRule(badge="Revealer", counter="approvals_count", boundary=5)
        assert rule.evaluate(snap(approvals_count=4), snap(approvals_count=5)) == ["Revealer"]
        assert rule.evaluate(snap(approvals_count=5), snap(approvals_count=6)) == []


class TestThresholdRule:

    def test_single_threshold(self):
        rule = ThresholdRule(tiers=POINT_BADGES)
        assert rule.evaluate(snap(score=49), snap(score=50)) == ["Wraith Wrecker"]

    def test_large_jump_crosses_several(self):
        rule = ThresholdRule(tiers=POINT_BADGES)
        awarded = rule.evaluate(snap(score=0), snap(score=120))
        assert set(awarded) == {"Whisp Whisperer", "Soul Saver", "Wraith Wrecker", "Phantom Fighter"}

    def test_no_threshold_between(self):
        rule = ThresholdRule(tiers=POINT_BADGES)
        assert rule.evaluate(snap(score=11), snap(score=12)) == []


# =============================================================================
# ENGINE
# =============================================================================

class TestBadgeRuleEngine:
    """Default rule set."""

    def test_wraith_wrecker_at_fifty(self):
        engine = BadgeRuleEngine()
        before = snap(score=49, approvals_count=49)
        after = snap(score=50, approvals_count=50)
        assert engine.evaluate(before, after) == ["Wraith Wrecker"]

    def test_first_vote_awards_nothing(self):
        engine = BadgeRuleEngine()
        assert engine.evaluate(snap(), snap(score=1, approvals_count=1)) == []

    def test_earned_badges_not_re_awarded(self):
        """Score dipped to 49 and came back: Wraith Wrecker is already held."""
        engine = BadgeRuleEngine()
        before = snap(score=49, approvals_count=49, earned_badges=("Wraith Wrecker",))
        after = snap(score=50, approvals_count=50, earned_badges=("Wraith Wrecker",))
        assert engine.evaluate(before, after) == []

    def test_score_decrease_awards_nothing(self):
        engine = BadgeRuleEngine()
        assert engine.evaluate(snap(score=10, approvals_count=10), snap(score=9, approvals_count=9)) == []

    def test_no_duplicates_across_rules(self):
        """Two rules naming the same badge award it once."""
        engine = BadgeRuleEngine(rules=[
            EventRule(badge="Regular", counter="reports_count", boundary=1),
            EventRule(badge="Regular", counter="approvals_count", boundary=1),
        ])
        before = snap()
        after = snap(reports_count=1, approvals_count=1)
        assert engine.evaluate(before, after) == ["Regular"]

    def test_custom_rules(self):
        engine = BadgeRuleEngine(rules=[ThresholdRule(tiers=((3, "Triple"),))])
        assert engine.evaluate(snap(score=2), snap(score=3)) == ["Triple"]

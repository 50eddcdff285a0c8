"""
Points Engine Services

Vote -> points pipeline:
- normalize: raw vote field -> SemanticValue
- TransitionLedgerService: per-(report, voter) idempotency ledger
- AggregateUpdater: owner counters, same transaction as the ledger
- BadgeRuleEngine: threshold / event badges from old vs new aggregate
- VoteEventAdapter: trigger notifications -> the above
"""

from .normalizer import normalize, normalize_document
from .transition_ledger import TransitionLedgerService
from .aggregate_updater import AggregateUpdater
from .badge_rules import BadgeRuleEngine, EventRule, ThresholdRule, DEFAULT_RULES
from .event_adapter import VoteEventAdapter

__all__ = [
    'normalize',
    'normalize_document',
    'TransitionLedgerService',
    'AggregateUpdater',
    'BadgeRuleEngine',
    'EventRule',
    'ThresholdRule',
    'DEFAULT_RULES',
    'VoteEventAdapter',
]

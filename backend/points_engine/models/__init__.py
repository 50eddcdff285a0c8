"""Points Engine - Data Models"""
from .domain import (
    # Enums
    SemanticValue, TriggerStatus, SkipReason,
    # Counters
    CounterDelta, AggregateSnapshot, AggregateChange,
    # Trigger results
    TriggerOutcome,
)

__all__ = [
    "SemanticValue", "TriggerStatus", "SkipReason",
    "CounterDelta", "AggregateSnapshot", "AggregateChange",
    "TriggerOutcome",
]

"""
Points Engine - Error Taxonomy

Missing subjects/owners are not errors: triggers for them are skipped.
Malformed vote values are not errors either: they normalize to UNSET.
"""


class PointsEngineError(Exception):
    """Base class for errors raised by the points engine."""


class TransientStoreConflict(PointsEngineError):
    """
    A transaction kept losing isolation races after every retry.

    Safe to redeliver: nothing from the failed attempts was committed.
    """


class FatalWriteFailure(PointsEngineError):
    """The store rejected a read or write for a reason retrying will not fix."""

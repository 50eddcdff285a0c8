"""
Vote Value Normalizer

Clients have written vote values both as small integer codes and as string
tokens. Everything downstream of the trigger boundary only sees SemanticValue.
"""
from typing import Any, Optional

from ..models.domain import SemanticValue


RAW_VOTE_VALUES = {
    "valid": SemanticValue.VALID,
    1: SemanticValue.VALID,
    "needs_more": SemanticValue.NEEDS_MORE,
    0: SemanticValue.NEEDS_MORE,
    "invalid": SemanticValue.INVALID,
    -1: SemanticValue.INVALID,
}

VOTE_VALUE_FIELD = "value"


def normalize(raw: Any) -> SemanticValue:
    """
    Map a raw vote field to its semantic value.

    Never fails: missing, boolean, unknown or non-scalar values are UNSET.
    Booleans are rejected explicitly because True == 1 and False == 0.
    """
    if raw is None or isinstance(raw, bool):
        return SemanticValue.UNSET
    if not isinstance(raw, (str, int, float)):
        return SemanticValue.UNSET
    return RAW_VOTE_VALUES.get(raw, SemanticValue.UNSET)


def normalize_document(document: Optional[dict]) -> SemanticValue:
    """Normalize the vote field of a before/after document (None when absent)."""
    if not document:
        return SemanticValue.UNSET
    return normalize(document.get(VOTE_VALUE_FIELD))

"""
Points Engine - Trigger Webhooks

Receives document notifications from the trigger substrate. Delivery is
at-least-once: every endpoint must tolerate the same notification arriving
again, and a 5xx response asks the substrate to redeliver.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import get_adapter
from ..errors import FatalWriteFailure, TransientStoreConflict
from ..models.domain import TriggerOutcome
from ..services.event_adapter import VoteEventAdapter


router = APIRouter(prefix="/triggers", tags=["triggers"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class DocumentCreatedEvent(BaseModel):
    """Notification for a newly created document."""
    data: Optional[Dict[str, Any]] = None


class DocumentWrittenEvent(BaseModel):
    """Notification for a create/update/delete; absent side is null."""
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None


class TriggerResponse(BaseModel):
    """Outcome of handling one notification."""
    status: str
    reason: Optional[str] = None
    owner_id: Optional[str] = None
    effective_delta: int = 0
    badges_awarded: List[str] = []


def to_response(outcome: TriggerOutcome) -> TriggerResponse:
    return TriggerResponse(
        status=outcome.status.value,
        reason=outcome.reason.value if outcome.reason else None,
        owner_id=outcome.owner_id,
        effective_delta=outcome.effective_delta,
        badges_awarded=outcome.badges_awarded,
    )


def run_handler(handler, *args) -> TriggerResponse:
    """Invoke an adapter handler, mapping engine errors onto retryable HTTP codes."""
    try:
        return to_response(handler(*args))
    except TransientStoreConflict as e:
        raise HTTPException(status_code=503, detail=str(e))
    except FatalWriteFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/ghost-reports/{report_id}/created", response_model=TriggerResponse)
def ghost_report_created(
    report_id: str,
    event: DocumentCreatedEvent,
    adapter: VoteEventAdapter = Depends(get_adapter),
):
    """Count a new ghost report against its author."""
    return run_handler(adapter.on_report_created, report_id, event.data)


@router.post("/ghost-reports/{report_id}/votes/{voter_id}", response_model=TriggerResponse)
def ghost_report_vote_written(
    report_id: str,
    voter_id: str,
    event: DocumentWrittenEvent,
    adapter: VoteEventAdapter = Depends(get_adapter),
):
    """Award/remove a point when a report vote toggles 'valid'."""
    return run_handler(
        adapter.on_report_vote_written, report_id, voter_id, event.before, event.after
    )


@router.post("/network-posts/{post_id}/votes/{user_id}", response_model=TriggerResponse)
def network_post_vote_written(
    post_id: str,
    user_id: str,
    event: DocumentWrittenEvent,
    adapter: VoteEventAdapter = Depends(get_adapter),
):
    """
    Mirror a network post vote into the post's up/down counters.

    user_id is part of the document path only; the mirror does not use it.
    """
    return run_handler(adapter.on_network_post_vote_written, post_id, event.before, event.after)

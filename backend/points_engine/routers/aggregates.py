"""
Points Engine - Owner Aggregate API Router

Read-only view of an owner's counters for the profile page.

`score` is the only stored points counter. The profile pill reads either
`points` or `accountPoints`, so both are filled in here from `score`.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..dependencies import get_db
from ..models.db_models import UserDB


router = APIRouter(prefix="/users", tags=["aggregates"])


class OwnerAggregateResponse(BaseModel):
    """Owner counters with the legacy points aliases."""
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    score: int
    points: int
    account_points: int = Field(alias="accountPoints")
    reports_count: int = Field(alias="reportsCount")
    approvals_count: int = Field(alias="approvalsCount")
    earned_badges: List[str] = Field(alias="earnedBadges")
    updated_at: str = Field(alias="updatedAt")


@router.get(
    "/{uid}/aggregate",
    response_model=OwnerAggregateResponse,
    response_model_by_alias=True,
)
def get_owner_aggregate(uid: str, db: Session = Depends(get_db)):
    """Counters and earned badges for one owner."""
    user = db.get(UserDB, uid)
    if user is None:
        raise HTTPException(status_code=404, detail="No aggregate for this user")

    score = user.score or 0
    return OwnerAggregateResponse(
        uid=user.id,
        score=score,
        points=score,
        account_points=score,
        reports_count=user.reports_count or 0,
        approvals_count=user.approvals_count or 0,
        earned_badges=list(user.earned_badges or []),
        updated_at=user.updated_at.isoformat() if user.updated_at else "",
    )

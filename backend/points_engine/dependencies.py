"""
Points Engine - FastAPI Dependencies
The store lives on app.state; routers reach it through these.
"""
from fastapi import Request
from sqlalchemy.orm import Session

from .database import TransactionalStore
from .services.event_adapter import VoteEventAdapter


def get_store(request: Request) -> TransactionalStore:
    """Dependency for FastAPI - the store built at startup."""
    return request.app.state.store


def get_db(request: Request):
    """Dependency for FastAPI - yields a read session."""
    db: Session = get_store(request).session()
    try:
        yield db
    finally:
        db.close()


def get_adapter(request: Request) -> VoteEventAdapter:
    """Dependency for FastAPI - trigger adapter bound to the app's store."""
    return VoteEventAdapter(get_store(request))

"""Points Engine - API Routers"""
from .triggers import router as triggers_router
from .aggregates import router as aggregates_router

__all__ = [
    "triggers_router",
    "aggregates_router",
]

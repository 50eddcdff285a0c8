"""
Points Engine - FastAPI Application

Webhook receiver for the document trigger substrate.

Architecture:
- Report created      → AggregateUpdater (reports_count) → BadgeRuleEngine
- Report vote written → Normalizer → TransitionLedger → AggregateUpdater → BadgeRuleEngine
- Network post vote   → atomic up/down counter mirror
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .database import TransactionalStore, build_store
from .routers import triggers_router, aggregates_router

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

VERSION = "1.0.0"


def create_app(store: Optional[TransactionalStore] = None) -> FastAPI:
    """
    Build the API. Pass a store to bind the app to an existing database
    (tests do); otherwise one is built from DATABASE_URL at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database on startup."""
        if getattr(app.state, "store", None) is None:
            app.state.store = build_store()
        yield

    app = FastAPI(
        lifespan=lifespan,
        title="Points Engine",
        description="""
    Points Engine - Idempotent vote aggregation

    Keeps owner points, approval counts and badges in step with votes on their
    reports, no matter how many times the trigger substrate delivers an event.

    ## Pipeline
    1. **Normalizer**: raw vote field → valid / needs_more / invalid / unset
    2. **Transition Ledger**: last contribution per (report, voter) → effective delta
    3. **Aggregate Updater**: delta → owner counters, same transaction as the ledger
    4. **Badge Rules**: old vs new counters → newly earned badges (never removed)
    """,
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.store = store

    # Include routers
    app.include_router(triggers_router)
    app.include_router(aggregates_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": VERSION}

    return app


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


# For running with: python -m points_engine.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)

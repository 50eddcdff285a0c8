"""
Points Engine - Dry-Run Vote Replay Script

Replays a scripted sequence of trigger notifications against a database to
prove:
1. A valid vote awards a point, moving away from valid removes it
2. Deleting a vote that no longer counts is a no-op
3. Redelivered events never double-apply
4. Crossing 50 points awards Wraith Wrecker exactly once
5. The first report awards Polter-Position Spotter exactly once

Run with: python dry_run_votes.py [DATABASE_URL]
Defaults to a throwaway in-memory SQLite database.
"""
import os
import sys
from uuid import uuid4

# Add package to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy.pool import StaticPool

from points_engine.database import TransactionalStore, build_engine, init_db
from points_engine.models.db_models import GhostReportDB, UserDB
from points_engine.services.event_adapter import VoteEventAdapter


def print_header(step: int, title: str):
    """Print a formatted step header."""
    print(f"\n{'='*70}")
    print(f"STEP {step}: {title}")
    print('='*70)


def check(condition: bool, msg: str) -> bool:
    """Print an [OK]/[FAIL] line and pass the result through."""
    print(f"  [{'OK' if condition else 'FAIL'}] {msg}")
    return condition


def load_user(store: TransactionalStore, uid: str) -> UserDB:
    db = store.session()
    try:
        return db.get(UserDB, uid)
    finally:
        db.close()


def main(database_url: str = "sqlite://") -> bool:
    print("="*70)
    print("POINTS ENGINE DRY-RUN")
    print("="*70)

    if database_url.startswith("sqlite"):
        engine = build_engine(database_url, poolclass=StaticPool)
    else:
        engine = build_engine(database_url)
    init_db(engine)
    store = TransactionalStore.from_engine(engine)
    adapter = VoteEventAdapter(store)

    author = f"author-{uuid4().hex[:8]}"
    voter = f"voter-{uuid4().hex[:8]}"
    report_id = f"report-{uuid4().hex[:8]}"

    db = store.session()
    db.add(GhostReportDB(id=report_id, uid=author, title="Cold spot on the stairs"))
    db.commit()
    db.close()

    results = []

    # Step 1: First report
    print_header(1, "FIRST REPORT")
    outcome = adapter.on_report_created(report_id, {"uid": author})
    results.append(check("Polter-Position Spotter" in outcome.badges_awarded, "First report badge awarded"))
    outcome = adapter.on_report_created(f"report-{uuid4().hex[:8]}", {"uid": author})
    results.append(check(outcome.badges_awarded == [], "Second report awards nothing new"))

    # Step 2: Valid -> needs_more -> delete
    print_header(2, "VOTE LIFECYCLE")
    adapter.on_report_vote_written(report_id, voter, None, {"value": "valid"})
    results.append(check(load_user(store, author).score == 1, "valid vote: score 0 -> 1"))
    adapter.on_report_vote_written(report_id, voter, {"value": "valid"}, {"value": "needs_more"})
    results.append(check(load_user(store, author).score == 0, "needs_more: score 1 -> 0"))
    outcome = adapter.on_report_vote_written(report_id, voter, {"value": "needs_more"}, None)
    results.append(check(not outcome.applied, f"delete is a no-op ({outcome.reason.value})"))

    # Step 3: Redelivery
    print_header(3, "REDELIVERY")
    for _ in range(3):
        adapter.on_report_vote_written(report_id, voter, None, {"value": 1})
    results.append(check(load_user(store, author).score == 1, "same event x3 counted once"))

    # Step 4: Threshold crossing
    print_header(4, "WRAITH WRECKER")
    for i in range(49):
        adapter.on_report_vote_written(report_id, f"crowd-{i}", None, {"value": "valid"})
    user = load_user(store, author)
    results.append(check(user.score == 50, f"score reached {user.score}"))
    results.append(check(user.earned_badges.count("Wraith Wrecker") == 1, "Wraith Wrecker earned once"))
    adapter.on_report_vote_written(report_id, "crowd-48", None, {"value": "valid"})
    user = load_user(store, author)
    results.append(check(user.earned_badges.count("Wraith Wrecker") == 1, "replay does not duplicate it"))

    print("\n" + "="*70)
    print(f"DRY-RUN COMPLETE: {sum(results)}/{len(results)} checks passed")
    print(f"  badges: {', '.join(user.earned_badges)}")
    print("="*70)

    return all(results)


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else "sqlite://"
    success = main(url)
    sys.exit(0 if success else 1)

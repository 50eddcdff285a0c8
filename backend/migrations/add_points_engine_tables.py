"""
Migration: Add points engine tables.

Creates 4 tables:
1. users - owner aggregates (score, counters, earned badges)
2. ghost_reports - reports being voted on (author in uid)
3. point_ledger - last contribution per (owner, report, voter)
4. network_posts - mirrored up/down vote counters

Core principle: every score change is justified by a ledger row written in the
same transaction.
"""
from sqlalchemy import create_engine, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{os.getenv('USER', 'postgres')}@localhost:5432/points_engine"
)


def table_exists(conn, table_name: str) -> bool:
    """Check if a table exists in the database."""
    result = conn.execute(text("""
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_name = :table_name
        )
    """), {"table_name": table_name})
    return result.fetchone()[0]


def run_migration():
    """Create all points engine tables."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        # =================================================================
        # TABLE 1: users (owner aggregates)
        # =================================================================
        if table_exists(conn, "users"):
            print("users table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE users (
                    id VARCHAR(128) PRIMARY KEY,
                    score INTEGER NOT NULL DEFAULT 0,
                    reports_count INTEGER NOT NULL DEFAULT 0,
                    approvals_count INTEGER NOT NULL DEFAULT 0,
                    earned_badges JSON NOT NULL DEFAULT '[]',
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            print("Created users table")

        # =================================================================
        # TABLE 2: ghost_reports
        # =================================================================
        if table_exists(conn, "ghost_reports"):
            print("ghost_reports table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE ghost_reports (
                    id VARCHAR(128) PRIMARY KEY,
                    uid VARCHAR(128),
                    title VARCHAR(255),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            conn.execute(text("""
                CREATE INDEX ix_ghost_reports_uid ON ghost_reports(uid)
            """))
            print("Created ghost_reports table")

        # =================================================================
        # TABLE 3: point_ledger
        # =================================================================
        if table_exists(conn, "point_ledger"):
            print("point_ledger table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE point_ledger (
                    owner_id VARCHAR(128) NOT NULL,
                    report_id VARCHAR(128) NOT NULL,
                    voter_id VARCHAR(128) NOT NULL,
                    last_is_valid BOOLEAN NOT NULL DEFAULT FALSE,
                    version INTEGER NOT NULL DEFAULT 1,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (owner_id, report_id, voter_id)
                )
            """))
            conn.execute(text("""
                CREATE INDEX ix_point_ledger_report_voter ON point_ledger(report_id, voter_id)
            """))
            print("Created point_ledger table")

        # =================================================================
        # TABLE 4: network_posts
        # =================================================================
        if table_exists(conn, "network_posts"):
            print("network_posts table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE network_posts (
                    id VARCHAR(128) PRIMARY KEY,
                    votes_up INTEGER NOT NULL DEFAULT 0,
                    votes_down INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            print("Created network_posts table")

        conn.commit()
        print("\nPoints engine migration completed successfully!")


def rollback_migration():
    """Drop all points engine tables."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        for table in ["network_posts", "point_ledger", "ghost_reports", "users"]:
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
            print(f"Dropped {table} table")

        conn.commit()
        print("\nRollback completed successfully!")


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "rollback":
        rollback_migration()
    else:
        run_migration()

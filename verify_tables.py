#!/usr/bin/env python
"""Verify the team tables and the pending-invitation index exist.

Uses DATABASE_URL from the environment, e.g. after ``flask db upgrade``.
"""
import sys

from sqlalchemy import inspect

from dashboard_app.app import create_app, db

EXPECTED_TABLES = ("users", "organizations", "organization_members", "invitations")
PENDING_INDEX = "uq_invitations_org_email_pending"

if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        inspector = inspect(db.engine)
        tables = set(inspector.get_table_names())
        missing = [t for t in EXPECTED_TABLES if t not in tables]
        print(f"Team tables present: {sorted(tables & set(EXPECTED_TABLES))}")
        if missing:
            print(f"✗ Missing tables: {missing}")
            sys.exit(1)

        indexes = {ix["name"] for ix in inspector.get_indexes("invitations")}
        if PENDING_INDEX not in indexes:
            print(f"✗ Missing index {PENDING_INDEX} on invitations")
            sys.exit(1)
        print("✓ Team schema is in place!")

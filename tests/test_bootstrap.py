import os
import sqlite3
import tempfile

import pytest

from migration.bootstrap import bootstrap
from salon.auth import verify_password


def test_bootstrap_creates_admin_and_demo_catalog():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "salon.db")
        result = bootstrap(f"sqlite:///{db_path}", "owner", "s3cret", demo=True)
        assert result["seeded"] == {"products": 3, "services": 3, "team_members": 2}

        conn = sqlite3.connect(db_path)
        try:
            rows = conn.execute("SELECT id, username, password_hash FROM admin_users").fetchall()
            assert len(rows) == 1
            assert rows[0][1] == "owner"
            assert verify_password("s3cret", rows[0][2])
        finally:
            conn.close()


def test_bootstrap_is_idempotent_and_resets_password():
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite:///{os.path.join(tmp, 'salon.db')}"
        first = bootstrap(url, "owner", "old", demo=True)
        second = bootstrap(url, "owner", "new", demo=True)
        assert first["admin_id"] == second["admin_id"]
        # catalog is only seeded into empty tables
        assert second["seeded"] == {}

        conn = sqlite3.connect(os.path.join(tmp, "salon.db"))
        try:
            (pw_hash,) = conn.execute("SELECT password_hash FROM admin_users").fetchone()
            assert verify_password("new", pw_hash)
            assert conn.execute("SELECT COUNT(*) FROM products").fetchone()[0] == 3
        finally:
            conn.close()


def test_bootstrap_requires_credentials():
    with pytest.raises(ValueError):
        bootstrap("sqlite://", "owner", "")

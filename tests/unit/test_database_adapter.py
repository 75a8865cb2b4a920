"""
Tests for database adapter helpers: placeholder translation and
status-string parsing.
"""

import pytest

from src.core.database.adapter import affected_rows, _convert_to_sqlite, _status_for


class TestStatusStrings:
    """Test PostgreSQL-style status strings on both backends."""

    @pytest.mark.parametrize("status,expected", [
        ("UPDATE 1", 1),
        ("UPDATE 0", 0),
        ("INSERT 0 1", 1),
        ("DELETE 12", 12),
        ("", 0),
        ("CREATE TABLE", 0),
    ])
    def test_affected_rows(self, status, expected):
        assert affected_rows(status) == expected

    def test_sqlite_translation(self):
        assert _convert_to_sqlite("SELECT * FROM t WHERE a = $1 AND b = $2") == \
            "SELECT * FROM t WHERE a = ? AND b = ?"
        assert _status_for("  update t set a = 1", 2) == "UPDATE 2"
        assert _status_for("INSERT INTO t VALUES (1)", 1) == "INSERT 0 1"

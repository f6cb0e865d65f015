from __future__ import annotations

import sqlite3
import textwrap

import pytest

SYNOPSIS_SQL = textwrap.dedent(
    """\
    CREATE TABLE parent (a, b, c   , d    );
    CREATE TABLE child (x, y, "w;", "z;z");
    /* C-style comment; */
    CREATE TRIGGER "check;delete;parent;" BEFORE DELETE ON parent WHEN
        EXISTS (SELECT 1 FROM child WHERE old.a = x AND old.b = y)
    BEGIN
        SELECT RAISE(ABORT, 'constraint failed;'); -- Inlined SQL comment
    END;
    -- Standalone SQL; comment; w/ semicolons;
    INSERT INTO parent (a, b, c, d) VALUES ('pippo;', 'pluto;', NULL, NULL);
    """
)

CITY_SQL = textwrap.dedent(
    """\
    CREATE TABLE state (id, name);
    INSERT INTO  state (id, name) VALUES (?, ?);
    CREATE TABLE city (id, name, state_id);
    INSERT INTO  city (id, name, state_id) VALUES (?, ?, ?);
    INSERT INTO  city (id, name, state_id) VALUES (?, ?, ?);
    CREATE INDEX city_state ON city (state_id)
    """
)

CITY_BINDS = [
    None,
    [1, "Nevada"],
    None,
    [1, "Las Vegas", 1],
    [2, "Carson City", 1],
]


@pytest.fixture
def dbh():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


def table_names(conn) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {name for (name,) in rows}

# Overview: Locking helpers for read-check-write sequences on shared counters.

from __future__ import annotations

from sqlalchemy import text


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    populate_existing() refreshes rows already in the identity map so the
    check that follows sees the committed value, not a cached one.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() serializes
    writers there instead.
    """
    return query.with_for_update().populate_existing()


def begin_write(session) -> None:
    """
    Open the write transaction up front.

    On SQLite this issues BEGIN IMMEDIATE so the reserved lock is taken
    before the first read; a second writer waits (busy timeout) instead of
    reading the same stock level. Other databases rely on lock_for_update.
    """
    connection = session.connection()
    if connection.dialect.name != "sqlite":
        return
    if connection.connection.dbapi_connection.in_transaction:
        # Already inside a write transaction on this connection
        return
    session.execute(text("BEGIN IMMEDIATE"))

"""Dense, zero-based ordering of siblings within a partition.

A partition is one ordering sequence: the non-archived tasks of a column, or
the list items of one task. Every function here takes the connection of an
open ``Store.transaction()``; positions must never be read outside the
transaction that writes them.
"""

import logging
import sqlite3
from dataclasses import dataclass

from clioboard.exceptions import InvalidTransitionError
from clioboard.models.common import Column

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    table: str
    clause: str
    params: tuple

    @classmethod
    def column(cls, column: Column | str) -> "Partition":
        return cls("tasks", "column_name = ? AND archived = 0", (Column(column).value,))

    @classmethod
    def checklist(cls, task_id: str) -> "Partition":
        return cls("list_items", "task_id = ?", (task_id,))


def count(conn: sqlite3.Connection, partition: Partition) -> int:
    row = conn.execute(
        f"SELECT COUNT(*) FROM {partition.table} WHERE {partition.clause}",
        partition.params,
    ).fetchone()
    return row[0]


def positions(conn: sqlite3.Connection, partition: Partition) -> list[int]:
    rows = conn.execute(
        f"SELECT position FROM {partition.table} WHERE {partition.clause} ORDER BY position",
        partition.params,
    ).fetchall()
    return [r[0] for r in rows]


def is_dense(conn: sqlite3.Connection, partition: Partition) -> bool:
    return positions(conn, partition) == list(range(count(conn, partition)))


def append(conn: sqlite3.Connection, partition: Partition) -> int:
    """Next free slot. Nothing is written; the caller inserts at this position."""
    return count(conn, partition)


def insert_at(conn: sqlite3.Connection, partition: Partition, position: int) -> None:
    """Open a gap at ``position`` so a new sibling can be written there."""
    size = count(conn, partition)
    if not 0 <= position <= size:
        raise InvalidTransitionError(f"Position {position} is outside 0..{size}")
    conn.execute(
        f"UPDATE {partition.table} SET position = position + 1 "
        f"WHERE {partition.clause} AND position >= ?",
        (*partition.params, position),
    )


def remove_from(conn: sqlite3.Connection, partition: Partition, position: int) -> None:
    """Close the gap left by a sibling that was removed from ``position``."""
    conn.execute(
        f"UPDATE {partition.table} SET position = position - 1 "
        f"WHERE {partition.clause} AND position > ?",
        (*partition.params, position),
    )


def shift_within(conn: sqlite3.Connection, partition: Partition, row_id: str, old: int, new: int) -> None:
    """Make room for ``row_id`` moving from ``old`` to ``new`` in the same partition.

    Only the siblings between the two slots move; the caller writes ``new``
    on the moved row afterwards.
    """
    if new < old:
        conn.execute(
            f"UPDATE {partition.table} SET position = position + 1 "
            f"WHERE {partition.clause} AND position >= ? AND position < ? AND id != ?",
            (*partition.params, new, old, row_id),
        )
    elif new > old:
        conn.execute(
            f"UPDATE {partition.table} SET position = position - 1 "
            f"WHERE {partition.clause} AND position > ? AND position <= ? AND id != ?",
            (*partition.params, old, new, row_id),
        )


def renumber(conn: sqlite3.Connection, partition: Partition) -> int:
    """Rewrite every sibling to 0..n-1 keeping the current order.

    Ties on position are broken by creation order. Idempotent; returns the
    number of rows whose position actually changed.
    """
    rows = conn.execute(
        f"SELECT id, position FROM {partition.table} WHERE {partition.clause} "
        f"ORDER BY position, created_at, rowid",
        partition.params,
    ).fetchall()
    changed = 0
    for index, row in enumerate(rows):
        if row["position"] != index:
            conn.execute(f"UPDATE {partition.table} SET position = ? WHERE id = ?", (index, row["id"]))
            changed += 1
    if changed:
        logger.debug(f"Renumbered {changed} row(s) in {partition.table} {partition.params}")
    return changed


def clamp(position: int | None, upper: int) -> int:
    """Resolve a requested slot against the highest valid one.

    ``None`` or anything past ``upper`` lands on ``upper``; negative slots are
    rejected.
    """
    if position is None or position > upper:
        return upper
    if position < 0:
        raise InvalidTransitionError(f"Position must be non-negative, got {position}")
    return position

"""Declarative bases shared by the content and index table models."""

from typing import Sequence

from sqlalchemy import DDL, Table, Text, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for tables stored in each per-content database."""

    pass


class IndexBase(DeclarativeBase):
    """Base class for tables stored in the shared index database."""

    pass


class TimestampMixin:
    """ISO-8601 creation/update timestamps supplied by the caller."""

    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)


def attach_fts_index(
    table: Table, columns: Sequence[str], unindexed: Sequence[str] = ()
) -> str:
    """
    Attach an FTS5 index ``<table>_fts`` to a table.

    The virtual table uses ``table`` as its external content, keyed by
    rowid. Insert, update and delete triggers keep it in sync; stale rows
    are removed with the FTS5 ``'delete'`` command, which needs the old
    column values.

    Args:
        table: Indexed table (must have a rowid)
        columns: Columns copied into the index
        unindexed: Columns stored but not tokenized

    Returns:
        Name of the virtual table
    """
    fts = f"{table.name}_fts"
    names = ", ".join(columns)
    declared = ", ".join(
        f"{column} UNINDEXED" if column in unindexed else column for column in columns
    )
    new_values = ", ".join(f"new.{column}" for column in columns)
    old_values = ", ".join(f"old.{column}" for column in columns)
    add_row = f"INSERT INTO {fts}(rowid, {names}) VALUES (new.rowid, {new_values});"
    remove_row = (
        f"INSERT INTO {fts}({fts}, rowid, {names}) VALUES ('delete', old.rowid, {old_values});"
    )

    statements = [
        f"CREATE VIRTUAL TABLE IF NOT EXISTS {fts} USING fts5("
        f"{declared}, content={table.name}, content_rowid=rowid)",
        f"CREATE TRIGGER IF NOT EXISTS {fts}_insert AFTER INSERT ON {table.name} "
        f"BEGIN {add_row} END",
        f"CREATE TRIGGER IF NOT EXISTS {fts}_delete AFTER DELETE ON {table.name} "
        f"BEGIN {remove_row} END",
        f"CREATE TRIGGER IF NOT EXISTS {fts}_update AFTER UPDATE ON {table.name} "
        f"BEGIN {remove_row} {add_row} END",
    ]
    for statement in statements:
        event.listen(table, "after_create", DDL(statement))
    event.listen(table, "before_drop", DDL(f"DROP TABLE IF EXISTS {fts}"))
    return fts

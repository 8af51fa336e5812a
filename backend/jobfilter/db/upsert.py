"""Single-statement upserts keyed by a table's unique constraint.

Functions:
    upsert(session, model, *, keys, values, insert_only): INSERT ... ON CONFLICT DO UPDATE.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


async def upsert(
    session: AsyncSession,
    model: type[SQLModel],
    *,
    keys: Mapping[str, Any],
    values: Mapping[str, Any],
    insert_only: Optional[Mapping[str, Any]] = None,
) -> None:
    """Insert a row or update ``values`` on the row matching ``keys``.

    ``insert_only`` columns (ids, creation timestamps) are written on insert
    and left untouched on conflict. The statement is atomic at the database,
    so concurrent writers cannot interleave a partial document.
    """

    dialect = session.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"upsert is not supported for dialect {dialect!r}")

    table = model.__table__  # type: ignore[attr-defined]
    row = {**dict(insert_only or {}), **dict(keys), **dict(values)}
    stmt = insert(table).values(**row)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c[name] for name in keys],
        set_={name: stmt.excluded[name] for name in values},
    )
    await session.execute(stmt)

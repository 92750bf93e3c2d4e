"""
INSERT ... ON CONFLICT helper.

Conflicts are resolved by the store's unique constraints, so two requests
writing the same natural key converge on one row instead of racing.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model: Any,
    rows: List[Dict[str, Any]],
    conflict_columns: Sequence[str],
    update_columns: Optional[Iterable[str]] = None,
    keep_existing_when_null: bool = False,
) -> None:
    """
    Inserts `rows` into `model`'s table, resolving conflicts on `conflict_columns`.

    Args:
        db (Session): Active SQLAlchemy session. Nothing is committed here.
        model: ORM class whose table receives the rows.
        rows (List[Dict[str, Any]]): Column/value mappings, all with the same keys.
        conflict_columns (Sequence[str]): Columns of the unique constraint to resolve on.
        update_columns (Optional[Iterable[str]]): Columns overwritten with the incoming
            values on conflict. When empty or None the conflicting row is left untouched.
        keep_existing_when_null (bool): On conflict, a NULL incoming value keeps the
            stored one (COALESCE(incoming, stored)).
    """
    if not rows:
        return

    dialect = db.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"upsert is not supported for dialect '{dialect}'")

    table = model.__table__
    stmt = insert(table).values(rows)
    update_columns = list(update_columns or [])
    if update_columns:
        if keep_existing_when_null:
            set_ = {column: func.coalesce(stmt.excluded[column], table.c[column]) for column in update_columns}
        else:
            set_ = {column: stmt.excluded[column] for column in update_columns}
        stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=set_)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))

    db.execute(stmt)
    logger.debug(f"Upserted {len(rows)} row(s) into {table.name} on {tuple(conflict_columns)}")

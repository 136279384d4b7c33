# expenses_service/utils/upsert.py
# INSERT ... ON CONFLICT DO NOTHING под текущий диалект (Postgres в проде, SQLite в тестах).

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session


def insert_ignore(db: Session, table: Table, values: Dict[str, Any], index_elements: List[str]):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(table)
    elif dialect == "sqlite":
        stmt = sqlite_insert(table)
    else:
        raise NotImplementedError(f"insert_ignore is not supported for dialect {dialect!r}")
    return stmt.values(**values).on_conflict_do_nothing(index_elements=index_elements)

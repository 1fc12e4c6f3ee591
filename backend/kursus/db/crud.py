"""CRUD helpers for whole-table export and import."""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, DateTime, delete, inspect, select
from sqlalchemy.orm import Session

from kursus.core.database import Base


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to the camelCase key used in backups."""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(obj: Base) -> dict[str, Any]:
    """Serialize one ORM row to a JSON-safe mapping keyed by camelCase column name."""
    mapper = inspect(obj).mapper
    return {to_camel(attr.key): _json_value(getattr(obj, attr.key)) for attr in mapper.column_attrs}


def fetch_all_rows(db: Session, model: type[Base]) -> list[dict[str, Any]]:
    """Read every row of a table, ordered by primary key, without filters or pagination."""
    pk_columns = inspect(model).primary_key
    stmt = select(model).order_by(*pk_columns)
    return [row_to_dict(obj) for obj in db.execute(stmt).scalars().all()]


def delete_all_rows(db: Session, model: type[Base]) -> int:
    result = db.execute(delete(model))
    return result.rowcount or 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_temporal(value: Any, column_type: Any) -> Any:
    if not isinstance(value, str):
        return value
    if isinstance(column_type, DateTime):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            # Columns hold naive UTC
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    if isinstance(column_type, Date):
        return date.fromisoformat(value[:10])
    return value


def dict_to_row_kwargs(model: type[Base], row: dict[str, Any]) -> dict[str, Any]:
    """
    Map a backup row back to constructor kwargs for ``model``.

    Keys that are not columns of the model are dropped; ISO strings are parsed
    for Date/DateTime columns; missing timestamps default to now.
    """
    mapper = inspect(model)
    kwargs: dict[str, Any] = {}
    for attr in mapper.column_attrs:
        key = to_camel(attr.key)
        column = attr.columns[0]
        if key in row:
            kwargs[attr.key] = _parse_temporal(row[key], column.type)
        elif attr.key in ("created_at", "updated_at"):
            kwargs[attr.key] = _utc_now()
    return kwargs


def insert_rows(db: Session, model: type[Base], rows: list[dict[str, Any]]) -> int:
    for row in rows:
        db.add(model(**dict_to_row_kwargs(model, row)))
    db.flush()
    return len(rows)

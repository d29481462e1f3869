"""Column types that map to PostgreSQL arrays and degrade to JSON elsewhere."""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from sqlalchemy import JSON, Date
from sqlalchemy.dialects.postgresql import ARRAY, DOUBLE_PRECISION
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine


class FloatArray(TypeDecorator):
    """``FLOAT8[]`` on PostgreSQL, a JSON list on other dialects.

    Non-finite values survive both encodings; SQL NULL elements read back as ``nan``.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(DOUBLE_PRECISION))
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        return [float(item) for item in value]

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        return [math.nan if item is None else float(item) for item in value]


class DateArray(TypeDecorator):
    """``DATE[]`` on PostgreSQL, a JSON list of ISO dates on other dialects."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(Date))
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "postgresql":
            return list(value)
        return [item.isoformat() for item in value]

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        return [date.fromisoformat(item) if isinstance(item, str) else item for item in value]


__all__ = ["DateArray", "FloatArray"]

"""Hand-written PostgreSQL dialect kept for sources created before ARP."""

from __future__ import annotations

from .base import SqlDialect

_LEGACY_FUNCTIONS = (
    "abs",
    "avg",
    "ceil",
    "coalesce",
    "concat",
    "count",
    "floor",
    "length",
    "lower",
    "max",
    "min",
    "mod",
    "round",
    "substring",
    "sum",
    "trim",
    "upper",
)

_LEGACY_OPERATORS = ("=", "<>", "<", "<=", ">", ">=", "+", "-", "*", "/", "and", "or", "not", "like")

_LEGACY_TYPES = {
    "int2": "smallint",
    "int4": "integer",
    "int8": "bigint",
    "float4": "float",
    "float8": "double",
    "numeric": "decimal",
    "bool": "boolean",
    "varchar": "varchar",
    "text": "varchar",
    "date": "date",
    "timestamp": "timestamp",
}


class PostgreSQLLegacyDialect(SqlDialect):
    """Fixed capability tables; no descriptor involved."""

    def __init__(self) -> None:
        super().__init__(
            "POSTGRESQL_LEGACY",
            sqlglot_dialect="postgres",
            identifier_length_limit=63,
            functions=_LEGACY_FUNCTIONS,
            operators=_LEGACY_OPERATORS,
            join_types=("inner", "left", "right", "full"),
            type_mappings=_LEGACY_TYPES,
        )


LEGACY_DIALECT = PostgreSQLLegacyDialect()


__all__ = ["LEGACY_DIALECT", "PostgreSQLLegacyDialect"]

"""Common behaviour shared by the legacy and descriptor-backed dialects."""

from __future__ import annotations

from typing import Iterable, Mapping

import sqlglot


class SqlDialect:
    """SQL rendering strategy handed to the query engine."""

    def __init__(
        self,
        name: str,
        *,
        sqlglot_dialect: str = "postgres",
        identifier_quote: str = '"',
        identifier_length_limit: int | None = None,
        functions: Iterable[str] = (),
        operators: Iterable[str] = (),
        join_types: Iterable[str] = (),
        type_mappings: Mapping[str, str] | None = None,
        supports_limit_offset: bool = True,
    ) -> None:
        self.name = name
        self.sqlglot_dialect = sqlglot_dialect
        self.identifier_quote = identifier_quote
        self.identifier_length_limit = identifier_length_limit
        self._functions = frozenset(fn.lower() for fn in functions)
        self._operators = frozenset(op.lower() for op in operators)
        self._join_types = frozenset(kind.lower() for kind in join_types)
        self._type_mappings = {key.lower(): value for key, value in (type_mappings or {}).items()}
        self.supports_limit_offset = supports_limit_offset

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def quote_identifier(self, identifier: str) -> str:
        """Quote ``identifier``, doubling any embedded quote characters."""

        quote = self.identifier_quote
        escaped = identifier.replace(quote, quote * 2)
        return f"{quote}{escaped}{quote}"

    def supports_function(self, name: str) -> bool:
        return name.lower() in self._functions

    def supports_operator(self, operator: str) -> bool:
        return operator.lower() in self._operators

    def supports_join(self, kind: str) -> bool:
        return kind.lower() in self._join_types

    def map_type(self, source_type: str) -> str | None:
        """Return the engine type for a vendor column type, if it is mapped."""

        return self._type_mappings.get(source_type.lower())

    def render(self, sql: str, *, read: str | None = None) -> str:
        """Transpile ``sql`` into this dialect's vendor SQL."""

        statements = sqlglot.transpile(sql, read=read or self.sqlglot_dialect, write=self.sqlglot_dialect)
        return ";\n".join(statements)


__all__ = ["SqlDialect"]

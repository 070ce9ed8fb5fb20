"""Descriptor-backed (ARP) dialect and its process-wide cache."""

from __future__ import annotations

import logging
import threading
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Callable

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import FatalInitializationError
from .base import SqlDialect

LOG = logging.getLogger(__name__)

ARP_FILENAME = "arp/highgo-arp.yaml"


class ArpMetadata(BaseModel):
    name: str
    apiname: str
    spec_version: str = "1"
    sqlglot_dialect: str = "postgres"


class ArpSyntax(BaseModel):
    identifier_quote: str = Field(default='"', min_length=1, max_length=1)
    identifier_length_limit: int | None = None
    allows_boolean_literal: bool = True
    map_boolean_literal_to_bit: bool = False
    supports_catalogs: bool = False
    supports_schemas: bool = True


class ArpTypeMapping(BaseModel):
    source: str
    target: str


class ArpDataTypes(BaseModel):
    mappings: list[ArpTypeMapping] = Field(default_factory=list)


class ArpAggregation(BaseModel):
    enable: bool = True
    group_by_ordinal: bool = False
    functions: list[str] = Field(default_factory=list)


class ArpJoin(BaseModel):
    enable: bool = True
    types: list[str] = Field(default_factory=list)


class ArpSort(BaseModel):
    enable: bool = True


class ArpRelationalAlgebra(BaseModel):
    aggregation: ArpAggregation = Field(default_factory=ArpAggregation)
    join: ArpJoin = Field(default_factory=ArpJoin)
    sort: ArpSort = Field(default_factory=ArpSort)
    limit_offset: bool = True


class ArpExpressions(BaseModel):
    operators: list[str] = Field(default_factory=list)
    functions: list[str] = Field(default_factory=list)


class ArpDescriptor(BaseModel):
    """Parsed dialect descriptor file."""

    metadata: ArpMetadata
    syntax: ArpSyntax = Field(default_factory=ArpSyntax)
    data_types: ArpDataTypes = Field(default_factory=ArpDataTypes)
    relational_algebra: ArpRelationalAlgebra = Field(default_factory=ArpRelationalAlgebra)
    expressions: ArpExpressions = Field(default_factory=ArpExpressions)


class ArpDialect(SqlDialect):
    """Dialect whose capabilities come entirely from an ARP descriptor."""

    def __init__(self, descriptor: ArpDescriptor) -> None:
        algebra = descriptor.relational_algebra
        functions = list(descriptor.expressions.functions)
        if algebra.aggregation.enable:
            functions.extend(algebra.aggregation.functions)
        super().__init__(
            descriptor.metadata.name,
            sqlglot_dialect=descriptor.metadata.sqlglot_dialect,
            identifier_quote=descriptor.syntax.identifier_quote,
            identifier_length_limit=descriptor.syntax.identifier_length_limit,
            functions=functions,
            operators=descriptor.expressions.operators,
            join_types=algebra.join.types if algebra.join.enable else (),
            type_mappings={entry.source: entry.target for entry in descriptor.data_types.mappings},
            supports_limit_offset=algebra.limit_offset,
        )
        self.descriptor = descriptor


DialectFactory = Callable[[ArpDescriptor], SqlDialect]

_arp_dialects: dict[str, SqlDialect] = {}
_arp_lock = threading.Lock()


def _resource_source(resource: str | Path) -> Traversable:
    if isinstance(resource, Path):
        return resource
    return resources.files(__package__).joinpath(resource)


def _resource_key(resource: str | Path) -> str:
    """Cache key naming the descriptor file, however it was addressed."""

    source = _resource_source(resource)
    if isinstance(source, Path):
        return str(source.resolve())
    return str(source)


def load_descriptor(resource: str | Path) -> ArpDescriptor:
    """Read and validate a descriptor; ``str`` names are package resources."""

    with _resource_source(resource).open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle)
    return ArpDescriptor.model_validate(raw)


def load_arp_dialect(resource: str | Path = ARP_FILENAME, factory: DialectFactory = ArpDialect) -> SqlDialect:
    """Return the dialect for ``resource``, loading it once per process.

    Reads of an already loaded dialect take no lock. A failed load is not
    cached and raises ``FatalInitializationError``.
    """

    key = _resource_key(resource)
    dialect = _arp_dialects.get(key)
    if dialect is not None:
        return dialect
    with _arp_lock:
        dialect = _arp_dialects.get(key)
        if dialect is None:
            try:
                dialect = factory(load_descriptor(resource))
            except (OSError, UnicodeDecodeError, yaml.YAMLError, ValidationError) as exc:
                LOG.critical("Dialect descriptor failed to load", extra={"resource": key})
                raise FatalInitializationError(
                    f"Packaged dialect descriptor '{key}' could not be loaded; "
                    f"this is a packaging defect: {exc}"
                ) from exc
            LOG.debug("Loaded dialect descriptor", extra={"resource": key, "dialect": dialect.name})
            _arp_dialects[key] = dialect
    return dialect


def get_arp_dialect() -> SqlDialect:
    """Return the shared HighGo ARP dialect."""

    return load_arp_dialect(ARP_FILENAME)


def clear_dialect_cache() -> None:
    """Forget loaded dialects (testing helper)."""

    with _arp_lock:
        _arp_dialects.clear()


__all__ = [
    "ARP_FILENAME",
    "ArpDescriptor",
    "ArpDialect",
    "clear_dialect_cache",
    "get_arp_dialect",
    "load_arp_dialect",
    "load_descriptor",
]

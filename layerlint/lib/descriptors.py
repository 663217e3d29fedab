"""Model and source descriptors.

Descriptors are the read-only, in-memory form of a declared warehouse model
or raw source. They are built once per run and never mutated; findings are
recorded in a separate report.

Layer rules:
- Sources are registered entry points and are never transformed
- Staging models sit one-to-one on top of a source table
- Intermediate models consolidate staging or other intermediate models
- Marts (facts and dimensions) are the business-facing terminal models
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

__all__ = [
    "ColumnDescriptor",
    "ColumnType",
    "Layer",
    "Materialization",
    "ModelDescriptor",
    "SourceDescriptor",
    "COLUMN_TYPE_ALIASES",
    "REQUIRED_KEY_TESTS",
    "normalize_column_type",
]

REQUIRED_KEY_TESTS: FrozenSet[str] = frozenset({"unique", "not_null"})


class Layer(Enum):
    """Where a model sits in the pipeline."""

    SOURCE = "source"
    STAGING = "staging"
    INTERMEDIATE = "intermediate"
    MART_DIM = "mart_dim"
    MART_FACT = "mart_fact"
    UTILITY = "utility"

    @property
    def is_mart(self) -> bool:
        return self in (Layer.MART_DIM, Layer.MART_FACT)


class Materialization(Enum):
    """How the build framework persists a model."""

    VIEW = "view"
    TABLE = "table"
    INCREMENTAL = "incremental"
    EPHEMERAL = "ephemeral"


class ColumnType(Enum):
    """Normalized column data type."""

    STRING = "string"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    OTHER = "other"


# Mapping from warehouse type names to normalized types
COLUMN_TYPE_ALIASES = {
    "string": ColumnType.STRING,
    "varchar": ColumnType.STRING,
    "nvarchar": ColumnType.STRING,
    "char": ColumnType.STRING,
    "text": ColumnType.STRING,
    "character varying": ColumnType.STRING,
    "integer": ColumnType.INTEGER,
    "int": ColumnType.INTEGER,
    "bigint": ColumnType.INTEGER,
    "smallint": ColumnType.INTEGER,
    "numeric": ColumnType.NUMERIC,
    "decimal": ColumnType.NUMERIC,
    "number": ColumnType.NUMERIC,
    "float": ColumnType.NUMERIC,
    "double": ColumnType.NUMERIC,
    "boolean": ColumnType.BOOLEAN,
    "bool": ColumnType.BOOLEAN,
    "date": ColumnType.DATE,
    "timestamp": ColumnType.TIMESTAMP,
    "timestamp_ntz": ColumnType.TIMESTAMP,
    "timestamp_tz": ColumnType.TIMESTAMP,
    "timestamp_ltz": ColumnType.TIMESTAMP,
    "timestamptz": ColumnType.TIMESTAMP,
    "datetime": ColumnType.TIMESTAMP,
}


def normalize_column_type(data_type: Optional[str]) -> ColumnType:
    """Map a declared type name such as ``VARCHAR(32)`` to a ColumnType.

    Unknown or missing types normalize to ``ColumnType.OTHER``.
    """
    if not data_type:
        return ColumnType.OTHER
    base = data_type.strip().lower().split("(", 1)[0].strip()
    return COLUMN_TYPE_ALIASES.get(base, ColumnType.OTHER)


@dataclass(frozen=True)
class ColumnDescriptor:
    """A declared model column.

    ``timezone`` of None means the column is stored in UTC.
    """

    name: str
    data_type: ColumnType = ColumnType.OTHER
    tests: FrozenSet[str] = field(default_factory=frozenset)
    timezone: Optional[str] = None

    @property
    def is_utc(self) -> bool:
        return self.timezone is None or self.timezone.strip().upper() in ("UTC", "Z", "ETC/UTC")


@dataclass(frozen=True)
class ModelDescriptor:
    """One warehouse model.

    Example:
        >>> ModelDescriptor(
        ...     name="stg_cms_hcc__patient_risk_factors",
        ...     layer=Layer.STAGING,
        ...     references=("cms_hcc_source.patient_risk_factors",),
        ...     primary_key="patient_id",
        ...     tests=frozenset({"unique", "not_null"}),
        ... )
    """

    name: str
    layer: Layer
    references: Tuple[str, ...] = ()
    primary_key: Optional[str] = None
    materialization: Materialization = Materialization.VIEW
    tests: FrozenSet[str] = field(default_factory=frozenset)
    columns: Tuple[ColumnDescriptor, ...] = ()
    directory: Optional[str] = None
    origin: Optional[str] = None

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    @property
    def key_column(self) -> Optional[ColumnDescriptor]:
        """The declared column backing the primary key, if any."""
        if not self.primary_key:
            return None
        return self.column(self.primary_key)

    @property
    def key_tests(self) -> FrozenSet[str]:
        """Tests carried by the primary key.

        Union of model-level tests and the tests declared on the key column.
        """
        key_column = self.key_column
        if key_column is None:
            return self.tests
        return self.tests | key_column.tests


@dataclass(frozen=True)
class SourceDescriptor:
    """A raw external source and the tables it exposes.

    Tables are referenced by models as ``<source>.<table>``.
    """

    name: str
    database: Optional[str] = None
    schema: Optional[str] = None
    tables: Tuple[str, ...] = ()
    origin: Optional[str] = None

    def table_names(self) -> Tuple[str, ...]:
        """Qualified names of every table in this source."""
        return tuple(f"{self.name}.{table}" for table in self.tables)

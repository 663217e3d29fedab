"""Pydantic models for model and source definitions.

Definitions are the loosely-typed mappings users write (usually in YAML).
They are validated here and converted into frozen descriptors.

Example YAML:
    sources:
      - name: cms_hcc_source
        database: raw
        schema: cms_hcc
        tables: [patient_risk_factors]

    models:
      - name: stg_cms_hcc__patient_risk_factors
        directory: models/staging/cms_hcc
        materialized: view
        references: [cms_hcc_source.patient_risk_factors]
        primary_key: patient_id
        columns:
          - name: patient_id
            data_type: varchar
            tests: [unique, not_null]
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from layerlint.lib.descriptors import (
    ColumnDescriptor,
    Layer,
    Materialization,
    ModelDescriptor,
    SourceDescriptor,
    normalize_column_type,
)
from layerlint.lib.errors import MalformedDescriptorError
from layerlint.lib.naming import classify_layer

__all__ = [
    "ColumnDefinition",
    "ModelDefinition",
    "SourceDefinition",
    "parse_model",
    "parse_source",
]

# Shorthand layer names accepted in definitions
LAYER_ALIASES = {
    "stg": Layer.STAGING,
    "int": Layer.INTERMEDIATE,
    "fct": Layer.MART_FACT,
    "fact": Layer.MART_FACT,
    "dim": Layer.MART_DIM,
    "dimension": Layer.MART_DIM,
    "util": Layer.UTILITY,
    "utilities": Layer.UTILITY,
}

_VALID_LAYERS = sorted(
    [layer.value for layer in Layer if layer != Layer.SOURCE]
    + list(LAYER_ALIASES)
    + ["mart", "marts"]
)
_VALID_MATERIALIZATIONS = [m.value for m in Materialization]


def _normalize_tests(value: Any) -> List[str]:
    """Accept ``[unique, {relationships: {...}}]`` style test lists."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]

    names: List[str] = []
    for item in value:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, Mapping) and len(item) == 1:
            names.append(str(next(iter(item))))
        else:
            raise ValueError(f"test entries must be names or single-key mappings, got {item!r}")
    return names


class ColumnDefinition(BaseModel):
    """A column declaration."""

    name: str = Field(..., min_length=1, description="Column name")
    data_type: Optional[str] = Field(default=None, description="Warehouse type name")
    tests: List[str] = Field(default_factory=list, description="Test kinds on this column")
    timezone: Optional[str] = Field(default=None, description="Timezone when not UTC")

    @model_validator(mode="before")
    @classmethod
    def normalize_aliases(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            if "data_tests" in data and "tests" not in data:
                data["tests"] = data.pop("data_tests")
            if "type" in data and "data_type" not in data:
                data["data_type"] = data.pop("type")
        return data

    @field_validator("tests", mode="before")
    @classmethod
    def validate_tests(cls, v: Any) -> List[str]:
        return _normalize_tests(v)

    def to_descriptor(self) -> ColumnDescriptor:
        return ColumnDescriptor(
            name=self.name,
            data_type=normalize_column_type(self.data_type),
            tests=frozenset(self.tests),
            timezone=self.timezone,
        )


class ModelDefinition(BaseModel):
    """Pydantic model for a model definition."""

    name: str = Field(..., min_length=1, description="Unique model name")
    layer: Optional[str] = Field(default=None, description="Layer; classified from directory when absent")
    directory: Optional[str] = Field(default=None, description="Directory the model lives in")
    materialization: str = Field(default="view", description="view, table, incremental or ephemeral")
    references: List[str] = Field(default_factory=list, description="Models or source tables selected from")
    primary_key: Optional[str] = Field(default=None, description="Primary key column")
    tests: List[str] = Field(default_factory=list, description="Tests declared on the primary key")
    columns: List[ColumnDefinition] = Field(default_factory=list, description="Declared columns")

    @model_validator(mode="before")
    @classmethod
    def normalize_aliases(cls, data: Any) -> Any:
        """Map dbt-style keys onto definition fields."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)

        config = data.pop("config", None)
        if not isinstance(config, Mapping):
            config = {}
        if "materialization" not in data:
            materialized = data.pop("materialized", None) or config.get("materialized")
            if materialized is not None:
                data["materialization"] = materialized

        if "data_tests" in data and "tests" not in data:
            data["tests"] = data.pop("data_tests")
        if "refs" in data and "references" not in data:
            data["references"] = data.pop("refs")

        # A model file path places the model in the file's directory
        if "path" in data and data.get("directory") is None:
            path = data.pop("path")
            if path:
                data["directory"] = str(PurePosixPath(str(path).replace("\\", "/")).parent)

        if data.get("references") is None:
            data["references"] = []
        return data

    @field_validator("layer")
    @classmethod
    def validate_layer(cls, v: Optional[str]) -> Optional[str]:
        """Validate layer is a known value."""
        if v is None:
            return v
        if v.lower() not in _VALID_LAYERS:
            raise ValueError(f"layer must be one of: {_VALID_LAYERS}")
        return v.lower()

    @field_validator("materialization")
    @classmethod
    def validate_materialization(cls, v: str) -> str:
        """Validate materialization is a known value."""
        if v.lower() not in _VALID_MATERIALIZATIONS:
            raise ValueError(f"materialization must be one of: {_VALID_MATERIALIZATIONS}")
        return v.lower()

    @field_validator("tests", mode="before")
    @classmethod
    def validate_tests(cls, v: Any) -> List[str]:
        return _normalize_tests(v)

    def resolve_layer(self) -> Optional[Layer]:
        """Resolve the declared layer, falling back to the directory."""
        if self.layer is None:
            return classify_layer(self.directory, self.name)
        if self.layer in ("mart", "marts"):
            return Layer.MART_DIM if self.name.startswith("dim_") else Layer.MART_FACT
        if self.layer in LAYER_ALIASES:
            return LAYER_ALIASES[self.layer]
        return Layer(self.layer)

    def to_descriptor(self, origin: Optional[str] = None) -> ModelDescriptor:
        layer = self.resolve_layer()
        if layer is None:
            raise MalformedDescriptorError(
                f"Model '{self.name}' has no layer",
                field="layer",
                descriptor=self.name,
                origin=origin,
                suggestion=(
                    "Add layer: staging|intermediate|mart_fact|mart_dim|utility, "
                    "or place the model under a staging/, intermediate/, marts/ "
                    "or utilities/ directory"
                ),
            )

        return ModelDescriptor(
            name=self.name,
            layer=layer,
            references=tuple(dict.fromkeys(self.references)),
            primary_key=self.primary_key or None,
            materialization=Materialization(self.materialization),
            tests=frozenset(self.tests),
            columns=tuple(col.to_descriptor() for col in self.columns),
            directory=self.directory,
            origin=origin,
        )


class SourceDefinition(BaseModel):
    """Pydantic model for a raw source definition."""

    name: str = Field(..., min_length=1, description="Source name")
    database: Optional[str] = Field(default=None, description="Database holding the raw tables")
    schema_name: Optional[str] = Field(default=None, alias="schema", description="Schema holding the raw tables")
    tables: List[str] = Field(default_factory=list, description="Raw table names")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("tables", mode="before")
    @classmethod
    def validate_tables(cls, v: Any) -> List[str]:
        """Accept table names or ``{name: ...}`` mappings."""
        if v is None:
            return []
        names: List[str] = []
        for item in v:
            if isinstance(item, str):
                names.append(item)
            elif isinstance(item, Mapping) and item.get("name"):
                names.append(str(item["name"]))
            else:
                raise ValueError(f"table entries must be names or mappings with a name, got {item!r}")
        return names

    def to_descriptor(self, origin: Optional[str] = None) -> SourceDescriptor:
        return SourceDescriptor(
            name=self.name,
            database=self.database,
            schema=self.schema_name,
            tables=tuple(dict.fromkeys(self.tables)),
            origin=origin,
        )


def _malformed(
    exc: ValidationError,
    kind: str,
    data: Mapping[str, Any],
    index: Optional[int],
    origin: Optional[str],
) -> MalformedDescriptorError:
    """Turn the first pydantic error into a MalformedDescriptorError."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    name = data.get("name") if isinstance(data.get("name"), str) and data.get("name") else None
    descriptor = name or (f"{kind} #{index}" if index is not None else kind)

    missing = first.get("type") == "missing" or (
        first.get("type") == "string_type" and first.get("input") is None
    )
    if missing:
        message = f"{kind.capitalize()} definition is missing required field '{field}'"
    elif first.get("type") == "string_too_short":
        message = f"{kind.capitalize()} definition has an empty '{field}'"
    else:
        message = f"Invalid {kind} field '{field}': {first.get('msg')}"

    return MalformedDescriptorError(
        message,
        field=field,
        descriptor=descriptor,
        origin=origin,
        details={"error_count": exc.error_count()},
    )


def parse_model(
    data: Union[ModelDescriptor, Mapping[str, Any]],
    *,
    index: Optional[int] = None,
    origin: Optional[str] = None,
) -> ModelDescriptor:
    """Parse a model definition into a ModelDescriptor.

    Args:
        data: Descriptor (returned as-is) or definition mapping
        index: Position of the definition, used in error messages
        origin: File the definition came from

    Raises:
        MalformedDescriptorError: If a required field is missing or invalid
    """
    if isinstance(data, ModelDescriptor):
        return data
    if not isinstance(data, Mapping):
        raise MalformedDescriptorError(
            f"Model definition must be a mapping, got {type(data).__name__}",
            descriptor=f"model #{index}" if index is not None else None,
            origin=origin,
        )

    try:
        definition = ModelDefinition.model_validate(data)
    except ValidationError as e:
        raise _malformed(e, "model", data, index, origin) from e
    return definition.to_descriptor(origin)


def parse_source(
    data: Union[SourceDescriptor, Mapping[str, Any]],
    *,
    index: Optional[int] = None,
    origin: Optional[str] = None,
) -> SourceDescriptor:
    """Parse a source definition into a SourceDescriptor.

    Raises:
        MalformedDescriptorError: If the name is missing or tables are invalid
    """
    if isinstance(data, SourceDescriptor):
        return data
    if not isinstance(data, Mapping):
        raise MalformedDescriptorError(
            f"Source definition must be a mapping, got {type(data).__name__}",
            descriptor=f"source #{index}" if index is not None else None,
            origin=origin,
        )

    try:
        definition = SourceDefinition.model_validate(data)
    except ValidationError as e:
        raise _malformed(e, "source", data, index, origin) from e
    return definition.to_descriptor(origin)


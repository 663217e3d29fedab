"""Per-model convention rules.

Each rule is a pure function from a ModelDescriptor to a (possibly empty) list
of violations. ``RULES`` fixes the order they run in, which is also the order
their findings appear in a report.

These are CONVENTION rules (names, materializations, key tests). Reference
edges between models are checked by ``layerlint.lib.graph``.
"""

from __future__ import annotations

from typing import Callable, Dict, FrozenSet, List, Tuple

from layerlint.lib.descriptors import (
    REQUIRED_KEY_TESTS,
    ColumnType,
    Layer,
    Materialization,
    ModelDescriptor,
)
from layerlint.lib.naming import (
    describe_name_pattern,
    is_valid_boolean_name,
    is_valid_date_name,
    is_valid_key_name,
    is_valid_timestamp_name,
    matches_layer_pattern,
)
from layerlint.lib.report import Violation, ViolationKind

__all__ = [
    "ALLOWED_MATERIALIZATIONS",
    "ALLOWED_REFERENCES",
    "RULES",
    "Rule",
    "check_columns",
    "check_materialization",
    "check_name",
    "check_primary_key",
    "check_primary_key_column",
    "check_primary_key_tests",
    "validate_model",
]

Rule = Callable[[ModelDescriptor], List[Violation]]

_MART_INPUTS = frozenset({Layer.INTERMEDIATE, Layer.MART_FACT, Layer.MART_DIM})

# Layers each layer may select from
ALLOWED_REFERENCES: Dict[Layer, FrozenSet[Layer]] = {
    Layer.SOURCE: frozenset(),
    Layer.STAGING: frozenset({Layer.SOURCE}),
    Layer.INTERMEDIATE: frozenset({Layer.STAGING, Layer.INTERMEDIATE}),
    Layer.MART_FACT: _MART_INPUTS,
    Layer.MART_DIM: _MART_INPUTS,
    Layer.UTILITY: frozenset(Layer),
}

ALLOWED_MATERIALIZATIONS: Dict[Layer, FrozenSet[Materialization]] = {
    Layer.STAGING: frozenset({Materialization.VIEW}),
    Layer.INTERMEDIATE: frozenset({Materialization.VIEW}),
    Layer.MART_FACT: frozenset({Materialization.TABLE}),
    Layer.MART_DIM: frozenset({Materialization.TABLE}),
    Layer.UTILITY: frozenset({Materialization.VIEW, Materialization.TABLE}),
}


def _names(values) -> str:
    return ", ".join(sorted(v.value if hasattr(v, "value") else v for v in values))


def check_name(model: ModelDescriptor) -> List[Violation]:
    """Model name must follow its layer's pattern."""
    if matches_layer_pattern(model.name, model.layer):
        return []
    return [
        Violation(
            kind=ViolationKind.NAMING,
            rule=f"naming.{model.layer.value}",
            model=model.name,
            message=(
                f"Name does not match the {model.layer.value} pattern "
                f"'{describe_name_pattern(model.layer)}'"
            ),
        )
    ]


def check_materialization(model: ModelDescriptor) -> List[Violation]:
    """Materialization must be allowed for the layer."""
    allowed = ALLOWED_MATERIALIZATIONS.get(model.layer)
    if not allowed or model.materialization in allowed:
        return []
    return [
        Violation(
            kind=ViolationKind.MATERIALIZATION,
            rule=f"materialization.{model.layer.value}",
            model=model.name,
            message=(
                f"Materialized as {model.materialization.value}; "
                f"{model.layer.value} models must be {_names(allowed)}"
            ),
        )
    ]


def check_primary_key(model: ModelDescriptor) -> List[Violation]:
    """Every model declares a primary key."""
    if model.primary_key:
        return []
    return [
        Violation(
            kind=ViolationKind.PRIMARY_KEY,
            rule="primary_key.missing",
            model=model.name,
            message="No primary key declared",
        )
    ]


def check_primary_key_tests(model: ModelDescriptor) -> List[Violation]:
    """The primary key carries at least unique and not_null tests."""
    if not model.primary_key:
        return []
    missing = REQUIRED_KEY_TESTS - model.key_tests
    if not missing:
        return []
    return [
        Violation(
            kind=ViolationKind.PRIMARY_KEY,
            rule="primary_key.tests",
            model=model.name,
            message=f"Primary key '{model.primary_key}' is missing tests: {_names(missing)}",
        )
    ]


def check_primary_key_column(model: ModelDescriptor) -> List[Violation]:
    """Primary keys are named <object>_id and string typed.

    The type is only checked when the key column is declared with a
    recognized type.
    """
    if not model.primary_key:
        return []

    violations: List[Violation] = []
    if not is_valid_key_name(model.primary_key):
        violations.append(
            Violation(
                kind=ViolationKind.PRIMARY_KEY,
                rule="primary_key.naming",
                model=model.name,
                message=f"Primary key '{model.primary_key}' should be named <object>_id",
            )
        )

    key_column = model.key_column
    if key_column is not None and key_column.data_type not in (ColumnType.STRING, ColumnType.OTHER):
        violations.append(
            Violation(
                kind=ViolationKind.PRIMARY_KEY,
                rule="primary_key.type",
                model=model.name,
                message=(
                    f"Primary key '{model.primary_key}' is {key_column.data_type.value}; "
                    "keys must be string typed"
                ),
            )
        )
    return violations


def check_columns(model: ModelDescriptor) -> List[Violation]:
    """Boolean, timestamp and date columns follow the naming conventions."""
    violations: List[Violation] = []

    for col in model.columns:
        if col.data_type == ColumnType.BOOLEAN and not is_valid_boolean_name(col.name):
            violations.append(
                Violation(
                    kind=ViolationKind.COLUMN_NAMING,
                    rule="column.boolean_prefix",
                    model=model.name,
                    reference=col.name,
                    message=f"Boolean column '{col.name}' should start with is_ or has_",
                )
            )
        elif col.data_type == ColumnType.TIMESTAMP and not is_valid_timestamp_name(col.name, col.is_utc):
            expected = "<event>_at" if col.is_utc else f"<event>_at_<tz> (stored in {col.timezone})"
            violations.append(
                Violation(
                    kind=ViolationKind.COLUMN_NAMING,
                    rule="column.timestamp_suffix",
                    model=model.name,
                    reference=col.name,
                    message=f"Timestamp column '{col.name}' should be named {expected}",
                )
            )
        elif col.data_type == ColumnType.DATE and not is_valid_date_name(col.name):
            violations.append(
                Violation(
                    kind=ViolationKind.COLUMN_NAMING,
                    rule="column.date_suffix",
                    model=model.name,
                    reference=col.name,
                    message=f"Date column '{col.name}' should be named <event>_date",
                )
            )

    return violations


RULES: Tuple[Rule, ...] = (
    check_name,
    check_materialization,
    check_primary_key,
    check_primary_key_tests,
    check_primary_key_column,
    check_columns,
)


def validate_model(model: ModelDescriptor, rules: Tuple[Rule, ...] = RULES) -> List[Violation]:
    """Run every rule against one model, in order."""
    violations: List[Violation] = []
    for rule in rules:
        violations.extend(rule(model))
    return violations

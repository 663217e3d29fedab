"""Naming conventions for models and columns.

Layer name patterns:
    staging       stg_[source]__[entity]s      stg_stripe__payments
    intermediate  int_[entity]s_[verb]ed      int_payments_pivoted_to_orders
    mart (fact)   fct_[verb]                   fct_orders
    mart (dim)    dim_[noun]                   dim_customers
    utility       snake_case, plural           all_dates

Column conventions:
    booleans      is_/has_ prefix             is_active, has_admin
    timestamps    <event>_at (UTC)            created_at
                  <event>_at_<tz> otherwise   created_at_pt
    dates         <event>_date                created_date
    primary keys  <object>_id, string typed   customer_id
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Optional

from layerlint.lib.descriptors import Layer

__all__ = [
    "LAYER_NAME_PATTERNS",
    "classify_layer",
    "describe_name_pattern",
    "is_past_tense",
    "is_valid_boolean_name",
    "is_valid_date_name",
    "is_valid_key_name",
    "is_valid_timestamp_name",
    "matches_layer_pattern",
]

_SEGMENT = r"[a-z0-9]+"
_SNAKE = rf"{_SEGMENT}(?:_{_SEGMENT})*"

_STAGING_RE = re.compile(rf"^stg_(?P<source>{_SNAKE})__(?P<entity>{_SNAKE})$")
_INTERMEDIATE_RE = re.compile(rf"^int_(?P<body>{_SNAKE})$")
_FACT_RE = re.compile(rf"^fct_{_SNAKE}$")
_DIM_RE = re.compile(rf"^dim_{_SNAKE}$")
_SNAKE_CASE_RE = re.compile(rf"^[a-z][a-z0-9]*(?:_{_SEGMENT})*$")

_KEY_RE = re.compile(rf"^{_SNAKE}_id$")
_UTC_TIMESTAMP_RE = re.compile(rf"^{_SNAKE}_at$")
_LOCAL_TIMESTAMP_RE = re.compile(rf"^{_SNAKE}_at_{_SEGMENT}$")
_DATE_RE = re.compile(rf"^{_SNAKE}_date$")

BOOLEAN_PREFIXES = ("is_", "has_")

# Common irregular past-tense verbs seen in intermediate model names
IRREGULAR_PAST_TENSE = frozenset({
    "built",
    "bound",
    "cut",
    "held",
    "kept",
    "made",
    "rebuilt",
    "run",
    "set",
    "split",
    "spun",
    "taken",
    "written",
})

LAYER_NAME_PATTERNS = {
    Layer.STAGING: "stg_[source]__[entity]s",
    Layer.INTERMEDIATE: "int_[entity]s_[pastTenseVerb]",
    Layer.MART_FACT: "fct_[verb]",
    Layer.MART_DIM: "dim_[noun]",
    Layer.UTILITY: "snake_case plural name",
}

# Directory names that place a model in a layer
_DIRECTORY_LAYERS = {
    "staging": Layer.STAGING,
    "intermediate": Layer.INTERMEDIATE,
    "marts": None,  # split into facts/dims by name prefix
    "mart": None,
    "utilities": Layer.UTILITY,
    "utils": Layer.UTILITY,
    "utility": Layer.UTILITY,
}


def is_past_tense(word: str) -> bool:
    return word in IRREGULAR_PAST_TENSE or (len(word) > 2 and word.endswith("ed"))


def _is_snake_case(name: str) -> bool:
    return bool(_SNAKE_CASE_RE.match(name))


def matches_layer_pattern(name: str, layer: Layer) -> bool:
    """Check whether a model name follows its layer's naming pattern.

    Sources are not named by convention, so they always match.
    """
    if layer == Layer.STAGING:
        match = _STAGING_RE.match(name)
        return bool(match) and match.group("entity").endswith("s")

    if layer == Layer.INTERMEDIATE:
        match = _INTERMEDIATE_RE.match(name)
        if not match:
            return False
        segments = match.group("body").split("_")
        # entity first, then a past-tense verb somewhere after it
        return len(segments) >= 2 and any(is_past_tense(s) for s in segments[1:])

    if layer == Layer.MART_FACT:
        return bool(_FACT_RE.match(name))

    if layer == Layer.MART_DIM:
        return bool(_DIM_RE.match(name))

    if layer == Layer.UTILITY:
        return _is_snake_case(name) and name.endswith("s")

    return True


def describe_name_pattern(layer: Layer) -> str:
    return LAYER_NAME_PATTERNS.get(layer, "any name")


def classify_layer(directory: Optional[str], name: str) -> Optional[Layer]:
    """Classify a model's layer from the directory it lives in.

    The innermost directory naming a layer wins. Returns None when no
    component names a layer. Models under ``marts/`` are dimensions when
    named ``dim_*`` and facts otherwise.

    Example:
        >>> classify_layer("models/marts/finance", "dim_customers")
        <Layer.MART_DIM: 'mart_dim'>
    """
    if not directory:
        return None

    parts = PurePosixPath(directory.replace("\\", "/")).parts
    for part in reversed(parts):
        key = part.lower()
        if key not in _DIRECTORY_LAYERS:
            continue
        layer = _DIRECTORY_LAYERS[key]
        if layer is not None:
            return layer
        return Layer.MART_DIM if name.startswith("dim_") else Layer.MART_FACT

    return None


def is_valid_boolean_name(name: str) -> bool:
    return any(
        name.startswith(prefix) and len(name) > len(prefix)
        for prefix in BOOLEAN_PREFIXES
    )


def is_valid_timestamp_name(name: str, utc: bool = True) -> bool:
    if utc:
        return bool(_UTC_TIMESTAMP_RE.match(name))
    return bool(_LOCAL_TIMESTAMP_RE.match(name))


def is_valid_date_name(name: str) -> bool:
    return bool(_DATE_RE.match(name))


def is_valid_key_name(name: str) -> bool:
    return bool(_KEY_RE.match(name))

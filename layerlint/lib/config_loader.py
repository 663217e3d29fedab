"""YAML definition loader.

Reads ``models:`` and ``sources:`` lists from schema files, in the shape dbt
projects already keep next to their SQL.

Example YAML (models/staging/cms_hcc/_cms_hcc__models.yml):
    version: 2

    sources:
      - name: cms_hcc_source
        database: raw
        schema: cms_hcc
        tables:
          - name: patient_risk_factors

    models:
      - name: stg_cms_hcc__patient_risk_factors
        config:
          materialized: view
        references: [cms_hcc_source.patient_risk_factors]
        primary_key: patient_id
        columns:
          - name: patient_id
            data_type: varchar
            tests: [unique, not_null]

Models without ``layer``, ``directory`` or ``path`` are placed in the
directory of the file that declares them, so the layer is classified from
where the schema file lives.

Usage:
    from layerlint.lib.config_loader import load_registry
    registry = load_registry(["./models"])
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

import yaml

from layerlint.lib.definitions import parse_model, parse_source
from layerlint.lib.descriptors import ModelDescriptor, SourceDescriptor
from layerlint.lib.errors import DefinitionFileError
from layerlint.lib.registry import ModelRegistry, build_registry

logger = logging.getLogger(__name__)

__all__ = [
    "DEFINITION_SUFFIXES",
    "discover_definition_files",
    "load_definitions",
    "load_registry",
    "read_definition_file",
]

DEFINITION_SUFFIXES = (".yml", ".yaml")

PathLike = Union[str, Path]


def discover_definition_files(paths: Iterable[PathLike]) -> List[Path]:
    """Expand files and directories into a sorted list of YAML files.

    Raises:
        DefinitionFileError: If a path does not exist
    """
    found: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise DefinitionFileError(
                f"Definition path not found: {path}",
                path=str(path),
            )
        if path.is_dir():
            found.extend(
                sorted(
                    p for p in path.rglob("*")
                    if p.is_file() and p.suffix.lower() in DEFINITION_SUFFIXES
                )
            )
        else:
            found.append(path)

    # Keep first occurrence when paths overlap
    return list(dict.fromkeys(found))


def read_definition_file(path: PathLike) -> Dict[str, Any]:
    """Parse one YAML file into its top-level mapping.

    Empty files return an empty dict.

    Raises:
        DefinitionFileError: If the file is unreadable, not valid YAML, or
            its ``models``/``sources`` entries are not lists
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DefinitionFileError(f"Invalid YAML syntax: {e}", path=str(path)) from e
    except UnicodeDecodeError as e:
        raise DefinitionFileError(f"Cannot decode definition file: {e}", path=str(path)) from e
    except OSError as e:
        raise DefinitionFileError(f"Cannot read definition file: {e}", path=str(path)) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise DefinitionFileError(
            "Definition file must contain a mapping at the top level",
            path=str(path),
        )

    for section in ("models", "sources"):
        value = content.get(section)
        if value is not None and not isinstance(value, list):
            raise DefinitionFileError(
                f"'{section}' must be a list",
                path=str(path),
            )
    return content


def load_definitions(
    paths: Iterable[PathLike],
) -> Tuple[List[ModelDescriptor], List[SourceDescriptor]]:
    """Load every model and source definition under the given paths.

    Returns:
        (models, sources) in file order, declaration order within a file

    Raises:
        DefinitionFileError: If a file cannot be read
        MalformedDescriptorError: If a definition is missing a name or layer
    """
    models: List[ModelDescriptor] = []
    sources: List[SourceDescriptor] = []

    for path in discover_definition_files(paths):
        content = read_definition_file(path)
        file_models = content.get("models") or []
        file_sources = content.get("sources") or []

        if not file_models and not file_sources:
            logger.debug("Skipping %s - no models or sources", path)
            continue

        origin = str(path)
        for i, entry in enumerate(file_sources):
            sources.append(parse_source(entry, index=i, origin=origin))

        for i, entry in enumerate(file_models):
            if isinstance(entry, dict) and not any(entry.get(k) for k in ("layer", "directory", "path")):
                entry = {**entry, "directory": path.parent.as_posix()}
            models.append(parse_model(entry, index=i, origin=origin))

        logger.debug(
            "Read %s: %d models, %d sources",
            path,
            len(file_models),
            len(file_sources),
        )

    return models, sources


def load_registry(paths: Iterable[PathLike]) -> ModelRegistry:
    """Load definitions from YAML files or directories into a registry."""
    models, sources = load_definitions(paths)
    return build_registry(models, sources)

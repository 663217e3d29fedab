"""layerlint library modules.

Descriptors, the registry loader, convention rules, the reference graph
checker and the report they produce.
"""

from layerlint.lib.config_loader import load_definitions, load_registry
from layerlint.lib.descriptors import (
    ColumnDescriptor,
    ColumnType,
    Layer,
    Materialization,
    ModelDescriptor,
    SourceDescriptor,
)
from layerlint.lib.errors import (
    DefinitionFileError,
    DuplicateNameError,
    LintError,
    MalformedDescriptorError,
    StructuralError,
)
from layerlint.lib.graph import DependencyGraph, UtilityPolicy, check_graph, find_cycles
from layerlint.lib.linter import lint_definitions, lint_paths, lint_registry
from layerlint.lib.registry import ModelRegistry, RegistryNode, build_registry
from layerlint.lib.report import LintReport, Severity, Violation, ViolationKind
from layerlint.lib.rules import ALLOWED_MATERIALIZATIONS, ALLOWED_REFERENCES, RULES, validate_model
from layerlint.lib.settings import LintSettings
from layerlint.lib.validate import validate_registry

__all__ = [
    "ALLOWED_MATERIALIZATIONS",
    "ALLOWED_REFERENCES",
    "ColumnDescriptor",
    "ColumnType",
    "DefinitionFileError",
    "DependencyGraph",
    "DuplicateNameError",
    "Layer",
    "LintError",
    "LintReport",
    "LintSettings",
    "MalformedDescriptorError",
    "Materialization",
    "ModelDescriptor",
    "ModelRegistry",
    "RULES",
    "RegistryNode",
    "Severity",
    "SourceDescriptor",
    "StructuralError",
    "UtilityPolicy",
    "Violation",
    "ViolationKind",
    "build_registry",
    "check_graph",
    "find_cycles",
    "lint_definitions",
    "lint_paths",
    "lint_registry",
    "load_definitions",
    "load_registry",
    "validate_model",
    "validate_registry",
]

"""Convention linter for layered warehouse models.

Checks that sources, staging, intermediate and mart models follow the
layering, naming and key-testing conventions, and that the reference graph
between them is acyclic and only takes allowed edges.

Usage:
    python -m layerlint models/
    python -m layerlint models/ --format json
"""

from layerlint.lib.descriptors import Layer, Materialization, ModelDescriptor, SourceDescriptor
from layerlint.lib.linter import lint_definitions, lint_paths, lint_registry
from layerlint.lib.report import LintReport, Severity, Violation

__version__ = "1.0.0"

__all__ = [
    "Layer",
    "LintReport",
    "Materialization",
    "ModelDescriptor",
    "Severity",
    "SourceDescriptor",
    "Violation",
    "lint_definitions",
    "lint_paths",
    "lint_registry",
]

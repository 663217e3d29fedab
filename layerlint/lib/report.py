"""Violation records and the lint report.

A report is an ordered, immutable sequence of violations. It passes when no
violation has error severity; warnings are informational only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

__all__ = [
    "LintReport",
    "Severity",
    "Violation",
    "ViolationKind",
]


class Severity(Enum):
    """Severity of a violation."""

    ERROR = "error"  # Fails the run
    WARNING = "warning"  # Reported, never fails the run


class ViolationKind(Enum):
    """What kind of convention a violation breaks."""

    NAMING = "naming"
    MATERIALIZATION = "materialization"
    PRIMARY_KEY = "primary_key"
    COLUMN_NAMING = "column_naming"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    LAYER = "layer"
    CYCLE = "cycle"
    ORPHAN = "orphan"


@dataclass(frozen=True)
class Violation:
    """A single finding against one model."""

    kind: ViolationKind
    rule: str
    model: str
    message: str
    severity: Severity = Severity.ERROR
    reference: Optional[str] = None
    path: Tuple[str, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "kind": self.kind.value,
            "rule": self.rule,
            "severity": self.severity.value,
            "model": self.model,
            "message": self.message,
        }
        if self.reference is not None:
            result["reference"] = self.reference
        if self.path:
            result["path"] = list(self.path)
        return result

    def __str__(self) -> str:
        prefix = "ERROR" if self.is_error else "WARNING"
        return f"[{prefix}] {self.model}: {self.message} ({self.rule})"


class LintReport:
    """Ordered result of one lint run."""

    def __init__(self, violations: Iterable[Violation] = ()) -> None:
        self._violations: Tuple[Violation, ...] = tuple(violations)

    @property
    def violations(self) -> Tuple[Violation, ...]:
        return self._violations

    @property
    def errors(self) -> Tuple[Violation, ...]:
        return tuple(v for v in self._violations if v.severity == Severity.ERROR)

    @property
    def warnings(self) -> Tuple[Violation, ...]:
        return tuple(v for v in self._violations if v.severity == Severity.WARNING)

    @property
    def passed(self) -> bool:
        """True when there are no error-severity violations."""
        return not self.errors

    def for_model(self, name: str) -> Tuple[Violation, ...]:
        return tuple(v for v in self._violations if v.model == name)

    def of_kind(self, kind: ViolationKind) -> Tuple[Violation, ...]:
        return tuple(v for v in self._violations if v.kind == kind)

    def __len__(self) -> int:
        return len(self._violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self._violations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "violations": [v.to_dict() for v in self._violations],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def format_text(self) -> str:
        """Format the report as a readable, itemized listing."""
        if not self._violations:
            return "All models follow the conventions."

        errors = self.errors
        warnings = self.warnings
        lines: List[str] = []

        if errors:
            lines.append(f"Found {len(errors)} error(s):")
            lines.append("-" * 40)
            for error in errors:
                lines.append(str(error))
            lines.append("")

        if warnings:
            lines.append(f"Found {len(warnings)} warning(s):")
            lines.append("-" * 40)
            for warning in warnings:
                lines.append(str(warning))
            lines.append("")

        lines.append("RESULT: PASSED" if self.passed else "RESULT: FAILED")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LintReport(passed={self.passed}, errors={len(self.errors)}, "
            f"warnings={len(self.warnings)})"
        )

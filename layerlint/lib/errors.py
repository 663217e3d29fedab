"""Structured exception hierarchy for layerlint.

Only structural problems are raised. Convention and graph findings are
collected into a report instead (see ``layerlint.lib.report``).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "LintError",
    "StructuralError",
    "DuplicateNameError",
    "MalformedDescriptorError",
    "DefinitionFileError",
]


def _merge_details(details: Optional[Dict[str, Any]], **context: Any) -> Dict[str, Any]:
    """Add the non-empty context values to a details dict."""
    merged = dict(details or {})
    merged.update((key, value) for key, value in context.items() if value)
    return merged


class LintError(Exception):
    """Base exception for all layerlint errors.

    Carries a one-line ``message`` plus optional ``details`` and a
    ``suggestion``; ``str()`` renders all three.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = dict(details or {})
        self.suggestion = suggestion
        super().__init__(self._render())

    def _render(self) -> str:
        lines = [self.message]
        if self.details:
            lines.append("Details:")
            lines.extend(f"  {key}: {value}" for key, value in self.details.items())
        if self.suggestion:
            lines.append(f"Suggestion: {self.suggestion}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class StructuralError(LintError):
    """Input that cannot be turned into a registry.

    Aborts the run before validation begins.
    """


class DuplicateNameError(StructuralError):
    """Two descriptors share a name."""

    def __init__(
        self,
        name: str,
        *,
        first_origin: Optional[str] = None,
        second_origin: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.name = name
        self.first_origin = first_origin
        self.second_origin = second_origin

        kwargs.setdefault(
            "suggestion",
            "Model and source table names must be unique across the project. "
            "Rename or remove one of the definitions.",
        )
        details = _merge_details(
            kwargs.pop("details", None),
            name=name,
            first_defined_in=first_origin,
            redefined_in=second_origin,
        )
        super().__init__(f"Duplicate name '{name}'", details=details, **kwargs)


class MalformedDescriptorError(StructuralError):
    """A definition is missing a required field or has an invalid value."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        descriptor: Optional[str] = None,
        origin: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.descriptor = descriptor
        self.origin = origin

        details = _merge_details(
            kwargs.pop("details", None),
            descriptor=descriptor,
            field=field,
            origin=origin,
        )
        super().__init__(message, details=details, **kwargs)


class DefinitionFileError(StructuralError):
    """A definition file is missing, unreadable or not valid YAML."""

    def __init__(self, message: str, *, path: Optional[str] = None, **kwargs: Any) -> None:
        self.path = path
        details = _merge_details(kwargs.pop("details", None), path=path)
        super().__init__(message, details=details, **kwargs)

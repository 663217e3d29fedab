"""Tests for layerlint/lib/errors.py - structured exception hierarchy."""

from layerlint.lib.errors import (
    DefinitionFileError,
    DuplicateNameError,
    LintError,
    MalformedDescriptorError,
    StructuralError,
)


class TestLintError:
    """Tests for base LintError class."""

    def test_basic_message(self):
        error = LintError("Something went wrong")
        assert str(error) == "Something went wrong"

    def test_with_details_and_suggestion(self):
        error = LintError(
            "Bad definition",
            details={"field": "layer"},
            suggestion="Add a layer",
        )
        assert "field: layer" in str(error)
        assert "Suggestion: Add a layer" in str(error)

    def test_to_dict(self):
        error = LintError("Test error", details={"key": "value"}, suggestion="Fix it")
        assert error.to_dict() == {
            "error_type": "LintError",
            "message": "Test error",
            "details": {"key": "value"},
            "suggestion": "Fix it",
        }


class TestStructuralErrors:
    """Tests for the errors that abort a run."""

    def test_hierarchy(self):
        assert issubclass(DuplicateNameError, StructuralError)
        assert issubclass(MalformedDescriptorError, StructuralError)
        assert issubclass(DefinitionFileError, StructuralError)
        assert issubclass(StructuralError, LintError)

    def test_duplicate_name(self):
        error = DuplicateNameError("dim_patients", first_origin="a.yml", second_origin="b.yml")
        assert error.message == "Duplicate name 'dim_patients'"
        assert error.details == {
            "name": "dim_patients",
            "first_defined_in": "a.yml",
            "redefined_in": "b.yml",
        }
        assert error.suggestion is not None

    def test_malformed_descriptor(self):
        error = MalformedDescriptorError(
            "Model 'orders' has no layer",
            field="layer",
            descriptor="orders",
            origin="models/_models.yml",
        )
        result = error.to_dict()
        assert result["error_type"] == "MalformedDescriptorError"
        assert result["details"] == {
            "descriptor": "orders",
            "field": "layer",
            "origin": "models/_models.yml",
        }

    def test_definition_file(self):
        error = DefinitionFileError("Invalid YAML syntax", path="models/x.yml")
        assert error.path == "models/x.yml"
        assert "path: models/x.yml" in str(error)

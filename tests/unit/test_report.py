"""Tests for layerlint/lib/report.py - violations and report rendering."""

import json

from layerlint.lib.report import LintReport, Severity, Violation, ViolationKind


def _error(model="dim_patients", rule="materialization.mart_dim"):
    return Violation(
        kind=ViolationKind.MATERIALIZATION,
        rule=rule,
        model=model,
        message="Materialized as view; mart_dim models must be table",
    )


def _warning(model="all_dates"):
    return Violation(
        kind=ViolationKind.ORPHAN,
        rule="graph.orphan",
        model=model,
        message="Model neither references nor is referenced by anything",
        severity=Severity.WARNING,
    )


class TestViolation:
    """Tests for Violation."""

    def test_str(self):
        assert str(_error()) == (
            "[ERROR] dim_patients: Materialized as view; mart_dim models must be table "
            "(materialization.mart_dim)"
        )
        assert str(_warning()).startswith("[WARNING] all_dates: ")

    def test_to_dict_omits_empty_fields(self):
        result = _error().to_dict()
        assert result == {
            "kind": "materialization",
            "rule": "materialization.mart_dim",
            "severity": "error",
            "model": "dim_patients",
            "message": "Materialized as view; mart_dim models must be table",
        }

    def test_to_dict_with_path(self):
        violation = Violation(
            kind=ViolationKind.CYCLE,
            rule="graph.cycle",
            model="a",
            message="Reference cycle: a -> b -> a",
            path=("a", "b"),
        )
        assert violation.to_dict()["path"] == ["a", "b"]


class TestLintReport:
    """Tests for LintReport."""

    def test_empty_report_passes(self):
        report = LintReport()
        assert report.passed
        assert len(report) == 0
        assert report.format_text() == "All models follow the conventions."

    def test_warnings_do_not_fail(self):
        report = LintReport([_warning()])
        assert report.passed
        assert report.warnings == (_warning(),)
        assert report.errors == ()

    def test_errors_fail(self):
        report = LintReport([_error(), _warning()])
        assert not report.passed
        assert len(report.errors) == 1
        assert report.for_model("dim_patients") == (_error(),)
        assert report.of_kind(ViolationKind.ORPHAN) == (_warning(),)

    def test_order_preserved(self):
        violations = [_error("b"), _error("a"), _error("c")]
        assert [v.model for v in LintReport(violations)] == ["b", "a", "c"]

    def test_to_dict(self):
        result = LintReport([_error(), _warning()]).to_dict()
        assert result["passed"] is False
        assert result["error_count"] == 1
        assert result["warning_count"] == 1
        assert [v["model"] for v in result["violations"]] == ["dim_patients", "all_dates"]

    def test_to_json_is_deterministic(self):
        first = LintReport([_error(), _warning()]).to_json()
        second = LintReport([_error(), _warning()]).to_json()
        assert first == second
        assert json.loads(first)["error_count"] == 1

    def test_format_text(self):
        text = LintReport([_error(), _warning()]).format_text()
        assert "Found 1 error(s):" in text
        assert "Found 1 warning(s):" in text
        assert text.index("[ERROR]") < text.index("[WARNING]")
        assert text.endswith("RESULT: FAILED")

    def test_format_text_warnings_only(self):
        text = LintReport([_warning()]).format_text()
        assert "error(s)" not in text
        assert text.endswith("RESULT: PASSED")

    def test_repr(self):
        assert repr(LintReport([_error()])) == "LintReport(passed=False, errors=1, warnings=0)"

"""End-to-end tests for layerlint/lib/linter.py.

Covers the lint pipeline on in-memory definitions and on the example
project: load -> validate -> graph check -> report.
"""

import logging

import pytest

from layerlint.lib.errors import DuplicateNameError, MalformedDescriptorError
from layerlint.lib.graph import UtilityPolicy
from layerlint.lib.linter import lint_definitions, lint_paths, lint_registry
from layerlint.lib.registry import build_registry
from layerlint.lib.report import ViolationKind
from layerlint.lib.settings import LintSettings


def _replace(models, target, **changes):
    return [{**m, **changes} if m["name"] == target else m for m in models]


class TestLintDefinitions:
    """Tests for linting in-memory definitions."""

    def test_empty_registry_passes(self):
        report = lint_definitions([], workers=1)
        assert report.passed
        assert len(report) == 0

    def test_clean_project(self, cms_hcc_models, cms_hcc_sources):
        report = lint_definitions(cms_hcc_models, cms_hcc_sources, workers=1)
        assert report.violations == ()

    def test_staging_model_alone_is_clean(self, cms_hcc_models, cms_hcc_sources):
        report = lint_definitions(cms_hcc_models, cms_hcc_sources, workers=1)
        assert report.for_model("stg_cms_hcc__patient_risk_factors") == ()

    def test_dimension_as_view(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(cms_hcc_models, "dim_patients", materialization="view")
        report = lint_definitions(models, cms_hcc_sources, workers=1)

        assert len(report) == 1
        violation = report.violations[0]
        assert violation.model == "dim_patients"
        assert violation.kind == ViolationKind.MATERIALIZATION
        assert "table" in violation.message

    def test_one_naming_violation_per_model(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(cms_hcc_models, "fct_risk_scores", name="risk_scores")
        report = lint_definitions(models, cms_hcc_sources, workers=1)

        naming = report.of_kind(ViolationKind.NAMING)
        assert [v.model for v in naming] == ["risk_scores"]
        assert naming[0].rule == "naming.mart_fact"

    def test_intermediate_over_staging(self, cms_hcc_models, cms_hcc_sources):
        report = lint_definitions(cms_hcc_models, cms_hcc_sources, workers=1)
        assert report.of_kind(ViolationKind.LAYER) == ()

    def test_intermediate_over_raw_source(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(
            cms_hcc_models,
            "int_patient_risk_joined",
            references=["cms_hcc_source.patients"],
        )
        report = lint_definitions(models, cms_hcc_sources, workers=1)

        layer = report.of_kind(ViolationKind.LAYER)
        assert len(layer) == 1
        assert layer[0].model == "int_patient_risk_joined"
        assert layer[0].reference == "cms_hcc_source.patients"

    def test_mart_over_sources(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(
            cms_hcc_models,
            "fct_risk_scores",
            references=["cms_hcc_source.patients", "cms_hcc_source.patient_risk_factors"],
        )
        report = lint_definitions(models, cms_hcc_sources, workers=1)
        assert len(report.of_kind(ViolationKind.LAYER)) == 2

    def test_cycle(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(
            cms_hcc_models,
            "int_patient_risk_joined",
            references=["stg_cms_hcc__patients", "dim_patients"],
        )
        report = lint_definitions(models, cms_hcc_sources, workers=1)

        cycles = report.of_kind(ViolationKind.CYCLE)
        assert len(cycles) == 1
        assert cycles[0].path == ("int_patient_risk_joined", "dim_patients")
        assert not report.passed

    def test_validation_findings_come_first(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(
            cms_hcc_models,
            "dim_patients",
            materialization="view",
            references=["stg_cms_hcc__patients"],
        )
        report = lint_definitions(models, cms_hcc_sources, workers=1)
        assert [v.kind for v in report] == [ViolationKind.MATERIALIZATION, ViolationKind.LAYER]

    def test_repeat_runs_are_identical(self, cms_hcc_models, cms_hcc_sources):
        models = _replace(cms_hcc_models, "dim_patients", materialization="view", name="patients")
        first = lint_definitions(models, cms_hcc_sources, workers=4).to_json()
        second = lint_definitions(models, cms_hcc_sources, workers=4).to_json()
        assert first == second

    @pytest.mark.parametrize("workers", [2, 8])
    def test_worker_count_does_not_change_report(self, cms_hcc_models, cms_hcc_sources, workers):
        models = _replace(cms_hcc_models, "stg_cms_hcc__patients", materialization="table", tests=[])
        serial = lint_definitions(models, cms_hcc_sources, workers=1)
        parallel = lint_definitions(models, cms_hcc_sources, workers=workers)
        assert parallel.violations == serial.violations

    def test_duplicate_name_aborts(self, cms_hcc_models, cms_hcc_sources):
        with pytest.raises(DuplicateNameError):
            lint_definitions(cms_hcc_models + cms_hcc_models[:1], cms_hcc_sources, workers=1)

    def test_malformed_definition_aborts(self, cms_hcc_sources):
        with pytest.raises(MalformedDescriptorError):
            lint_definitions([{"name": "orders"}], cms_hcc_sources, workers=1)


class TestUtilityPolicy:
    """Tests for utility models under each policy."""

    MODELS = [
        {
            "name": "all_dates",
            "layer": "utility",
            "materialization": "table",
            "primary_key": "date_id",
            "tests": ["unique", "not_null"],
            "references": ["cms_hcc_source.patients"],
        },
    ]

    def test_exempt_by_default(self, cms_hcc_sources):
        report = lint_definitions(self.MODELS, cms_hcc_sources, workers=1)
        assert report.passed

    def test_enforced(self, cms_hcc_sources):
        models = self.MODELS + [
            {
                "name": "stg_cms_hcc__dates",
                "layer": "staging",
                "primary_key": "date_id",
                "tests": ["unique", "not_null"],
                "references": ["all_dates"],
            }
        ]
        default = lint_definitions(models, cms_hcc_sources, workers=1)
        enforced = lint_definitions(
            models,
            cms_hcc_sources,
            workers=1,
            policy=UtilityPolicy(layer_checks=True),
        )
        assert default.passed
        assert [v.reference for v in enforced.of_kind(ViolationKind.LAYER)] == ["all_dates"]

    def test_policy_from_settings(self, cms_hcc_sources, monkeypatch):
        monkeypatch.setenv("LAYERLINT_UTILITY_LAYER_CHECKS", "true")
        models = self.MODELS + [
            {
                "name": "stg_cms_hcc__dates",
                "layer": "staging",
                "primary_key": "date_id",
                "tests": ["unique", "not_null"],
                "references": ["all_dates"],
            }
        ]
        report = lint_definitions(models, cms_hcc_sources, LintSettings(), workers=1)
        assert not report.passed


class TestLintRegistry:
    """Tests for lint_registry logging and timings."""

    def test_stage_timings(self, cms_hcc_models, cms_hcc_sources):
        timings = {}
        registry = build_registry(cms_hcc_models, cms_hcc_sources)
        lint_registry(registry, workers=1, policy=UtilityPolicy(), timings=timings)
        assert set(timings) == {"validate", "graph"}
        assert all(secs >= 0 for secs in timings.values())

    def test_logs_run_events(self, cms_hcc_models, cms_hcc_sources, caplog):
        registry = build_registry(cms_hcc_models, cms_hcc_sources)
        with caplog.at_level(logging.INFO):
            lint_registry(registry, workers=1, policy=UtilityPolicy())
        assert "lint_started" in caplog.text
        assert "lint_completed" in caplog.text

    def test_logs_aborted_run(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(DuplicateNameError):
                lint_definitions(
                    [{"name": "all_dates", "layer": "utility"}] * 2,
                    workers=1,
                )
        assert "lint_aborted" in caplog.text


class TestLintPaths:
    """Tests for linting YAML files on disk."""

    def test_example_project_is_clean(self, example_project):
        report = lint_paths([example_project], workers=2)
        assert report.passed
        assert report.violations == ()

    def test_example_staging_directory(self, example_project):
        # Staging alone resolves: it only selects from sources in the same folder
        report = lint_paths([example_project / "staging"], workers=1)
        assert report.violations == ()

    def test_intermediate_without_staging(self, example_project):
        report = lint_paths([example_project / "intermediate"], workers=1)
        unresolved = report.of_kind(ViolationKind.UNRESOLVED_REFERENCE)
        assert [v.reference for v in unresolved] == [
            "stg_cms_hcc__patients",
            "stg_cms_hcc__patient_risk_factors",
        ]

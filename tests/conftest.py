"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

EXAMPLE_PROJECT = project_root / "docs" / "examples" / "project" / "models"


@pytest.fixture
def example_project() -> Path:
    """Path to the example models directory that lints clean."""
    return EXAMPLE_PROJECT


@pytest.fixture(autouse=True)
def clean_layerlint_env(monkeypatch):
    """Keep LAYERLINT_* variables from the outer shell out of tests."""
    for key in list(os.environ):
        if key.startswith("LAYERLINT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cms_hcc_sources():
    """Source definition for the CMS-HCC raw tables."""
    return [
        {
            "name": "cms_hcc_source",
            "database": "raw",
            "schema": "cms_hcc",
            "tables": ["patient_risk_factors", "patients"],
        }
    ]


@pytest.fixture
def cms_hcc_models():
    """A small staging -> intermediate -> marts project with no violations."""
    return [
        {
            "name": "stg_cms_hcc__patient_risk_factors",
            "layer": "staging",
            "materialization": "view",
            "references": ["cms_hcc_source.patient_risk_factors"],
            "primary_key": "patient_id",
            "columns": [
                {"name": "patient_id", "data_type": "varchar", "tests": ["unique", "not_null"]},
                {"name": "is_chronic", "data_type": "boolean"},
                {"name": "loaded_at", "data_type": "timestamp"},
            ],
        },
        {
            "name": "stg_cms_hcc__patients",
            "layer": "staging",
            "materialization": "view",
            "references": ["cms_hcc_source.patients"],
            "primary_key": "patient_id",
            "tests": ["unique", "not_null"],
        },
        {
            "name": "int_patient_risk_joined",
            "layer": "intermediate",
            "materialization": "view",
            "references": ["stg_cms_hcc__patient_risk_factors", "stg_cms_hcc__patients"],
            "primary_key": "patient_id",
            "tests": ["unique", "not_null"],
        },
        {
            "name": "dim_patients",
            "layer": "mart_dim",
            "materialization": "table",
            "references": ["int_patient_risk_joined"],
            "primary_key": "patient_id",
            "tests": ["unique", "not_null"],
        },
        {
            "name": "fct_risk_scores",
            "layer": "mart_fact",
            "materialization": "table",
            "references": ["int_patient_risk_joined", "dim_patients"],
            "primary_key": "risk_score_id",
            "tests": ["unique", "not_null"],
            "columns": [
                {"name": "risk_score_id", "data_type": "string"},
                {"name": "scored_date", "data_type": "date"},
            ],
        },
    ]

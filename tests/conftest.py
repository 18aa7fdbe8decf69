"""Pytest configuration and shared fixtures."""

import copy

import pytest

from analysis_recovery.config import Settings
from analysis_recovery.pipeline.recovery import RecoveryPipeline
from analysis_recovery.services.normalization.shape_normalizer import ShapeNormalizer
from analysis_recovery.services.validation.schema_validator import SchemaValidator


CANONICAL_ANALYSIS = {
    "tables": [
        {
            "name": "Users",
            "columns": [
                {"name": "Id", "type": "int", "pk": True, "nullable": False},
                {"name": "Email", "type": "nvarchar(255)", "nullable": False},
            ],
        },
        {
            "name": "Orders",
            "columns": [
                {"name": "Id", "type": "int", "pk": True, "nullable": False},
                {
                    "name": "UserId",
                    "type": "int",
                    "fk": {"table": "Users", "column": "Id"},
                    "nullable": False,
                },
                {"name": "Note", "type": "text", "nullable": True},
            ],
        },
    ],
    "erd_mermaid": "erDiagram\n  Users ||--o{ Orders : places",
    "crud_matrix": [
        {"process": "Checkout", "table": "Orders", "ops": ["C", "R"]},
        {"process": "Checkout", "table": "Users", "ops": ["R"]},
    ],
    "processes": [
        {"name": "Checkout", "description": "Places an order", "children": ["ValidateCart"]},
        {"name": "ValidateCart"},
    ],
    "doc_links": [
        {"doc": "spec.docx", "snippet": "Orders belong to users", "related": "Orders"},
    ],
}


@pytest.fixture
def canonical_analysis() -> dict:
    """A fully canonical analysis record as plain JSON data.

    Returns:
        dict: Fresh deep copy, safe to mutate
    """
    return copy.deepcopy(CANONICAL_ANALYSIS)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for a non-production environment."""
    return Settings(environment="test", log_level="DEBUG")


@pytest.fixture
def normalizer() -> ShapeNormalizer:
    return ShapeNormalizer()


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


@pytest.fixture
def pipeline(test_settings) -> RecoveryPipeline:
    """Recovery pipeline with default stages and test settings."""
    return RecoveryPipeline(settings=test_settings)

"""Unit tests for SchemaValidator and the defect report."""

import pytest
from pydantic import ValidationError

from analysis_recovery.schemas.analysis import AnalysisResult
from analysis_recovery.services.validation.schema_validator import (
    ROOT_PATH,
    describe_json_type,
    format_path,
)


class TestSchemaValidator:
    """Validation of normalized values."""

    def test_canonical_record_accepted(self, validator, canonical_analysis):
        report = validator.validate(canonical_analysis)

        assert report.is_valid
        assert report.record.to_dict() == canonical_analysis

    def test_empty_object_gets_defaults(self, validator):
        report = validator.validate({})

        assert report.is_valid
        assert report.record.to_dict() == {
            "tables": [],
            "erd_mermaid": "",
            "crud_matrix": [],
            "processes": [],
            "doc_links": [],
        }

    def test_tables_not_a_list(self, validator):
        report = validator.validate({"tables": "not-a-list"})

        assert not report.is_valid
        assert report.record is None
        defect = report.defects[0]
        assert defect.path == "tables"
        assert defect.expected == "array"
        assert defect.actual == "string"

    def test_invalid_op_reported_with_index(self, validator):
        report = validator.validate(
            {"crud_matrix": [{"process": "P", "table": "T", "ops": ["C", "X"]}]}
        )

        assert [d.path for d in report.defects] == ["crud_matrix.0.ops.1"]
        assert report.defects[0].expected.startswith("one of")

    def test_missing_required_name(self, validator):
        report = validator.validate({"tables": [{"columns": []}]})

        defect = report.defects[0]
        assert defect.path == "tables.0.name"
        assert defect.expected == "present"
        assert defect.actual == "missing"

    def test_non_string_table_name_rejected(self, validator):
        report = validator.validate({"tables": [{"name": 7, "columns": []}]})

        assert report.defects[0].path == "tables.0.name"
        assert report.defects[0].actual == "number"

    def test_string_boolean_not_coerced(self, validator):
        report = validator.validate(
            {"tables": [{"name": "T", "columns": [{"name": "Id", "pk": "true"}]}]}
        )

        assert report.defects[0].path == "tables.0.columns.0.pk"
        assert report.defects[0].expected == "boolean"

    def test_doc_link_requires_all_fields(self, validator):
        report = validator.validate({"doc_links": [{"doc": "a.md"}]})

        paths = sorted(d.path for d in report.defects)
        assert paths == ["doc_links.0.related", "doc_links.0.snippet"]

    def test_root_must_be_object(self, validator):
        report = validator.validate([{"tables": []}])

        assert report.defects[0].path == ROOT_PATH
        assert report.defects[0].actual == "array"

    def test_unknown_keys_ignored(self, validator):
        report = validator.validate({"tables": [], "confidence": 0.9})

        assert report.is_valid
        assert "confidence" not in report.record.to_dict()


class TestAnalysisResultModel:
    """Canonical record model behaviour."""

    def test_record_is_frozen(self, canonical_analysis):
        record = AnalysisResult.model_validate(canonical_analysis)

        with pytest.raises(ValidationError):
            record.erd_mermaid = "changed"

    def test_collections_are_tuples(self, canonical_analysis):
        record = AnalysisResult.model_validate(canonical_analysis)

        assert isinstance(record.tables, tuple)
        assert isinstance(record.tables[0].columns, tuple)

    def test_nullable_defaults_true(self):
        record = AnalysisResult.model_validate(
            {"tables": [{"name": "T", "columns": [{"name": "Id"}]}]}
        )

        assert record.tables[0].columns[0].nullable is True


class TestDefectHelpers:
    """Path and type description helpers."""

    @pytest.mark.parametrize("value, expected", [
        (None, "null"),
        (True, "boolean"),
        (3, "number"),
        (2.5, "number"),
        ("x", "string"),
        ([], "array"),
        ({}, "object"),
    ])
    def test_describe_json_type(self, value, expected):
        assert describe_json_type(value) == expected

    def test_format_path(self):
        assert format_path(("tables", 0, "columns", 2, "name")) == "tables.0.columns.2.name"
        assert format_path(()) == ROOT_PATH

"""Unit tests for HTTP response mapping."""

import json

import pytest
from pydantic import ValidationError

from analysis_recovery.core.exceptions import PayloadTooLargeError
from analysis_recovery.pipeline.recovery import (
    Recovered,
    SchemaMismatch,
    UnrecoverableSyntax,
    recover,
)
from analysis_recovery.schemas.analysis import AnalysisResult
from analysis_recovery.schemas.payload import AnalyzePayload
from analysis_recovery.services.validation.schema_validator import Defect
from analysis_recovery.utils.responses import outcome_to_response, payload_error_response


def _body(response) -> dict:
    return json.loads(response.body)


class TestOutcomeToResponse:
    """Pipeline outcome mapping."""

    def test_recovered_returns_record(self, canonical_analysis):
        record = AnalysisResult.model_validate(canonical_analysis)

        response = outcome_to_response(Recovered(value=record))

        assert response.status_code == 200
        assert _body(response) == canonical_analysis

    def test_unrecoverable_syntax_is_bad_upstream(self):
        response = outcome_to_response(UnrecoverableSyntax())

        assert response.status_code == 502
        assert _body(response)["error"] == "BAD_UPSTREAM"

    def test_schema_mismatch_carries_defects_and_hint(self):
        outcome = SchemaMismatch(defects=[
            Defect(path="tables", expected="array", actual="string", message="Input should be a valid tuple"),
        ])

        response = outcome_to_response(outcome)
        body = _body(response)

        assert response.status_code == 422
        assert body["error"] == "BAD_JSON"
        assert body["defects"][0]["path"] == "tables"
        assert body["detail"]["field_errors"] == {"tables": ["Input should be a valid tuple"]}
        assert "hint" in body

    def test_lone_surrogate_escaped_in_body(self):
        outcome = recover('{"erd_mermaid": "\\ud800"}')

        response = outcome_to_response(outcome)

        assert response.status_code == 200
        assert b"\\ud800" in response.body
        assert _body(response)["erd_mermaid"] == "\ud800"

    def test_unknown_outcome_rejected(self):
        with pytest.raises(TypeError):
            outcome_to_response(object())


class TestPayloadErrorResponse:
    """Request-side error mapping."""

    def test_too_large(self):
        response = payload_error_response(PayloadTooLargeError(size=10, limit=5))

        assert response.status_code == 413
        assert _body(response)["error"] == "FILE_TOO_LARGE"
        assert _body(response)["limit"] == 5

    def test_invalid_payload(self):
        with pytest.raises(ValidationError) as exc_info:
            AnalyzePayload.model_validate({"files": [{"name": "a.py", "type": "py", "content": ""}]})

        response = payload_error_response(exc_info.value)

        assert response.status_code == 400
        assert _body(response)["error"] == "BAD_REQUEST"
        assert _body(response)["detail"][0]["loc"] == ["files", 0, "type"]

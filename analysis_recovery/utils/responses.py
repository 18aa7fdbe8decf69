"""HTTP response mapping for pipeline outcomes and payload errors."""

import json
from typing import Any, Dict

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from analysis_recovery.core.exceptions import PayloadTooLargeError
from analysis_recovery.pipeline.recovery import (
    PipelineOutcome,
    Recovered,
    SchemaMismatch,
    UnrecoverableSyntax,
)

SCHEMA_MISMATCH_HINT = (
    "The AI output did not match the expected schema. "
    "Ensure JSON output is requested and the prompt keys match."
)


class AsciiJSONResponse(JSONResponse):
    """JSON response with non-ASCII characters escaped.

    Model output may carry lone surrogates (``"\\ud800"`` is valid JSON text),
    which cannot be encoded as UTF-8; escaping keeps them intact on the wire.
    """

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=True,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def create_error_body(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    body.update(extra)
    return body


def outcome_to_response(outcome: PipelineOutcome) -> JSONResponse:
    """Map a pipeline outcome to the response the analyze endpoint returns.

    - ``Recovered`` -> 200 with the canonical record
    - ``UnrecoverableSyntax`` -> 502 ``BAD_UPSTREAM``
    - ``SchemaMismatch`` -> 422 ``BAD_JSON`` with the defect report and a hint
    """
    if isinstance(outcome, Recovered):
        return AsciiJSONResponse(status_code=status.HTTP_200_OK, content=outcome.value.to_dict())

    if isinstance(outcome, UnrecoverableSyntax):
        return AsciiJSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=create_error_body("BAD_UPSTREAM", outcome.reason),
        )

    if isinstance(outcome, SchemaMismatch):
        return AsciiJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=create_error_body(
                "BAD_JSON",
                "LLM output did not match the analysis schema",
                detail=outcome.flatten(),
                defects=[defect.to_dict() for defect in outcome.defects],
                hint=SCHEMA_MISMATCH_HINT,
            ),
        )

    raise TypeError(f"Unknown pipeline outcome: {type(outcome).__name__}")


def payload_error_response(exc: Exception) -> JSONResponse:
    """Map a request-side failure to a 400 or 413 response."""
    if isinstance(exc, PayloadTooLargeError):
        return AsciiJSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content=create_error_body("FILE_TOO_LARGE", str(exc), limit=exc.limit),
        )

    if isinstance(exc, ValidationError):
        return AsciiJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=create_error_body(
                "BAD_REQUEST",
                "Invalid analyze payload",
                detail=exc.errors(include_url=False, include_context=False, include_input=False),
            ),
        )

    raise TypeError(f"Unsupported payload error: {type(exc).__name__}")

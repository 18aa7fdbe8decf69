"""Recovery pipeline: raw LLM text in, classified outcome out.

Stages run strictly in order, each consuming the previous stage's output:

    extract_json_slice -> parse_llm_json -> ShapeNormalizer -> SchemaValidator

No stage is retried and no state is kept between calls, so one
``RecoveryPipeline`` can be shared by concurrent callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from analysis_recovery.config import Settings, settings as default_settings
from analysis_recovery.core.exceptions import NonJsonError
from analysis_recovery.schemas.analysis import AnalysisResult, TOP_LEVEL_KEYS
from analysis_recovery.services.normalization.shape_normalizer import ShapeNormalizer
from analysis_recovery.services.validation.schema_validator import (
    ROOT_PATH,
    Defect,
    SchemaValidator,
)
from analysis_recovery.utils.json_parser import extract_json_slice, parse_llm_json
from analysis_recovery.utils.logging import get_logger, preview

LOGGER = get_logger(__name__)


class OutcomeKind(Enum):
    RECOVERED = "recovered"
    UNRECOVERABLE_SYNTAX = "unrecoverable_syntax"
    SCHEMA_MISMATCH = "schema_mismatch"


@dataclass(frozen=True)
class Recovered:
    """The text yielded a valid canonical record."""
    value: AnalysisResult
    kind: OutcomeKind = field(default=OutcomeKind.RECOVERED, init=False)


@dataclass(frozen=True)
class UnrecoverableSyntax:
    """The text could not be parsed as JSON, even after repair."""
    reason: str = "LLM returned non-JSON (and repair failed)"
    kind: OutcomeKind = field(default=OutcomeKind.UNRECOVERABLE_SYNTAX, init=False)


@dataclass(frozen=True)
class SchemaMismatch:
    """The text parsed but did not fit the canonical schema after normalization."""
    defects: List[Defect]
    kind: OutcomeKind = field(default=OutcomeKind.SCHEMA_MISMATCH, init=False)

    def flatten(self) -> Dict[str, Any]:
        """Group defect messages by top-level field.

        Returns:
            dict: ``{"form_errors": [...], "field_errors": {key: [...]}}``
        """
        form_errors: List[str] = []
        field_errors: Dict[str, List[str]] = {}
        for defect in self.defects:
            if defect.path == ROOT_PATH:
                form_errors.append(defect.message)
                continue
            top_level = defect.path.split(".", 1)[0]
            field_errors.setdefault(top_level, []).append(defect.message)
        return {"form_errors": form_errors, "field_errors": field_errors}


PipelineOutcome = Union[Recovered, UnrecoverableSyntax, SchemaMismatch]


class RecoveryPipeline:
    """Sequences extraction, repair parsing, normalization and validation."""

    def __init__(
        self,
        normalizer: Optional[ShapeNormalizer] = None,
        validator: Optional[SchemaValidator] = None,
        settings: Optional[Settings] = None,
    ):
        self.normalizer = normalizer or ShapeNormalizer()
        self.validator = validator or SchemaValidator()
        self.settings = settings or default_settings

    def recover(self, raw_text: str) -> PipelineOutcome:
        """Turn raw model output into a classified outcome.

        Args:
            raw_text: Text returned by the upstream model

        Returns:
            PipelineOutcome: ``Recovered``, ``UnrecoverableSyntax`` or ``SchemaMismatch``
        """
        if not self.settings.is_production:
            LOGGER.debug(f"[recover raw] {preview(raw_text, self.settings.raw_preview_chars)}")

        candidate = extract_json_slice(raw_text)

        try:
            data = parse_llm_json(candidate)
        except NonJsonError as e:
            LOGGER.warning(f"Unrecoverable upstream output ({e.code}): {e}")
            return UnrecoverableSyntax(reason=str(e))

        if isinstance(data, dict):
            omitted = [key for key in TOP_LEVEL_KEYS if key not in data]
            if omitted:
                LOGGER.debug(f"Upstream output omitted keys: {omitted}")

        try:
            normalized = self.normalizer.normalize(data)
            report = self.validator.validate(normalized)
        except RecursionError:
            LOGGER.warning("Parsed output is nested too deeply to normalize")
            return SchemaMismatch(defects=[Defect(
                path=ROOT_PATH,
                expected="bounded nesting",
                actual="nested too deeply",
                message="Value is nested too deeply to normalize or validate",
            )])

        if not report.is_valid:
            return SchemaMismatch(defects=report.defects)

        record = report.record
        if not self.settings.is_production:
            LOGGER.info(
                f"[recover] ok tables: {len(record.tables)}, "
                f"crud: {len(record.crud_matrix)}, procs: {len(record.processes)}"
            )
        return Recovered(value=record)


def recover(raw_text: str) -> PipelineOutcome:
    """Run the recovery pipeline with default components."""
    return RecoveryPipeline().recover(raw_text)

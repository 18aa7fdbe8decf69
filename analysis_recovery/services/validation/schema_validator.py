"""Schema validation of normalized analysis values.

Wraps pydantic validation of ``AnalysisResult`` and turns its errors into a
flat list of ``Defect`` entries (path, expected shape, actual shape) that can
be shown to an operator diagnosing prompt or model drift.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from analysis_recovery.schemas.analysis import AnalysisResult
from analysis_recovery.utils.logging import get_logger

LOGGER = get_logger(__name__)

ROOT_PATH = "$"

# pydantic error type -> expected JSON shape
EXPECTED_SHAPES: Dict[str, str] = {
    "missing": "present",
    "string_type": "string",
    "bool_type": "boolean",
    "int_type": "integer",
    "list_type": "array",
    "tuple_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}


@dataclass(frozen=True)
class Defect:
    """One validation failure at a specific location."""
    path: str
    expected: str
    actual: str
    message: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "path": self.path,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Result of validating one normalized value."""
    record: Optional[AnalysisResult] = None
    defects: List[Defect] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.record is not None and not self.defects


def describe_json_type(value: Any) -> str:
    """Name the JSON shape of a Python value produced by ``json.loads``."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def format_path(loc: Tuple[Union[str, int], ...]) -> str:
    """Render a pydantic error location as a dotted path, e.g. ``tables.0.name``."""
    if not loc:
        return ROOT_PATH
    return ".".join(str(part) for part in loc)


def _expected_shape(error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    if error_type == "literal_error":
        return f"one of {error.get('ctx', {}).get('expected', '')}"
    return EXPECTED_SHAPES.get(error_type, error_type)


def defects_from_error(exc: ValidationError) -> List[Defect]:
    """Convert a pydantic ``ValidationError`` into defects.

    Args:
        exc: Error raised by ``AnalysisResult.model_validate``

    Returns:
        list: One defect per reported error, in pydantic's order
    """
    defects = []
    for error in exc.errors():
        actual = "missing" if error["type"] == "missing" else describe_json_type(error.get("input"))
        defects.append(Defect(
            path=format_path(error.get("loc", ())),
            expected=_expected_shape(error),
            actual=actual,
            message=error.get("msg", ""),
        ))
    return defects


class SchemaValidator:
    """Validates normalized values against the canonical analysis schema."""

    def validate(self, data: Any) -> ValidationReport:
        """Validate a normalized value.

        Absent top-level keys take their defaults; only present keys holding
        the wrong shape produce defects.

        Args:
            data: Output of the shape normalizer

        Returns:
            ValidationReport: The record on success, otherwise the defects
        """
        try:
            record = AnalysisResult.model_validate(data)
        except ValidationError as e:
            defects = defects_from_error(e)
            LOGGER.warning(
                f"Normalized output failed schema validation with {len(defects)} defect(s): "
                f"{', '.join(defect.path for defect in defects[:5])}"
            )
            return ValidationReport(defects=defects)

        return ValidationReport(record=record)

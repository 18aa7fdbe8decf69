"""JSON recovery helpers for raw LLM output.

Two steps live here:

- ``extract_json_slice`` finds the most likely JSON object inside free-form
  text (markdown fences, leading prose, trailing chatter).
- ``parse_llm_json`` parses that slice strictly and, only if that fails,
  runs a ``json_repair`` pass (unquoted keys, trailing commas, single quotes,
  truncated braces) and parses again.
"""

import json
import re
from typing import Any

from json_repair import repair_json

from analysis_recovery.core.exceptions import NonJsonError
from analysis_recovery.utils.logging import get_logger

LOGGER = get_logger(__name__)

_LEADING_JSON_FENCE = re.compile(r"\A```json\s*", re.IGNORECASE)
_LEADING_FENCE = re.compile(r"\A```\s*")
_TRAILING_FENCE = re.compile(r"```\Z")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker.

    Args:
        text: Text possibly wrapped in a markdown code block

    Returns:
        str: Text without the outer fence, trimmed
    """
    cleaned = _LEADING_JSON_FENCE.sub("", text, count=1)
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _looks_like_object(text: str) -> bool:
    return text.startswith("{") and text.rfind("}") > 0


def extract_json_slice(text: str) -> str:
    """Locate the most likely JSON object substring inside arbitrary text.

    Never raises and never fabricates structure: when no ``{``/``}`` pair is
    found the fence-stripped text is returned as-is and parsing decides.

    Args:
        text: Raw text returned by the model

    Returns:
        str: Best-effort JSON candidate
    """
    whole = (text or "").strip()
    if _looks_like_object(whole):
        return whole

    defenced = strip_code_fences(whole)
    if _looks_like_object(defenced):
        return defenced

    first = defenced.find("{")
    last = defenced.rfind("}")
    if first != -1 and last > first:
        LOGGER.debug(f"Sliced JSON candidate from position {first} to {last}")
        return defenced[first:last + 1]

    return defenced


def parse_llm_json(candidate: str) -> Any:
    """Parse a JSON candidate, falling back to a tolerant repair pass.

    Args:
        candidate: Output of ``extract_json_slice``

    Returns:
        Any: The parsed JSON value

    Raises:
        NonJsonError: If both the strict parse and the repaired parse fail
    """
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, RecursionError) as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, attempting repair...")
        strict_error = e

    try:
        repaired = repair_json(candidate, skip_json_loads=True)
    except Exception as e:
        raise NonJsonError("LLM returned non-JSON (and repair failed)", original_error=e) from e

    # A repair pass that recovers no object or array found no JSON to repair
    if not isinstance(repaired, str) or not repaired.strip() or repaired.lstrip()[0] not in "{[":
        LOGGER.warning("JSON repair produced no structure")
        raise NonJsonError("LLM returned non-JSON (and repair failed)", original_error=strict_error)

    try:
        data = json.loads(repaired)
    except (json.JSONDecodeError, RecursionError) as e:
        LOGGER.warning(f"Repaired JSON still failed to parse: {e}")
        raise NonJsonError("LLM returned non-JSON (and repair failed)", original_error=e) from e

    LOGGER.info("Parsed LLM output after JSON repair")
    return data

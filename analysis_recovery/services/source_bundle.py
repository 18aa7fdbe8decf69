"""Source bundle preparation for an analyze call.

Guards the combined payload size and splits the submitted files into a code
section and a document section, each truncated to the payload's ``max_chars``.
"""

from dataclasses import dataclass
from typing import Optional

from analysis_recovery.config import settings
from analysis_recovery.core.exceptions import PayloadTooLargeError
from analysis_recovery.schemas.payload import AnalyzePayload, SourceFileType
from analysis_recovery.utils.logging import get_logger

LOGGER = get_logger(__name__)

TRUNCATION_MARKER = "\n/* truncated */"


@dataclass(frozen=True)
class SourceBundle:
    code_text: str
    doc_text: str


def payload_size(payload: AnalyzePayload) -> int:
    """UTF-8 byte size of all file contents joined by newlines."""
    return len("\n".join(f.content for f in payload.files).encode("utf-8"))


def check_payload_size(payload: AnalyzePayload, limit: Optional[int] = None) -> int:
    """Reject payloads whose combined contents exceed the byte ceiling.

    Args:
        payload: Validated analyze payload
        limit: Byte ceiling, defaults to ``settings.max_payload_bytes``

    Returns:
        int: The measured size in bytes

    Raises:
        PayloadTooLargeError: If the size exceeds ``limit``
    """
    limit = settings.max_payload_bytes if limit is None else limit
    size = payload_size(payload)
    if size > limit:
        LOGGER.warning(f"Rejected payload of {size} bytes (limit {limit})")
        raise PayloadTooLargeError(size=size, limit=limit)
    return size


def compact(text: str, max_chars: int) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + TRUNCATION_MARKER
    return text


def build_source_bundle(payload: AnalyzePayload) -> SourceBundle:
    """Render code and document files into two truncated text sections.

    Args:
        payload: Validated analyze payload

    Returns:
        SourceBundle: ``// name`` headed code files and ``# name`` headed documents
    """
    code_text = "\n\n".join(
        f"// {f.name}\n{f.content}" for f in payload.files if f.type != SourceFileType.DOC
    )
    doc_text = "\n\n".join(
        f"# {f.name}\n{f.content}" for f in payload.files if f.type == SourceFileType.DOC
    )
    return SourceBundle(
        code_text=compact(code_text, payload.max_chars),
        doc_text=compact(doc_text, payload.max_chars),
    )

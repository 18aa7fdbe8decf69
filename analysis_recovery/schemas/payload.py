"""Request-side schema for an analyze call."""

from enum import Enum
from typing import List

from pydantic import AliasChoices, BaseModel, Field


class SourceFileType(str, Enum):
    """Classification of an uploaded source file."""
    CS = "cs"
    SQL = "sql"
    DOC = "doc"


class SourceFile(BaseModel):
    name: str
    type: SourceFileType
    content: str


class AnalyzePayload(BaseModel):
    """Files submitted for analysis plus the per-section character ceiling."""
    files: List[SourceFile]
    max_chars: int = Field(
        default=200_000,
        gt=0,
        validation_alias=AliasChoices("max_chars", "maxChars"),
        description="Character ceiling applied to the code and document sections"
    )

"""
Canonical analysis record.

The single fixed-shape structure the recovery pipeline guarantees on success:
tables with their columns, a Mermaid ER diagram, a CRUD matrix, a process
list and document links. Models are frozen and collections are tuples, so a
validated record cannot be mutated after the fact.
"""

from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr

CrudOp = Literal["C", "R", "U", "D"]

CRUD_OPS: Tuple[str, ...] = ("C", "R", "U", "D")

TOP_LEVEL_KEYS: Tuple[str, ...] = (
    "tables",
    "erd_mermaid",
    "crud_matrix",
    "processes",
    "doc_links",
)


class CanonicalModel(BaseModel):
    """Base model for canonical record parts."""
    model_config = ConfigDict(frozen=True, extra="ignore")


class ForeignKey(CanonicalModel):
    table: StrictStr
    column: StrictStr


class Column(CanonicalModel):
    name: StrictStr
    type: Optional[StrictStr] = None
    pk: Optional[StrictBool] = None
    fk: Optional[ForeignKey] = None
    nullable: StrictBool = True


class Table(CanonicalModel):
    name: StrictStr
    columns: Tuple[Column, ...] = ()


class CrudRow(CanonicalModel):
    """Which CRUD operations a process performs on a table."""
    process: StrictStr
    table: StrictStr
    ops: Tuple[CrudOp, ...] = ()


class Process(CanonicalModel):
    name: StrictStr
    description: Optional[StrictStr] = None
    children: Optional[Tuple[StrictStr, ...]] = None


class DocLink(CanonicalModel):
    """A document snippet related to a table or process."""
    doc: StrictStr
    snippet: StrictStr
    related: StrictStr


class AnalysisResult(CanonicalModel):
    """Canonical analysis record."""
    tables: Tuple[Table, ...] = ()
    erd_mermaid: StrictStr = ""
    crud_matrix: Tuple[CrudRow, ...] = ()
    processes: Tuple[Process, ...] = ()
    doc_links: Tuple[DocLink, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible dict, omitting optional fields that were never set."""
        return self.model_dump(mode="json", exclude_none=True)

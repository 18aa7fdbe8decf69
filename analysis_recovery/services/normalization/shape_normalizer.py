"""Shape normalizer for LLM analysis output.

Models describe the same analysis in several equivalent encodings: column
constraints as free-form SQL tokens instead of ``pk``/``nullable``/``fk``
flags, a CRUD matrix keyed by table name instead of a list of rows, ops as a
``"CRU"`` string instead of an array, bare strings for processes and document
links. ``ShapeNormalizer`` rewrites those into the canonical shape.

Normalization is a pure transform: the input value is never mutated, and
nothing in the output aliases the input. It never rejects input either;
whatever it cannot reshape is passed through for the schema validator to
report.
"""

import copy
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from analysis_recovery.schemas.analysis import CRUD_OPS
from analysis_recovery.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Best-effort heuristic, not a DDL parser: only the
# "FOREIGN KEY REFERENCES <table>(<column>)" spelling is recognised.
FOREIGN_KEY_PATTERN = re.compile(
    r"FOREIGN\s+KEY\s+REFERENCES\s+([A-Z0-9_]+)\s*\(\s*([A-Z0-9_]+)\s*\)",
    re.IGNORECASE,
)

_MISSING = object()


def _get(value: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a mapping, treating non-mappings and nulls as absent."""
    if not isinstance(value, dict):
        return default
    found = value.get(key)
    return default if found is None else found


def _is_blank(value: Any) -> bool:
    """Absent, null or a falsy scalar. Empty containers still count as present."""
    return value is _MISSING or (not isinstance(value, (dict, list)) and not value)


@dataclass
class ColumnFields:
    """Optional-field view of one column as the model produced it."""
    name: Any
    type: Any
    pk: Any
    fk: Any
    nullable: Any
    constraints: List[Any]

    @classmethod
    def read(cls, value: Any) -> "ColumnFields":
        constraints = _get(value, "constraints")
        return cls(
            name=_get(value, "name", ""),
            type=_get(value, "type"),
            pk=_get(value, "pk"),
            fk=_get(value, "fk"),
            nullable=_get(value, "nullable"),
            constraints=constraints if isinstance(constraints, list) else [],
        )


@dataclass
class CrudRowFields:
    """Optional-field view of one CRUD matrix row."""
    process: Any
    table: Any
    ops: Any

    @classmethod
    def read(cls, value: Any) -> "CrudRowFields":
        table = _get(value, "table")
        return cls(
            process=_get(value, "process", "" if table is None else table),
            table="" if table is None else table,
            ops=_get(value, "ops"),
        )


class ShapeNormalizer:
    """Rewrites alternate analysis shapes into the canonical record shape.

    Rules are applied independently, in a fixed order:
    1. Column constraint folding (``constraints`` → ``pk``/``nullable``/``fk``)
    2. CRUD matrix coercion (keyed mapping → rows, ops string → array, ops filtered)
    3. Process list coercion (bare strings → ``{name}``)
    4. Doc-link coercion (bare strings → ``{doc, snippet, related}``)
    5. ERD default (non-string → ``""``)
    """

    def normalize(self, data: Any) -> Any:
        """Return a reshaped copy of ``data``.

        Args:
            data: Any value produced by the JSON parser

        Returns:
            Any: A new dict approximating the canonical record, or a deep copy
            of ``data`` when it is not an object at all
        """
        if not isinstance(data, dict):
            LOGGER.debug(f"Top-level value is {type(data).__name__}, leaving it for validation")
            return copy.deepcopy(data)

        result: Dict[str, Any] = {}
        result["tables"] = self.normalize_tables(data.get("tables", _MISSING))
        result["crud_matrix"] = self.normalize_crud_matrix(data.get("crud_matrix", _MISSING))
        result["processes"] = self.normalize_processes(data.get("processes", _MISSING))
        result["doc_links"] = self.normalize_doc_links(data.get("doc_links", _MISSING))
        result["erd_mermaid"] = self.normalize_erd(data.get("erd_mermaid", _MISSING))
        return result

    def normalize_tables(self, tables: Any) -> Any:
        if tables is _MISSING or tables is None:
            return []
        if not isinstance(tables, list):
            return copy.deepcopy(tables)

        normalized = []
        for table in tables:
            columns = _get(table, "columns")
            columns = columns if isinstance(columns, list) else []
            normalized.append({
                "name": copy.deepcopy(_get(table, "name", "")),
                "columns": [self.fold_constraints(column) for column in columns],
            })
        return normalized

    def fold_constraints(self, column: Any) -> Dict[str, Any]:
        """Fold SQL-style constraint tokens into the column's flags.

        Explicit ``fk`` values win over the ones derived from a
        ``FOREIGN KEY REFERENCES`` token. ``nullable`` defaults to True.

        Args:
            column: A column entry as produced by the model

        Returns:
            dict: Column with ``name``, ``nullable`` and any set flags
        """
        fields = ColumnFields.read(column)
        pk = fields.pk
        nullable = fields.nullable
        fk = fields.fk

        for token in fields.constraints:
            text = str(token)
            upper = text.upper()
            if "PRIMARY KEY" in upper:
                pk = True
            if "NOT NULL" in upper:
                nullable = False
            match = FOREIGN_KEY_PATTERN.search(text)
            if match:
                fk = {
                    "table": _get(fields.fk, "table", match.group(1)),
                    "column": _get(fields.fk, "column", match.group(2)),
                }

        out: Dict[str, Any] = {"name": copy.deepcopy(fields.name)}
        if fields.type is not None:
            out["type"] = copy.deepcopy(fields.type)
        if pk is not None:
            out["pk"] = pk
        if fk is not None:
            out["fk"] = copy.deepcopy(fk)
        out["nullable"] = True if nullable is None else nullable
        return out

    def normalize_crud_matrix(self, matrix: Any) -> Any:
        if matrix is _MISSING or matrix is None:
            return []

        if isinstance(matrix, dict):
            LOGGER.debug(f"Converting keyed CRUD matrix with {len(matrix)} entries to rows")
            matrix = [
                {"process": str(key), "table": str(key), "ops": _get(value, "ops")}
                for key, value in matrix.items()
            ]

        if not isinstance(matrix, list):
            return copy.deepcopy(matrix)

        rows = []
        for row in matrix:
            fields = CrudRowFields.read(row)
            rows.append({
                "process": copy.deepcopy(fields.process),
                "table": copy.deepcopy(fields.table),
                "ops": self.coerce_ops(fields.ops),
            })
        return rows

    @staticmethod
    def coerce_ops(ops: Any) -> List[str]:
        """Coerce ops into an array of valid CRUD letters.

        A string is split into characters. Anything outside C/R/U/D is dropped;
        order and repeats of the valid letters are kept as they came.

        Args:
            ops: Array of tokens, a string such as ``"CRU"``, or anything else

        Returns:
            list: Filtered ops
        """
        if isinstance(ops, str):
            ops = list(ops)
        if not isinstance(ops, list):
            return []
        return [op for op in ops if isinstance(op, str) and op in CRUD_OPS]

    def normalize_processes(self, processes: Any) -> Any:
        if isinstance(processes, list):
            return [
                {"name": process} if isinstance(process, str) else copy.deepcopy(process)
                for process in processes
            ]
        if _is_blank(processes):
            return []
        return copy.deepcopy(processes)

    def normalize_doc_links(self, doc_links: Any) -> Any:
        if isinstance(doc_links, list):
            return [
                {"doc": link, "snippet": "", "related": ""} if isinstance(link, str) else copy.deepcopy(link)
                for link in doc_links
            ]
        if _is_blank(doc_links):
            return []
        return copy.deepcopy(doc_links)

    @staticmethod
    def normalize_erd(erd: Any) -> str:
        return erd if isinstance(erd, str) else ""


def normalize_result_shape(data: Any) -> Any:
    """Normalize a parsed analysis value with a default ``ShapeNormalizer``."""
    return ShapeNormalizer().normalize(data)

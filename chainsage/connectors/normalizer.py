"""
Result Normalizer

Reshapes heterogeneous provider payloads into the canonical ResultSet and
bounds its size before it is embedded in the summarization prompt.

Accepted shapes:
- ResultSet instances (returned unchanged)
- {"columnNames" | "column_names": [...], "rows": [...]} where rows are
  objects or positional arrays
- {"rows": [...]} with columns inferred from the first row's keys
- {"items": [...]} (Covalent style)
- {"data": <any of the above>} envelopes, nested any depth
- bare lists of objects, bare lists of scalars, single objects, None
"""

import logging
from typing import Any

from chainsage.models.query import ResultSet

logger = logging.getLogger(__name__)

_COLUMN_KEYS = ("columnNames", "column_names")
_ROW_KEYS = ("rows", "items")


def normalize(payload: Any) -> ResultSet:
    """
    Convert a provider payload into a ResultSet.

    Idempotent: ``normalize(normalize(x)) == normalize(x)``.
    """
    if isinstance(payload, ResultSet):
        return payload
    if payload is None:
        return ResultSet()
    if isinstance(payload, list):
        return _from_rows(payload, column_names=None)
    if isinstance(payload, dict):
        if not payload:
            return ResultSet()
        for key in _ROW_KEYS:
            if key in payload:
                column_names = next(
                    (payload[k] for k in _COLUMN_KEYS if payload.get(k) is not None), None
                )
                return _from_rows(payload[key] or [], column_names)
        if "data" in payload:
            return normalize(payload["data"])
        if any(payload.get(k) is not None for k in _COLUMN_KEYS):
            column_names = next(payload[k] for k in _COLUMN_KEYS if payload.get(k) is not None)
            return ResultSet(column_names=[str(c) for c in column_names], rows=[])
        return _from_rows([payload], column_names=None)
    return _from_rows([payload], column_names=None)


def _from_rows(rows: Any, column_names: list[Any] | None) -> ResultSet:
    if not isinstance(rows, list):
        rows = [rows]

    columns = [str(c) for c in column_names] if column_names is not None else None
    records: list[dict[str, Any]] = []
    for row in rows:
        if isinstance(row, dict):
            # {} is not a row
            if row:
                records.append(dict(row))
        elif isinstance(row, (list, tuple)) and columns is not None:
            records.append(dict(zip(columns, row)))
        else:
            records.append({"value": row})

    if columns is None:
        columns = list(records[0].keys()) if records else []
    return ResultSet(column_names=columns, rows=records)


def sample(
    result_set: ResultSet,
    max_serialized_length: int = 5000,
    max_rows: int = 50,
) -> ResultSet:
    """
    Bound a ResultSet for prompt embedding.

    When the canonical serialization exceeds ``max_serialized_length`` the
    first ``max_rows`` whole rows are kept along with every column name;
    otherwise the input is returned unchanged.
    """
    serialized_length = len(result_set.to_json())
    if serialized_length <= max_serialized_length:
        return result_set

    sampled = ResultSet(column_names=result_set.column_names, rows=result_set.rows[:max_rows])
    logger.info(
        f"Sampled result set from {result_set.row_count} to {sampled.row_count} rows",
        extra={
            "serialized_length": serialized_length,
            "max_serialized_length": max_serialized_length,
            "max_rows": max_rows,
        },
    )
    return sampled


def is_sampled(original: ResultSet, bounded: ResultSet) -> bool:
    return bounded.row_count < original.row_count


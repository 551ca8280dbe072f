# schema_scout/consistency.py
"""Detects schema types that are declared with more than one @id value."""
from __future__ import annotations

from typing import Dict, Iterable, List

from schema_scout.models import ConsistencyIssue, SchemaObject

__all__ = ["check_id_consistency", "count_missing_ids", "group_ids_by_type"]


def group_ids_by_type(schemas: Iterable[SchemaObject]) -> Dict[str, List[str]]:
    """type → distinct ids in first-seen order; objects without @id are ignored."""
    groups: Dict[str, Dict[str, None]] = {}
    for schema in schemas:
        if not schema.has_id:
            continue
        groups.setdefault(schema.type, {})[schema.id] = None  # type: ignore[index]
    return {schema_type: list(ids) for schema_type, ids in groups.items()}


def check_id_consistency(schemas: Iterable[SchemaObject]) -> List[ConsistencyIssue]:
    issues: List[ConsistencyIssue] = []
    for schema_type, ids in group_ids_by_type(schemas).items():
        if len(ids) > 1:
            issues.append(
                ConsistencyIssue(
                    type=schema_type,
                    ids=tuple(ids),
                    message=f"{schema_type} schema uses {len(ids)} different @id values",
                )
            )
    return issues


def count_missing_ids(schemas: Iterable[SchemaObject]) -> int:
    return sum(1 for s in schemas if not s.has_id)

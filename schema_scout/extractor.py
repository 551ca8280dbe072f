# schema_scout/extractor.py
"""
Schema extraction: raw JSON-LD script payloads → :class:`SchemaObject` records.

Extraction is a pure function of its input. A payload that is not valid JSON
is skipped and counted, the remaining payloads of the page are still read.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from schema_scout.errors import MalformedPayload
from schema_scout.logger import get_logger
from schema_scout.models import SchemaObject

__all__ = ("ExtractionResult", "extract_schemas", "parse_payload", "resolve_type", "resolve_id")

logger = get_logger("extractor")

_ID_KEYS: Sequence[str] = ("@id", "id")


@dataclass(slots=True)
class ExtractionResult:
    schemas: List[SchemaObject] = field(default_factory=list)
    skipped: List[MalformedPayload] = field(default_factory=list)

    @property
    def schemas_found(self) -> int:
        return len(self.schemas)


def resolve_type(raw: Any) -> Optional[str]:
    """First element for list-valued ``@type``, the value itself otherwise."""
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def resolve_id(obj: dict) -> Optional[str]:
    for key in _ID_KEYS:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_payload(text: str, index: int = 0) -> List[dict]:
    """Parse one script body. Raises :class:`MalformedPayload` on bad JSON."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise MalformedPayload(index, str(exc)) from exc
    pending = list(data) if isinstance(data, list) else [data]
    items: List[dict] = []
    while pending:
        item = pending.pop(0)
        if not isinstance(item, dict):
            continue
        items.append(item)
        # {"@context": ..., "@graph": [...]}: graph members are entities of their own
        graph = item.get("@graph")
        if isinstance(graph, list):
            pending[0:0] = graph
    return items


def extract_schemas(payloads: Iterable[str]) -> ExtractionResult:
    """Convert script payloads into schema objects, keeping document order."""
    result = ExtractionResult()
    for index, text in enumerate(payloads):
        try:
            items = parse_payload(text, index)
        except MalformedPayload as exc:
            logger.warning("%s", exc)
            result.skipped.append(exc)
            continue
        for item in items:
            schema_type = resolve_type(item.get("@type"))
            if not schema_type:
                continue
            result.schemas.append(SchemaObject(type=schema_type, id=resolve_id(item), data=item))
    return result

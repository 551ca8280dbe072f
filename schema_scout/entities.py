# schema_scout/entities.py
"""
Entity graph of a schema population.

Entities are schema objects that declare an ``@id``. Other objects point at
them through reference properties (``author``, ``publisher``, ...) or nested
``{"@id": ...}`` nodes. From those links the module reports references to
ids nobody declares, entities nothing links to or from, ids reused across
pages, and how well each ``@id`` follows a stable naming pattern.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from schema_scout.models import ConsistencyIssue, IdFix, PageResult, SchemaObject

__all__ = [
    "REFERENCE_PROPERTIES",
    "IdPattern",
    "EntityMap",
    "classify_id",
    "count_id_patterns",
    "extract_references",
    "map_entities",
    "find_reused_ids",
    "generate_fixes",
]

REFERENCE_PROPERTIES = frozenset({
    "author", "editor", "publisher", "creator",
    "member", "employee", "founder", "owner",
    "mainEntity", "about", "mentions",
    "isPartOf", "hasPart", "memberOf",
    "worksFor", "alumniOf", "knows",
    "follows", "sponsor", "funder",
})

_GOOD: Tuple[Pattern[str], ...] = (re.compile(r"^schema:"), re.compile(r"^https?://schema\.org/"))
_ACCEPTABLE: Tuple[Pattern[str], ...] = (re.compile(r"^https?://.*#[a-zA-Z]"), re.compile(r"^#[a-zA-Z]"))
# strings that can stand for an entity when used as a plain property value
_REFERENCE: Tuple[Pattern[str], ...] = (re.compile(r"^schema:"), re.compile(r"^https?://.*#"), re.compile(r"^#[a-zA-Z]"))


class IdPattern(str, Enum):
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    BAD = "bad"


def classify_id(value: str) -> IdPattern:
    """``schema:…`` is good, a named fragment is acceptable, anything else is bad."""
    if any(p.match(value) for p in _GOOD):
        return IdPattern.GOOD
    if any(p.match(value) for p in _ACCEPTABLE):
        return IdPattern.ACCEPTABLE
    return IdPattern.BAD


def count_id_patterns(schemas: Iterable[SchemaObject]) -> Dict[str, int]:
    """Distinct @id values per pattern class."""
    counts = {p.value: 0 for p in IdPattern}
    for value in dict.fromkeys(s.id for s in schemas if s.has_id):
        counts[classify_id(value).value] += 1  # type: ignore[arg-type]
    return counts


def _is_reference(value: Any) -> bool:
    return isinstance(value, str) and any(p.match(value) for p in _REFERENCE)


def _walk(value: Any, refs: Dict[str, None], inline: Dict[str, None]) -> None:
    if isinstance(value, list):
        for item in value:
            _walk(item, refs, inline)
        return
    if not isinstance(value, dict):
        return
    node_id = value.get("@id")
    if isinstance(node_id, str) and node_id.strip():
        refs[node_id.strip()] = None
        if value.get("@type"):
            inline[node_id.strip()] = None
    _scan_properties(value, refs, inline)


def _scan_properties(obj: Dict[str, Any], refs: Dict[str, None], inline: Dict[str, None]) -> None:
    for key, value in obj.items():
        if key in ("@id", "@graph"):
            continue
        if key in REFERENCE_PROPERTIES and _is_reference(value):
            refs[value] = None
        elif isinstance(value, (dict, list)):
            _walk(value, refs, inline)


def extract_references(data: Dict[str, Any]) -> List[str]:
    """Ids referenced from inside one object, in document order (its own @id excluded)."""
    refs: Dict[str, None] = {}
    _scan_properties(data, refs, {})
    return list(refs)


@dataclass(slots=True)
class EntityMap:
    """Declared entities and the links between them."""

    entities: Dict[str, str] = field(default_factory=dict)
    outgoing: Dict[str, List[str]] = field(default_factory=dict)
    incoming: Dict[str, Set[str]] = field(default_factory=dict)
    broken_references: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def orphaned(self) -> List[str]:
        return [
            entity_id for entity_id in self.entities
            if not self.outgoing.get(entity_id) and not self.incoming.get(entity_id)
        ]


def map_entities(schemas: Iterable[SchemaObject]) -> EntityMap:
    """
    Build the entity map. An inline object that has both ``@type`` and
    ``@id`` declares that entity, so pointing at it is not a broken reference.
    Objects without @id still contribute links; they are keyed by type.
    """
    population = list(schemas)
    result = EntityMap()
    declared: Dict[str, None] = {}
    links: List[Tuple[str, List[str]]] = []

    for schema in population:
        if schema.has_id:
            result.entities.setdefault(schema.id, schema.type)  # type: ignore[arg-type]
            declared[schema.id] = None  # type: ignore[index]
        refs: Dict[str, None] = {}
        inline: Dict[str, None] = {}
        _scan_properties(schema.data, refs, inline)
        declared.update(inline)
        source = schema.id or schema.type
        targets = [ref for ref in refs if ref != source]
        links.append((source, targets))

    for source, targets in links:
        if source in result.entities:
            out = result.outgoing.setdefault(source, [])
            out.extend(t for t in targets if t not in out)
        for target in targets:
            result.incoming.setdefault(target, set()).add(source)
            if target not in declared:
                missing = result.broken_references.setdefault(source, [])
                if target not in missing:
                    missing.append(target)
    return result


def find_reused_ids(pages: Sequence[PageResult]) -> Dict[str, List[str]]:
    """@id → pages it is declared on, for ids declared on more than one page."""
    seen: Dict[str, Dict[str, None]] = {}
    for page in pages:
        for schema in page.schemas:
            if schema.has_id:
                seen.setdefault(schema.id, {})[page.url] = None  # type: ignore[index]
    return {entity_id: list(urls) for entity_id, urls in seen.items() if len(urls) > 1}


def generate_fixes(
    schemas: Sequence[SchemaObject],
    issues: Iterable[ConsistencyIssue],
    id_prefix: str = "schema:",
    *,
    include_patterns: bool = True,
) -> List[IdFix]:
    """Structured counterparts of the textual recommendations, one per type or id."""
    fixes: List[IdFix] = []

    for schema_type in dict.fromkeys(s.type for s in schemas if not s.has_id):
        recommended = f"{id_prefix}{schema_type}"
        fixes.append(IdFix(
            kind="add_missing_id",
            type=schema_type,
            recommended_id=recommended,
            instructions=f'Add "@id": "{recommended}" to {schema_type} schemas',
        ))

    for issue in issues:
        recommended = f"{id_prefix}{issue.type}"
        fixes.append(IdFix(
            kind="fix_inconsistency",
            type=issue.type,
            recommended_id=recommended,
            current_ids=issue.ids,
            instructions=f'Replace all {issue.type} @id values with "{recommended}"',
        ))

    if include_patterns:
        done: Set[str] = set()
        for schema in schemas:
            current: Optional[str] = schema.id
            if not current or current in done or classify_id(current) is not IdPattern.BAD:
                continue
            done.add(current)
            recommended = f"{id_prefix}{schema.type}"
            fixes.append(IdFix(
                kind="fix_pattern",
                type=schema.type,
                recommended_id=recommended,
                current_ids=(current,),
                instructions=f'Replace "{current}" with "{recommended}"',
            ))
    return fixes

# schema_scout/scoring.py
"""
Scoring & recommendations for a population of schema objects.

Inputs are reduced to three counters: ``N`` (schemas found), ``U`` (schemas
without @id) and ``C`` (consistency issues). The score is
``max(0, 100 - 10*U - 15*C)``; recommendations are advisory strings in a
fixed priority order (missing ids, per-type standardisation, @id prefix).
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from schema_scout.consistency import check_id_consistency, count_missing_ids
from schema_scout.entities import count_id_patterns, find_reused_ids, generate_fixes, map_entities
from schema_scout.models import ConsistencyIssue, HealthReport, HealthStatus, PageResult, SchemaObject

__all__ = [
    "MISSING_ID_PENALTY",
    "INCONSISTENCY_PENALTY",
    "classify_health",
    "compute_score",
    "generate_recommendations",
    "schema_distribution",
    "id_coverage",
    "evaluate",
]

MISSING_ID_PENALTY = 10
INCONSISTENCY_PENALTY = 15
DEFAULT_ID_PREFIX = "schema:"


def classify_health(total: int, missing: int, inconsistent: int) -> Tuple[HealthStatus, int]:
    """Return ``(status, critical_issues)``."""
    if total == 0:
        return HealthStatus.CRITICAL, 1
    if missing > total * 0.5 or inconsistent > 0:
        return HealthStatus.WARNING, inconsistent
    return HealthStatus.HEALTHY, 0


def compute_score(missing: int, inconsistent: int) -> int:
    return max(0, 100 - MISSING_ID_PENALTY * missing - INCONSISTENCY_PENALTY * inconsistent)


def generate_recommendations(
    schemas: Sequence[SchemaObject],
    issues: Iterable[ConsistencyIssue],
    id_prefix: str = DEFAULT_ID_PREFIX,
) -> List[str]:
    fixes: List[str] = []

    missing = count_missing_ids(schemas)
    if missing > 0:
        fixes.append(f"Add @id properties to {missing} schemas")

    for issue in issues:
        fixes.append(f"Standardize @id for {issue.type} schemas")

    off_pattern = [s for s in schemas if s.has_id and not s.id.startswith(id_prefix)]  # type: ignore[union-attr]
    if off_pattern:
        fixes.append(f'Use "{id_prefix}" pattern for {len(off_pattern)} @id values')

    return fixes


def schema_distribution(schemas: Iterable[SchemaObject]) -> Dict[str, int]:
    """type → number of objects, in first-seen order."""
    counts: Dict[str, int] = {}
    for schema in schemas:
        counts[schema.type] = counts.get(schema.type, 0) + 1
    return counts


def id_coverage(schemas: Sequence[SchemaObject]) -> float:
    """Percentage of objects that declare an @id (0.0 for an empty population)."""
    if not schemas:
        return 0.0
    with_id = sum(1 for s in schemas if s.has_id)
    return round(with_id / len(schemas) * 100, 1)


def evaluate(
    schemas: Iterable[SchemaObject],
    id_prefix: str = DEFAULT_ID_PREFIX,
    *,
    check_consistency: bool = True,
    recommendations: bool = True,
    entity_analysis: bool = True,
    issues: Optional[List[ConsistencyIssue]] = None,
    pages: Optional[Sequence[PageResult]] = None,
) -> HealthReport:
    """
    Run the consistency checker, the entity analysis and the scoring over one
    population. Switches only hide parts of the report: the score and the
    status always count every consistency issue. ``pages`` enables the
    cross-page @id reuse check.
    """
    population = list(schemas)
    if issues is None:
        issues = check_id_consistency(population)
    shown = issues if check_consistency else []

    total = len(population)
    missing = count_missing_ids(population)
    status, critical = classify_health(total, missing, len(issues))

    report = HealthReport(
        status=status,
        schema_count=total,
        missing_ids=missing,
        critical_issues=critical,
        seo_score=compute_score(missing, len(issues)),
        issues=list(shown),
        id_coverage=id_coverage(population),
    )
    if check_consistency:
        report.id_patterns = count_id_patterns(population)
    if recommendations:
        report.recommendations = generate_recommendations(population, shown, id_prefix)
        report.fixes = generate_fixes(population, shown, id_prefix, include_patterns=check_consistency)
    if entity_analysis:
        entity_map = map_entities(population)
        report.schema_distribution = schema_distribution(population)
        report.broken_references = entity_map.broken_references
        report.orphaned_entities = entity_map.orphaned
        report.reused_ids = find_reused_ids(pages) if pages else {}
    return report

# File: tests/test_scoring.py
"""Тесты оценки: классификация, формула, монотонность и порядок рекомендаций."""
import pytest

from schema_scout.consistency import check_id_consistency
from schema_scout.models import HealthStatus, PageResult, SchemaObject
from schema_scout.scoring import (
    classify_health,
    compute_score,
    evaluate,
    generate_recommendations,
    id_coverage,
    schema_distribution,
)


def obj(type_, id_=None):
    return SchemaObject(type=type_, id=id_)


@pytest.mark.parametrize(
    "total,missing,issues,expected",
    [
        (0, 0, 0, (HealthStatus.CRITICAL, 1)),
        (4, 3, 0, (HealthStatus.WARNING, 0)),
        (4, 2, 0, (HealthStatus.HEALTHY, 0)),
        (4, 0, 2, (HealthStatus.WARNING, 2)),
        (1, 0, 0, (HealthStatus.HEALTHY, 0)),
    ],
)
def test_classify_health(total, missing, issues, expected):
    assert classify_health(total, missing, issues) == expected


def test_compute_score_formula_and_floor():
    assert compute_score(0, 0) == 100
    assert compute_score(1, 1) == 75
    assert compute_score(3, 0) == 70
    assert compute_score(20, 5) == 0


def test_score_is_bounded_and_non_increasing():
    for missing in range(0, 12):
        for issues in range(0, 8):
            score = compute_score(missing, issues)
            assert 0 <= score <= 100
            assert compute_score(missing + 1, issues) <= score
            assert compute_score(missing, issues + 1) <= score


def test_recommendations_order():
    schemas = [
        obj("Product", "a"),
        obj("Product", "b"),
        obj("Organization", "schema:org"),
        obj("WebPage"),
    ]
    issues = check_id_consistency(schemas)
    fixes = generate_recommendations(schemas, issues)
    assert fixes == [
        "Add @id properties to 1 schemas",
        "Standardize @id for Product schemas",
        'Use "schema:" pattern for 2 @id values',
    ]


def test_recommendations_custom_prefix():
    schemas = [obj("Organization", "https://ex.com/#org")]
    assert generate_recommendations(schemas, [], "https://ex.com/") == []
    assert generate_recommendations(schemas, [], "schema:") == ['Use "schema:" pattern for 1 @id values']


def test_evaluate_single_valid_organization():
    report = evaluate([obj("Organization", "schema:org1")])
    assert report.status is HealthStatus.HEALTHY
    assert report.schema_count == 1
    assert report.missing_ids == 0
    assert report.issues == []
    assert report.seo_score == 100
    assert report.recommendations == []


def test_evaluate_empty_population_is_critical():
    report = evaluate([])
    assert report.status is HealthStatus.CRITICAL
    assert report.critical_issues == 1
    assert report.seo_score == 100
    assert report.id_coverage == 0.0


def test_evaluate_product_inconsistency():
    report = evaluate([obj("Product", "a"), obj("Product", "a"), obj("Product", "b")])
    assert report.status is HealthStatus.WARNING
    assert report.critical_issues == 1
    assert report.seo_score == 85
    assert "Standardize @id for Product schemas" in report.recommendations


def test_evaluate_without_consistency_output_keeps_score():
    schemas = [obj("Product", "a"), obj("Product", "b")]
    report = evaluate(schemas, check_consistency=False)
    assert report.issues == []
    assert report.seo_score == 85
    assert report.status is HealthStatus.WARNING
    assert not any(r.startswith("Standardize") for r in report.recommendations)


def test_evaluate_without_recommendations():
    report = evaluate([obj("Event")], recommendations=False)
    assert report.recommendations == []
    assert report.seo_score == 90


def test_distribution_and_coverage():
    schemas = [obj("B", "x"), obj("A"), obj("B"), obj("C", "y")]
    assert list(schema_distribution(schemas).items()) == [("B", 2), ("A", 1), ("C", 1)]
    assert id_coverage(schemas) == 50.0


def test_evaluate_entity_parts_follow_switches():
    org = obj("Organization", "schema:org")
    pages = [
        PageResult(url="https://ex.com/", title="", depth=0, schemas=(org,)),
        PageResult(url="https://ex.com/a", title="", depth=1, schemas=(org, obj("Event"))),
    ]
    population = [s for page in pages for s in page.schemas]

    report = evaluate(population, pages=pages)
    assert report.reused_ids == {"schema:org": ["https://ex.com/", "https://ex.com/a"]}
    assert report.orphaned_entities == ["schema:org"]
    assert report.id_patterns == {"good": 1, "acceptable": 0, "bad": 0}
    assert [f.kind for f in report.fixes] == ["add_missing_id"]

    hidden = evaluate(population, pages=pages, entity_analysis=False, recommendations=False)
    assert (hidden.reused_ids, hidden.orphaned_entities, hidden.schema_distribution) == ({}, [], {})
    assert hidden.fixes == []
    assert hidden.seo_score == report.seo_score == 90

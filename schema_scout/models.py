# schema_scout/models.py
"""
Data models shared by the extractor, the crawler and the engine.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


class ScanType(str, Enum):
    SINGLE_PAGE = "single_page"
    SITE_SCAN = "site_scan"


class ScanStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class SchemaObject:
    """Normalized JSON-LD entity: resolved type, declared @id and raw attributes."""

    type: str
    id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def has_id(self) -> bool:
        return bool(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "has_id": self.has_id, "data": self.data}


@dataclass(frozen=True, slots=True)
class ConsistencyIssue:
    """One schema type declared with several distinct @id values."""

    type: str
    ids: Tuple[str, ...]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "ids": list(self.ids), "message": self.message}


@dataclass(frozen=True, slots=True)
class IdFix:
    """Machine-readable @id correction: what to change and the id to use instead."""

    kind: str
    type: str
    recommended_id: str
    current_ids: Tuple[str, ...] = ()
    instructions: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "type": self.type,
            "recommended_id": self.recommended_id,
            "current_ids": list(self.current_ids),
            "instructions": self.instructions,
        }


@dataclass(frozen=True, slots=True)
class FetchedPage:
    """What the page fetcher hands back for one rendered URL."""

    url: str
    status: int
    title: str = ""
    canonical_url: Optional[str] = None
    description: str = ""
    script_payloads: Tuple[str, ...] = ()
    anchor_hrefs: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True, slots=True)
class PageResult:
    """Schemas found on one visited page."""

    url: str
    title: str
    depth: int
    schemas: Tuple[SchemaObject, ...]
    scanned_at: datetime = field(default_factory=utcnow)
    canonical_url: Optional[str] = None
    description: str = ""
    skipped_payloads: int = 0
    error: Optional[str] = None

    @property
    def schemas_found(self) -> int:
        return len(self.schemas)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "depth": self.depth,
            "canonical_url": self.canonical_url,
            "description": self.description,
            "schemas_found": self.schemas_found,
            "skipped_payloads": self.skipped_payloads,
            "schemas": [s.to_dict() for s in self.schemas],
            "scanned_at": _iso(self.scanned_at),
            "error": self.error,
        }


@dataclass(slots=True)
class HealthReport:
    """Score, health classification and ordered recommendations for a schema population.

    ``id_patterns`` and ``fixes`` belong to the @id consistency part of the
    report; ``broken_references``, ``orphaned_entities`` and ``reused_ids``
    to the entity analysis. Either part may be left empty by the caller.
    """

    status: HealthStatus
    schema_count: int
    missing_ids: int
    critical_issues: int
    seo_score: int
    issues: List[ConsistencyIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    schema_distribution: Dict[str, int] = field(default_factory=dict)
    id_coverage: float = 0.0
    id_patterns: Dict[str, int] = field(default_factory=dict)
    fixes: List[IdFix] = field(default_factory=list)
    broken_references: Dict[str, List[str]] = field(default_factory=dict)
    orphaned_entities: List[str] = field(default_factory=list)
    reused_ids: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "stats": {
                "schema_count": self.schema_count,
                "missing_ids": self.missing_ids,
                "critical_issues": self.critical_issues,
                "seo_score": self.seo_score,
                "id_coverage": self.id_coverage,
            },
            "schema_distribution": dict(self.schema_distribution),
            "consistency_issues": [i.to_dict() for i in self.issues],
            "id_patterns": dict(self.id_patterns),
            "recommendations": list(self.recommendations),
            "fixes": [f.to_dict() for f in self.fixes],
            "entities": {
                "broken_references": {k: list(v) for k, v in self.broken_references.items()},
                "orphaned_entities": list(self.orphaned_entities),
                "reused_ids": {k: list(v) for k, v in self.reused_ids.items()},
            },
        }


@dataclass(slots=True)
class ScanProgress:
    total: int = 0
    completed: int = 0
    scanned: int = 0
    failed: int = 0
    queued: int = 0
    is_scanning: bool = False

    @property
    def percent(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "scanned": self.scanned,
            "failed": self.failed,
            "queued": self.queued,
            "progress": self.percent,
            "is_scanning": self.is_scanning,
        }


@dataclass(slots=True)
class ScanRecord:
    """
    State of one analysis. Owned by whoever runs the scan; status moves
    pending → running → completed | failed and never leaves a terminal state.
    """

    url: str
    type: ScanType
    options: Dict[str, Any] = field(default_factory=dict)
    scan_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: ScanStatus = ScanStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    pages: List[PageResult] = field(default_factory=list)
    skipped_urls: List[str] = field(default_factory=list)
    analysis: Optional[HealthReport] = None
    error: Optional[str] = None

    @property
    def schemas(self) -> List[SchemaObject]:
        return [s for page in self.pages for s in page.schemas]

    @property
    def schemas_found(self) -> int:
        return sum(p.schemas_found for p in self.pages)

    @property
    def duration(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.created_at).total_seconds()

    def _transition(self, new: ScanStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Scan {self.scan_id} already {self.status.value}")
        self.status = new

    def mark_running(self) -> None:
        self._transition(ScanStatus.RUNNING)

    def mark_completed(self, analysis: Optional[HealthReport] = None) -> None:
        self._transition(ScanStatus.COMPLETED)
        self.analysis = analysis
        self.completed_at = utcnow()

    def mark_failed(self, error: str) -> None:
        self._transition(ScanStatus.FAILED)
        self.error = error
        self.completed_at = utcnow()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "scan_id": self.scan_id,
            "url": self.url,
            "type": self.type.value,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
            "duration": self.duration,
            "options": dict(self.options),
        }
        if self.status is ScanStatus.FAILED:
            out["error"] = self.error
            return out
        out["pages_scanned"] = len(self.pages)
        out["schemas_found"] = self.schemas_found
        out["skipped_urls"] = list(self.skipped_urls)
        out["pages"] = [p.to_dict() for p in self.pages]
        out["analysis"] = self.analysis.to_dict() if self.analysis else None
        return out


__all__ = [
    "ScanType",
    "ScanStatus",
    "HealthStatus",
    "SchemaObject",
    "ConsistencyIssue",
    "IdFix",
    "FetchedPage",
    "PageResult",
    "HealthReport",
    "ScanProgress",
    "ScanRecord",
    "utcnow",
]

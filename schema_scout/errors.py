# schema_scout/errors.py
"""
Exception hierarchy for SchemaScout.

* :class:`MalformedPayload` – one JSON-LD script is not valid JSON; the
  extractor records it and moves on, it never leaves the page.
* :class:`FetchFailure` – navigation error, timeout or non-2xx response for a
  single URL. Fatal for a single-page analysis and for the crawl seed, a
  skipped URL everywhere else.
* :class:`InvalidInput` – bad URL, options or scan id at the public boundary,
  raised before any work starts.
"""
from __future__ import annotations

from typing import Optional


class SchemaScoutError(Exception):
    """Base class for all project errors."""


class MalformedPayload(SchemaScoutError):
    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Invalid JSON-LD in script {index}: {reason}")
        self.index = index
        self.reason = reason


class FetchFailure(SchemaScoutError):
    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        prefix = f"HTTP {status}" if status is not None else "Fetch failed"
        super().__init__(f"{prefix}: {reason} ({url})")
        self.url = url
        self.reason = reason
        self.status = status


class InvalidInput(SchemaScoutError, ValueError):
    """Rejected request: malformed URL, options outside limits, blocked domain."""


class ScanNotFound(InvalidInput, KeyError):
    def __init__(self, scan_id: str) -> None:
        super().__init__(f"Scan not found: {scan_id}")
        self.scan_id = scan_id

    def __str__(self) -> str:
        return f"Scan not found: {self.scan_id}"


__all__ = ["SchemaScoutError", "MalformedPayload", "FetchFailure", "InvalidInput", "ScanNotFound"]

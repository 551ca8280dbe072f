# schema_scout/store.py
"""
Key-value store of :class:`ScanRecord` objects.

Records live in memory for the engine's lifetime. When a directory is
configured, each record is written once as ``<scan_id>.json`` on reaching a
terminal state; :meth:`ScanStore.load` serves a record from memory or, for
scans of an earlier process, from that file.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from schema_scout.errors import ScanNotFound
from schema_scout.logger import get_logger
from schema_scout.models import ScanRecord

__all__ = ["ScanStore"]

logger = get_logger("store")

_SCAN_ID = re.compile(r"[A-Za-z0-9_-]+")


class ScanStore:
    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory) if directory else None
        self._records: Dict[str, ScanRecord] = {}

    def __contains__(self, scan_id: object) -> bool:
        return scan_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: ScanRecord) -> ScanRecord:
        self._records[record.scan_id] = record
        return record

    def get(self, scan_id: str) -> ScanRecord:
        try:
            return self._records[scan_id]
        except KeyError:
            raise ScanNotFound(scan_id) from None

    def list(self) -> List[ScanRecord]:
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)

    def _path(self, scan_id: str) -> Optional[Path]:
        if self.directory is None:
            return None
        return self.directory / f"{scan_id}.json"

    def persist(self, record: ScanRecord) -> Optional[Path]:
        """Write a terminal record to disk. Non-terminal records are refused."""
        if not record.status.is_terminal:
            raise RuntimeError(f"Scan {record.scan_id} is still {record.status.value}")
        path = self._path(record.scan_id)
        if path is None:
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, ensure_ascii=False, indent=2)
        logger.debug("Saved scan %s to %s", record.scan_id, path)
        return path

    def load(self, scan_id: str) -> Dict[str, Any]:
        """Serialized record: the live one if present, the saved file otherwise."""
        record = self._records.get(scan_id)
        if record is not None:
            return record.to_dict()
        path = self._path(scan_id) if _SCAN_ID.fullmatch(scan_id) else None
        if path is None or not path.is_file():
            raise ScanNotFound(scan_id)
        with path.open(encoding="utf-8") as f:
            return json.load(f)

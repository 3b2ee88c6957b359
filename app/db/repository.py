"""
Report persistence interface.

Services depend on ReportRepository only; the backend is chosen in
get_report_repository() from settings.STORAGE_BACKEND.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
import threading
import logging

from app.models.report import BoundingBox, Report, ReportStatus, as_utc

logger = logging.getLogger(__name__)


class ReportRepository(ABC):
    """Create/read/update/delete of Report by id plus a filtered range read"""

    @abstractmethod
    def create(self, report: Report) -> Report:
        """Persist a new report and return the stored copy"""

    @abstractmethod
    def get(self, report_id: str) -> Optional[Report]:
        """Return the report, or None if no such id"""

    @abstractmethod
    def update_status(self, report_id: str, status: ReportStatus) -> Optional[Report]:
        """Replace only the status column; None if no such id"""

    @abstractmethod
    def delete(self, report_id: str) -> bool:
        """Remove permanently; False if no such id"""

    @abstractmethod
    def list_range(
        self,
        since: Optional[datetime] = None,
        bbox: Optional[BoundingBox] = None,
        limit: Optional[int] = None,
    ) -> List[Report]:
        """Reports created at or after `since` and inside `bbox`, newest first"""


class InMemoryReportRepository(ReportRepository):
    """Dict-backed store for development and tests. Per-row operations are atomic."""

    def __init__(self):
        self._reports: Dict[str, Report] = {}
        self._lock = threading.Lock()

    def create(self, report: Report) -> Report:
        with self._lock:
            self._reports[report.id] = report.model_copy(deep=True)
            return report.model_copy(deep=True)

    def get(self, report_id: str) -> Optional[Report]:
        with self._lock:
            report = self._reports.get(report_id)
            return report.model_copy(deep=True) if report else None

    def update_status(self, report_id: str, status: ReportStatus) -> Optional[Report]:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None:
                return None
            updated = report.model_copy(update={"status": status}, deep=True)
            self._reports[report_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, report_id: str) -> bool:
        with self._lock:
            return self._reports.pop(report_id, None) is not None

    def list_range(
        self,
        since: Optional[datetime] = None,
        bbox: Optional[BoundingBox] = None,
        limit: Optional[int] = None,
    ) -> List[Report]:
        with self._lock:
            snapshot = [r.model_copy(deep=True) for r in self._reports.values()]

        if since is not None:
            since = as_utc(since)
            snapshot = [r for r in snapshot if as_utc(r.created_at) >= since]
        if bbox is not None:
            snapshot = [r for r in snapshot if bbox.contains(r.location.lat, r.location.lng)]

        snapshot.sort(key=lambda r: r.created_at, reverse=True)
        return snapshot[:limit] if limit is not None else snapshot

    def clear(self) -> None:
        with self._lock:
            self._reports.clear()


_repository: Optional[ReportRepository] = None


def get_report_repository() -> ReportRepository:
    """Get or create the configured repository instance"""
    global _repository

    if _repository is None:
        from app.core.config import settings

        if settings.STORAGE_BACKEND == "supabase":
            from app.db.supabase_repository import SupabaseReportRepository
            _repository = SupabaseReportRepository()
            logger.info("Using Supabase report repository")
        else:
            _repository = InMemoryReportRepository()
            logger.info("Using in-memory report repository")

    return _repository

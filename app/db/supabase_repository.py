from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from supabase.client import Client

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.db.repository import ReportRepository
from app.db.supabase_client import get_supabase_service_client
from app.models.report import BoundingBox, Location, Report, ReportStatus

logger = logging.getLogger(__name__)


def _to_row(report: Report) -> Dict[str, Any]:
    return {
        "id": report.id,
        "title": report.title,
        "description": report.description,
        "category": report.category.value,
        "status": report.status.value,
        "auto_categorized": report.auto_categorized,
        "image_url": report.image_url,
        "lat": report.location.lat,
        "lng": report.location.lng,
        "created_at": report.created_at.isoformat(),
        "classification_confidence": report.classification_confidence,
        "classification_reason": report.classification_reason,
        "classification_provider": (
            report.classification_provider.value if report.classification_provider else None
        ),
    }


def _from_row(row: Dict[str, Any]) -> Report:
    data = dict(row)
    data["location"] = Location(lat=float(data.pop("lat")), lng=float(data.pop("lng")))
    return Report(**data)


class SupabaseReportRepository(ReportRepository):
    """Reports table in Supabase (PostgREST). Every failure surfaces as PersistenceError."""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self.client = client or get_supabase_service_client()
        self.table_name = table or settings.SUPABASE_REPORTS_TABLE

    def _table(self):
        if not self.client:
            raise PersistenceError("Supabase service client not available")
        return self.client.table(self.table_name)

    def create(self, report: Report) -> Report:
        try:
            result = self._table().insert(_to_row(report)).execute()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Error creating report: {e}")
            raise PersistenceError("Failed to create report") from e

        if not result.data:
            raise PersistenceError("Failed to create report")
        return _from_row(result.data[0])

    def get(self, report_id: str) -> Optional[Report]:
        try:
            result = self._table().select("*").eq("id", report_id).execute()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Error getting report by ID {report_id}: {e}")
            raise PersistenceError("Failed to read report") from e

        return _from_row(result.data[0]) if result.data else None

    def update_status(self, report_id: str, status: ReportStatus) -> Optional[Report]:
        try:
            result = self._table().update({"status": status.value}).eq("id", report_id).execute()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Error updating report status {report_id}: {e}")
            raise PersistenceError("Failed to update report status") from e

        return _from_row(result.data[0]) if result.data else None

    def delete(self, report_id: str) -> bool:
        try:
            result = self._table().delete().eq("id", report_id).execute()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Error deleting report {report_id}: {e}")
            raise PersistenceError("Failed to delete report") from e

        return bool(result.data)

    def list_range(
        self,
        since: Optional[datetime] = None,
        bbox: Optional[BoundingBox] = None,
        limit: Optional[int] = None,
    ) -> List[Report]:
        try:
            query = self._table().select("*")

            if since is not None:
                query = query.gte("created_at", since.isoformat())
            if bbox is not None:
                query = (
                    query.gte("lng", bbox.min_lng)
                    .lte("lng", bbox.max_lng)
                    .gte("lat", bbox.min_lat)
                    .lte("lat", bbox.max_lat)
                )

            query = query.order("created_at", desc=True)
            if limit is not None:
                query = query.limit(limit)

            result = query.execute()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Error listing reports: {e}")
            raise PersistenceError("Failed to read reports") from e

        return [_from_row(row) for row in result.data] if result.data else []

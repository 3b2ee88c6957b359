from typing import List, Optional
from datetime import datetime, timezone
import math
import logging

from app.core.exceptions import InvalidStatusError, NotFoundError, ValidationError
from app.core.security import generate_random_string
from app.core.config import settings
from app.db.repository import ReportRepository, get_report_repository
from app.models.report import (
    CategorizationMode,
    ClassificationResult,
    Location,
    Report,
    ReportCreate,
    ReportFilter,
    ReportStatus,
)
from app.services.ai_service import ClassificationPipeline, classification_pipeline
from app.services import spatial_service

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Issue report"


def parse_status(value) -> ReportStatus:
    """
    Raises:
        InvalidStatusError: value is not open, in_progress or resolved
    """
    try:
        return ReportStatus(value)
    except ValueError:
        raise InvalidStatusError(
            f"Invalid status: {value}. Must be one of {[s.value for s in ReportStatus]}"
        )


def needs_classification(data: ReportCreate) -> bool:
    """Auto mode always classifies; manual mode only when no category was given"""
    return data.mode == CategorizationMode.AUTO or data.category is None


def build_report(
    data: ReportCreate,
    classification: Optional[ClassificationResult] = None,
    title_default: Optional[str] = DEFAULT_TITLE,
    report_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Report:
    """
    Construct a new Report. Status is always open.

    A manual category wins over the classification, which is then only
    logged and the report carries no confidence or reason.

    Raises:
        ValidationError: Non-finite or out-of-range coordinates, both title
            and description empty without a title default, or no category
    """
    if not (math.isfinite(data.lat) and math.isfinite(data.lng)):
        raise ValidationError("Valid lat and lng are required")
    if not (-90 <= data.lat <= 90 and -180 <= data.lng <= 180):
        raise ValidationError("Latitude must be within [-90, 90] and longitude within [-180, 180]")

    title = (data.title or "").strip()
    description = (data.description or "").strip()
    if not title:
        if not description and not title_default:
            raise ValidationError("Title or description is required")
        title = title_default or ""

    manual = data.mode == CategorizationMode.MANUAL and data.category is not None
    if manual:
        if classification is not None:
            logger.info(
                f"Manual category {data.category.value} kept over classifier suggestion "
                f"{classification.category.value} ({classification.confidence:.2f})"
            )
        category = data.category
    elif classification is not None:
        category = classification.category
    else:
        raise ValidationError("Category is required when no classification is available")

    return Report(
        id=report_id or generate_random_string(12),
        title=title,
        description=description,
        category=category,
        status=ReportStatus.OPEN,
        auto_categorized=not manual,
        location=Location(lat=data.lat, lng=data.lng),
        image_url=data.image_url,
        created_at=created_at or datetime.now(timezone.utc),
        classification_confidence=None if manual else classification.confidence,
        classification_reason=None if manual else classification.reason,
        classification_provider=None if manual else classification.provider,
    )


def apply_status(report: Report, new_status) -> Report:
    """Copy of report with only the status replaced. Any state may move to any other."""
    return report.model_copy(update={"status": parse_status(new_status)})


class ReportService:
    """Report lifecycle over an injected repository"""

    def __init__(
        self,
        repository: Optional[ReportRepository] = None,
        pipeline: Optional[ClassificationPipeline] = None,
    ):
        self.repository = repository or get_report_repository()
        self.pipeline = pipeline or classification_pipeline

    async def create_report(
        self,
        data: ReportCreate,
        image_data: Optional[bytes] = None,
        filename: str = "image.jpg",
    ) -> Report:
        """Classify when needed, build and persist a new open report"""
        classification = None
        if needs_classification(data):
            classification = await self.pipeline.classify(
                image=image_data,
                title=data.title,
                description=data.description,
                filename=filename,
            )

        report = build_report(data, classification)
        saved = self.repository.create(report)
        logger.info(
            f"Report created: {saved.id} category={saved.category.value} "
            f"auto={saved.auto_categorized}"
        )
        return saved

    def get_report(self, report_id: str) -> Report:
        report = self.repository.get(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    def set_status(self, report_id: str, new_status) -> Report:
        """
        Replace the report's status unconditionally. Last write wins.

        Raises:
            InvalidStatusError: new_status outside the enumeration
            NotFoundError: no such report
        """
        status = parse_status(new_status)
        updated = self.repository.update_status(report_id, status)
        if updated is None:
            raise NotFoundError(f"Report {report_id} not found")
        logger.info(f"Report {report_id} status set to {status.value}")
        return updated

    def delete_report(self, report_id: str) -> None:
        """Permanent removal"""
        if not self.repository.delete(report_id):
            raise NotFoundError(f"Report {report_id} not found")
        logger.info(f"Report {report_id} deleted")

    def snapshot(self, criteria: ReportFilter, limit: Optional[int] = None) -> List[Report]:
        """One read from storage narrowed by time window and bbox, newest first"""
        return self.repository.list_range(
            since=spatial_service.window_start(criteria.since_days),
            bbox=criteria.bbox,
            limit=limit,
        )

    def list_reports(self, criteria: ReportFilter) -> List[Report]:
        reports = spatial_service.filter_reports(self.snapshot(criteria), criteria)
        return reports[:criteria.limit]

    def heatmap_reports(self, criteria: ReportFilter) -> List[Report]:
        reports = spatial_service.filter_reports(
            self.snapshot(criteria, limit=settings.HEATMAP_LIMIT), criteria
        )
        return reports[:criteria.limit]


_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get or create the global report service"""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service

"""
Spatial aggregation over a report snapshot.

Every function here is pure: it reads the reports it is given and
returns new values, so recomputing on a fresh snapshot is always safe.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Union
import math

from geopy.distance import geodesic

from app.core.config import settings
from app.core.exceptions import InvalidBoundingBoxError, ValidationError
from app.models.report import (
    BoundingBox,
    HeatmapPoint,
    Location,
    Report,
    ReportCategory,
    ReportFilter,
    ReportStatus,
    ReportSummary,
    as_utc,
)

# Canonical heat intensity per status. Resolved is fixed at 0.2.
HEATMAP_WEIGHTS: Dict[ReportStatus, float] = {
    ReportStatus.OPEN: 0.95,
    ReportStatus.IN_PROGRESS: 0.65,
    ReportStatus.RESOLVED: 0.2,
}

MARKER_RADII: Dict[ReportStatus, int] = {
    ReportStatus.OPEN: 8,
    ReportStatus.IN_PROGRESS: 6,
    ReportStatus.RESOLVED: 4,
}

CATEGORY_COLORS: Dict[ReportCategory, str] = {
    ReportCategory.POTHOLE: "#f97316",  # orange
    ReportCategory.GARBAGE: "#22c55e",  # green
    ReportCategory.OTHER: "#64748b",  # slate
}


def heatmap_weight(status: ReportStatus) -> float:
    return HEATMAP_WEIGHTS[ReportStatus(status)]


def marker_radius(status: ReportStatus) -> int:
    return MARKER_RADII[ReportStatus(status)]


def category_color(category: ReportCategory) -> str:
    return CATEGORY_COLORS[ReportCategory(category)]


def _parse_count(value: Optional[Union[int, float, str]], default: int) -> float:
    """
    Whole-number query value, truncated toward zero.

    Missing, non-numeric, NaN and 0 give the default. Infinities are
    returned as is so the caller's clamp bounds them.
    """
    try:
        number = float(value) if value not in (None, "") else float(default)
    except (TypeError, ValueError):
        return float(default)
    if math.isnan(number):
        return float(default)
    if math.isfinite(number):
        number = float(math.trunc(number))
    return number if number != 0 else float(default)


def clamp_since_days(value: Optional[Union[int, float, str]]) -> int:
    """
    Parse a day window, default 30, clamped to [1, 365].

    "Infinity" clamps to 365 and "-Infinity" to 1; NaN means the default.
    """
    days = _parse_count(value, settings.DEFAULT_SINCE_DAYS)
    return int(max(1, min(settings.MAX_SINCE_DAYS, days)))


def clamp_limit(value: Optional[Union[int, str]], maximum: Optional[int] = None) -> int:
    """Parse a result limit, default 500, clamped to [1, maximum]"""
    maximum = maximum or settings.MAX_QUERY_LIMIT
    limit = _parse_count(value, settings.DEFAULT_QUERY_LIMIT)
    return int(max(1, min(maximum, limit)))


def parse_bbox(raw: Union[str, Sequence[float], None]) -> Optional[BoundingBox]:
    """
    Parse "minLng,minLat,maxLng,maxLat" (or a 4-sequence) into a BoundingBox.

    Raises:
        InvalidBoundingBoxError: Not exactly four finite numbers
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None

    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    if len(parts) != 4:
        raise InvalidBoundingBoxError("Invalid bbox: expected minLng,minLat,maxLng,maxLat")

    try:
        values = [float(str(p).strip()) for p in parts]
    except ValueError:
        raise InvalidBoundingBoxError("Invalid bbox: components must be numbers")

    if not all(math.isfinite(v) for v in values):
        raise InvalidBoundingBoxError("Invalid bbox: components must be finite")

    min_lng, min_lat, max_lng, max_lat = values
    return BoundingBox(min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat)


def parse_category(value: Optional[str]) -> Optional[ReportCategory]:
    """"all" or empty means no filter"""
    if value in (None, "", "all"):
        return None
    try:
        return ReportCategory(value)
    except ValueError:
        raise ValidationError(f"Invalid category: {value}")


def parse_status(value: Optional[str]) -> Optional[ReportStatus]:
    """"all" or empty means no filter"""
    if value in (None, "", "all"):
        return None
    try:
        return ReportStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


def build_filter(
    category: Optional[str] = None,
    status: Optional[str] = None,
    since_days: Optional[Union[int, str]] = None,
    search: Optional[str] = None,
    bbox: Optional[str] = None,
    limit: Optional[Union[int, str]] = None,
    max_limit: Optional[int] = None,
) -> ReportFilter:
    """Turn raw query parameters into a validated ReportFilter"""
    return ReportFilter(
        category=parse_category(category),
        status=parse_status(status),
        since_days=clamp_since_days(since_days),
        search=search.strip() if search and search.strip() else None,
        bbox=parse_bbox(bbox),
        limit=clamp_limit(limit, max_limit),
    )


def window_start(since_days: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=clamp_since_days(since_days))


def matches_filter(report: Report, criteria: ReportFilter, since: datetime) -> bool:
    if criteria.category is not None and report.category != criteria.category:
        return False
    if criteria.status is not None and report.status != criteria.status:
        return False
    if as_utc(report.created_at) < as_utc(since):
        return False
    if criteria.search:
        needle = criteria.search.lower()
        if needle not in (report.title or "").lower() and needle not in (report.description or "").lower():
            return False
    if criteria.bbox is not None and not criteria.bbox.contains(report.location.lat, report.location.lng):
        return False
    return True


def filter_reports(
    reports: Iterable[Report],
    criteria: Optional[ReportFilter] = None,
    now: Optional[datetime] = None,
) -> List[Report]:
    """Subset of reports matching every filter, input order preserved"""
    criteria = criteria or ReportFilter()
    since = window_start(criteria.since_days, now)
    return [r for r in reports if matches_filter(r, criteria, since)]


def heatmap_points(reports: Iterable[Report]) -> List[HeatmapPoint]:
    return [
        HeatmapPoint(
            id=r.id,
            lat=r.location.lat,
            lng=r.location.lng,
            weight=heatmap_weight(r.status),
            radius=marker_radius(r.status),
            category=r.category,
            status=r.status,
            color=category_color(r.category),
            created_at=r.created_at,
        )
        for r in reports
    ]


def aggregate_by_category(reports: Iterable[Report]) -> Dict[str, int]:
    counts = {c.value: 0 for c in ReportCategory}
    for r in reports:
        counts[ReportCategory(r.category).value] += 1
    return counts


def aggregate_by_status(reports: Iterable[Report]) -> Dict[str, int]:
    counts = {s.value: 0 for s in ReportStatus}
    for r in reports:
        counts[ReportStatus(r.status).value] += 1
    return counts


def summarize(reports: Iterable[Report]) -> ReportSummary:
    snapshot = list(reports)
    return ReportSummary(
        total=len(snapshot),
        by_category=aggregate_by_category(snapshot),
        by_status=aggregate_by_status(snapshot),
    )


def reports_near(
    reports: Iterable[Report],
    location: Location,
    radius_meters: Optional[float] = None,
) -> List[Report]:
    """Reports within radius_meters (geodesic), closest first"""
    radius = radius_meters if radius_meters is not None else settings.NEARBY_RADIUS_METERS
    target = (location.lat, location.lng)

    nearby = []
    for r in reports:
        distance = geodesic(target, (r.location.lat, r.location.lng)).meters
        if distance <= radius:
            nearby.append((distance, r))

    nearby.sort(key=lambda pair: pair[0])
    return [r for _, r in nearby]

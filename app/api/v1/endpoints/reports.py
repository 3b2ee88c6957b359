from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status as http_status
from typing import Dict, Any, Optional
import math
import logging

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.db.redis_client import cache_service
from app.models.report import CategorizationMode, Location, ReportCategory, ReportCreate
from app.services import spatial_service
from app.services.image_service import ImageService, get_image_service
from app.services.report_service import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _parse_coordinate(value: Optional[str]) -> float:
    try:
        number = float(value) if value is not None else math.nan
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number):
        raise ValidationError("Valid lat and lng are required")
    return number


def _parse_mode(value: Optional[str]) -> CategorizationMode:
    try:
        return CategorizationMode(value or CategorizationMode.AUTO.value)
    except ValueError:
        raise ValidationError("Mode must be 'auto' or 'manual'")


def _parse_manual_category(mode: CategorizationMode, value: Optional[str]) -> Optional[ReportCategory]:
    if mode != CategorizationMode.MANUAL:
        return None
    try:
        return ReportCategory(value)
    except ValueError:
        raise ValidationError("Invalid category")


@router.post("", status_code=http_status.HTTP_201_CREATED, response_model=Dict[str, Any])
async def create_report(
    image: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    lat: Optional[str] = Form(None),
    lng: Optional[str] = Form(None),
    mode: Optional[str] = Form("auto"),
    category: Optional[str] = Form(None),
    service: ReportService = Depends(get_report_service),
    images: ImageService = Depends(get_image_service),
):
    """Submit a geotagged report with a photo; the category is classified unless chosen manually"""
    if image is None:
        raise ValidationError("Image is required")

    latitude = _parse_coordinate(lat)
    longitude = _parse_coordinate(lng)
    categorization_mode = _parse_mode(mode)
    manual_category = _parse_manual_category(categorization_mode, category)

    image_data = await image.read()
    logger.info(f"Read image data: {len(image_data)} bytes")
    images.validate_image(image_data, image.content_type)

    image_url = images.upload(image_data, image.filename)

    try:
        report = await service.create_report(
            ReportCreate(
                title=title,
                description=description,
                lat=latitude,
                lng=longitude,
                mode=categorization_mode,
                category=manual_category,
                image_url=image_url,
            ),
            image_data=image_data,
            filename=image.filename or "image.jpg",
        )
    except Exception:
        logger.error(f"Report creation failed, cleaning up uploaded image: {image_url}")
        images.delete(image_url)
        raise

    await cache_service.invalidate()

    return {
        "status": "success",
        "message": "Issue reported successfully",
        "data": {"report": report.to_public()}
    }


@router.get("", response_model=Dict[str, Any])
async def list_reports(
    category: Optional[str] = None,
    status: Optional[str] = None,
    since_days: Optional[str] = Query(None, alias="sinceDays"),
    search: Optional[str] = None,
    limit: Optional[str] = None,
    bbox: Optional[str] = None,
    service: ReportService = Depends(get_report_service),
):
    """List reports filtered by category, status, time window, text and bounding box"""
    criteria = spatial_service.build_filter(category, status, since_days, search, bbox, limit)

    cache_key = cache_service.key("list", criteria.model_dump_json())
    cached_result = await cache_service.get(cache_key)
    if cached_result:
        return cached_result

    reports = service.list_reports(criteria)

    response_data = {
        "status": "success",
        "message": "Reports retrieved successfully",
        "data": {
            "reports": [r.to_public() for r in reports],
            "pagination": {
                "returned": len(reports),
                "limit": criteria.limit
            }
        }
    }

    await cache_service.set(cache_key, response_data, settings.CACHE_TTL_REPORTS)
    return response_data


@router.get("/heatmap", response_model=Dict[str, Any])
async def get_heatmap(
    category: Optional[str] = None,
    status: Optional[str] = None,
    since_days: Optional[str] = Query(None, alias="sinceDays"),
    search: Optional[str] = None,
    limit: Optional[str] = None,
    bbox: Optional[str] = None,
    service: ReportService = Depends(get_report_service),
):
    """Severity-weighted points for the admin heatmap"""
    criteria = spatial_service.build_filter(
        category, status, since_days, search, bbox,
        limit or settings.HEATMAP_LIMIT,
        max_limit=settings.HEATMAP_LIMIT,
    )

    cache_key = cache_service.key("heatmap", criteria.model_dump_json())
    cached_result = await cache_service.get(cache_key)
    if cached_result:
        return cached_result

    reports = service.heatmap_reports(criteria)
    points = spatial_service.heatmap_points(reports)

    response_data = {
        "status": "success",
        "message": "Heatmap retrieved successfully",
        "data": {
            "points": [p.model_dump(mode="json") for p in points],
            "summary": spatial_service.summarize(reports).model_dump()
        }
    }

    await cache_service.set(cache_key, response_data, settings.CACHE_TTL_HEATMAP)
    return response_data


@router.get("/summary", response_model=Dict[str, Any])
async def get_summary(
    category: Optional[str] = None,
    status: Optional[str] = None,
    since_days: Optional[str] = Query(None, alias="sinceDays"),
    search: Optional[str] = None,
    bbox: Optional[str] = None,
    service: ReportService = Depends(get_report_service),
):
    """Counts by category and by status over the filtered reports"""
    criteria = spatial_service.build_filter(
        category, status, since_days, search, bbox,
        settings.HEATMAP_LIMIT,
        max_limit=settings.HEATMAP_LIMIT,
    )

    cache_key = cache_service.key("summary", criteria.model_dump_json())
    cached_result = await cache_service.get(cache_key)
    if cached_result:
        return cached_result

    summary = spatial_service.summarize(service.heatmap_reports(criteria))

    response_data = {
        "status": "success",
        "message": "Summary retrieved successfully",
        "data": summary.model_dump()
    }

    await cache_service.set(cache_key, response_data, settings.CACHE_TTL_REPORTS_SUMMARY)
    return response_data


@router.get("/nearby", response_model=Dict[str, Any])
async def get_nearby_reports(
    lat: str,
    lng: str,
    radius: Optional[float] = None,
    since_days: Optional[str] = Query(None, alias="sinceDays"),
    service: ReportService = Depends(get_report_service),
):
    """Reports within `radius` meters of a point, closest first"""
    location = Location(lat=_parse_coordinate(lat), lng=_parse_coordinate(lng))
    if radius is not None and (not math.isfinite(radius) or radius <= 0):
        raise ValidationError("Radius must be a positive number of meters")

    criteria = spatial_service.build_filter(since_days=since_days, limit=settings.HEATMAP_LIMIT,
                                            max_limit=settings.HEATMAP_LIMIT)
    nearby = spatial_service.reports_near(service.heatmap_reports(criteria), location, radius)

    return {
        "status": "success",
        "message": "Nearby reports retrieved successfully",
        "data": {
            "reports": [r.to_public() for r in nearby],
            "radius_meters": radius if radius is not None else settings.NEARBY_RADIUS_METERS
        }
    }


@router.get("/{report_id}", response_model=Dict[str, Any])
async def get_report(report_id: str, service: ReportService = Depends(get_report_service)):
    """Get a single report by id"""
    report = service.get_report(report_id)
    return {
        "status": "success",
        "message": "Report retrieved successfully",
        "data": {"report": report.to_public()}
    }

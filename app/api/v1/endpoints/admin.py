from fastapi import APIRouter, Depends, Response, status
from typing import Dict, Any
import logging

from app.api.auth.dependencies import get_current_admin
from app.db.redis_client import cache_service
from app.models.admin import Admin
from app.models.report import ReportStatusUpdate
from app.services.report_service import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.patch("/reports/{report_id}/status", response_model=Dict[str, Any])
async def update_report_status(
    report_id: str,
    update_data: ReportStatusUpdate,
    admin: Admin = Depends(get_current_admin),
    service: ReportService = Depends(get_report_service),
):
    """Move a report to any status (admin only)"""
    updated_report = service.set_status(report_id, update_data.status)
    logger.info(f"Admin {admin.email} set report {report_id} to {updated_report.status.value}")

    await cache_service.invalidate()

    return {
        "status": "success",
        "message": "Report status updated successfully",
        "data": {"report": updated_report.to_public()}
    }

@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    admin: Admin = Depends(get_current_admin),
    service: ReportService = Depends(get_report_service),
):
    """Permanently delete a report (admin only)"""
    service.delete_report(report_id)
    logger.info(f"Admin {admin.email} deleted report {report_id}")

    await cache_service.invalidate()

    return Response(status_code=status.HTTP_204_NO_CONTENT)

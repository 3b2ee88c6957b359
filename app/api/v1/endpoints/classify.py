from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Dict, Any, Optional
import logging

from app.services.report_service import ReportService, get_report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classify", tags=["Classification"])


@router.post("", response_model=Dict[str, Any])
async def classify_issue(
    image: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    service: ReportService = Depends(get_report_service),
):
    """Preview the category a submission would receive. Never fails."""
    image_data = await image.read() if image is not None else None

    result = await service.pipeline.classify(
        image=image_data or None,
        title=title,
        description=description,
        filename=(image.filename if image is not None and image.filename else "image.jpg"),
    )

    return {
        "status": "success",
        "message": "Classification completed",
        "data": result.model_dump(mode="json")
    }

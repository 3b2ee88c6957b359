from .admin import Admin, AdminLogin
from .report import (
    BoundingBox,
    CategorizationMode,
    ClassificationProvider,
    ClassificationResult,
    HeatmapPoint,
    Location,
    Report,
    ReportCategory,
    ReportCreate,
    ReportFilter,
    ReportStatus,
    ReportStatusUpdate,
    ReportSummary,
)

__all__ = [
    "Admin",
    "AdminLogin",
    "BoundingBox",
    "CategorizationMode",
    "ClassificationProvider",
    "ClassificationResult",
    "HeatmapPoint",
    "Location",
    "Report",
    "ReportCategory",
    "ReportCreate",
    "ReportFilter",
    "ReportStatus",
    "ReportStatusUpdate",
    "ReportSummary",
]

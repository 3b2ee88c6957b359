from pydantic import BaseModel, Field, field_validator
from typing import Dict, Optional
from datetime import datetime, timezone
from enum import Enum
import math


class ReportCategory(str, Enum):
    POTHOLE = "pothole"
    GARBAGE = "garbage"
    OTHER = "other"


class ReportStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class CategorizationMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class ClassificationProvider(str, Enum):
    REMOTE = "remote"
    KEYWORD = "keyword"
    DEFAULT = "default"


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC"""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")

    @field_validator("lat", "lng")
    @classmethod
    def must_be_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Coordinates must be finite numbers")
        return v


class ClassificationResult(BaseModel):
    """Outcome of one pass through the classification pipeline. Not persisted."""
    category: ReportCategory
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""
    provider: ClassificationProvider


class ReportCreate(BaseModel):
    title: str = Field("", max_length=200)
    description: str = Field("", max_length=2000)
    lat: float
    lng: float
    mode: CategorizationMode = CategorizationMode.AUTO
    category: Optional[ReportCategory] = None
    image_url: Optional[str] = None


class ReportStatusUpdate(BaseModel):
    status: str


class Report(BaseModel):
    id: str
    title: str
    description: str = ""
    category: ReportCategory
    status: ReportStatus = ReportStatus.OPEN
    auto_categorized: bool = False
    location: Location
    image_url: Optional[str] = None
    created_at: datetime

    # Audit trail of the automatic decision, absent for manual categories
    classification_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    classification_reason: Optional[str] = None
    classification_provider: Optional[ClassificationProvider] = None

    class Config:
        from_attributes = True

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def to_public(self) -> dict:
        """Wire representation with the location flattened to lat/lng"""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "status": self.status.value,
            "auto_categorized": self.auto_categorized,
            "image_url": self.image_url,
            "lat": self.location.lat,
            "lng": self.location.lng,
            "created_at": self.created_at.isoformat(),
        }
        if self.auto_categorized:
            data["classification"] = {
                "confidence": self.classification_confidence,
                "reason": self.classification_reason,
                "provider": self.classification_provider.value if self.classification_provider else None,
            }
        return data


class BoundingBox(BaseModel):
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def contains(self, lat: float, lng: float) -> bool:
        """Closed-rectangle membership, boundary inclusive"""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


class ReportFilter(BaseModel):
    """Query filters. None for category or status means "all"."""
    category: Optional[ReportCategory] = None
    status: Optional[ReportStatus] = None
    since_days: int = 30
    search: Optional[str] = None
    bbox: Optional[BoundingBox] = None
    limit: int = 500


class HeatmapPoint(BaseModel):
    id: str
    lat: float
    lng: float
    weight: float
    radius: int
    category: ReportCategory
    status: ReportStatus
    color: str
    created_at: datetime


class ReportSummary(BaseModel):
    total: int
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)


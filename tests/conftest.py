import io
import os
from datetime import datetime, timedelta, timezone

# Settings are read at import time; pin a hermetic environment first
os.environ["CACHE_ENABLED"] = "false"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD_PLAIN"] = "s3cret-pass"
os.environ.pop("ML_API_URL", None)

import pytest
from PIL import Image

from app.ai.remote_classifier import RemoteClassifierClient
from app.core.security import create_access_token
from app.db.repository import InMemoryReportRepository
from app.models.report import Location, Report, ReportCategory, ReportStatus
from app.services.ai_service import ClassificationPipeline
from app.services.report_service import ReportService


@pytest.fixture
def jpeg_bytes():
    img = Image.new("RGB", (64, 64), color="gray")
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def repository():
    return InMemoryReportRepository()


@pytest.fixture
def pipeline():
    """Pipeline with the remote tier disabled"""
    return ClassificationPipeline.default(remote_client=RemoteClassifierClient(url=""))


@pytest.fixture
def service(repository, pipeline):
    return ReportService(repository=repository, pipeline=pipeline)


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def make_report(now):
    counter = {"n": 0}

    def _make(
        title="Report",
        description="",
        category=ReportCategory.OTHER,
        status=ReportStatus.OPEN,
        lat=28.6,
        lng=77.2,
        age_days=0.0,
        report_id=None,
    ):
        counter["n"] += 1
        return Report(
            id=report_id or f"RPT-{counter['n']:03d}",
            title=title,
            description=description,
            category=category,
            status=status,
            auto_categorized=False,
            location=Location(lat=lat, lng=lng),
            created_at=now - timedelta(days=age_days),
        )

    return _make


@pytest.fixture
def admin_token():
    return create_access_token({"sub": "admin@example.com", "role": "admin"})


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}

from .repository import ReportRepository, InMemoryReportRepository, get_report_repository
from .redis_client import cache_service, close_redis_client

__all__ = [
    "ReportRepository",
    "InMemoryReportRepository",
    "get_report_repository",
    "cache_service",
    "close_redis_client"
]

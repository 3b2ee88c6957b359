from supabase.client import create_client, Client
from app.core.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Global Supabase client instance
_supabase_service_client: Optional[Client] = None


def _is_configured(key: str) -> bool:
    return (
        settings.SUPABASE_URL.startswith("https://")
        and "supabase.co" in settings.SUPABASE_URL
        and len(key) > 50
    )


def get_supabase_service_client() -> Optional[Client]:
    """Get or create a Supabase client with the service key (bypasses RLS)"""
    global _supabase_service_client

    if _supabase_service_client is None:
        try:
            if _is_configured(settings.SUPABASE_SERVICE_KEY):
                _supabase_service_client = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase service client initialized successfully")
            else:
                logger.warning("Supabase service configuration incomplete")
                return None
        except Exception as e:
            logger.error(f"Failed to initialize Supabase service client: {e}")
            return None

    return _supabase_service_client

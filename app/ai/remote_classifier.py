"""
Client for the external image+text scoring service.

Every failure mode (timeout, non-2xx, transport error, malformed body)
is a soft failure: logged and returned as None, never raised.
"""

import asyncio
import logging
import math
import time
from typing import Optional

import requests

from app.core.config import settings
from app.models.report import ClassificationProvider, ClassificationResult, ReportCategory

logger = logging.getLogger(__name__)


class Deadline:
    """Absolute point in monotonic time after which remote work is abandoned"""

    def __init__(self, expires_at: float):
        self.expires_at = expires_at

    @classmethod
    def after_ms(cls, timeout_ms: float) -> "Deadline":
        return cls(time.monotonic() + max(0.0, timeout_ms) / 1000.0)

    def remaining(self) -> float:
        """Seconds left, never negative"""
        return max(0.0, self.expires_at - time.monotonic())


class RemoteClassifierClient:
    """Posts multipart {image, title, description} and expects {category, confidence}"""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url if url is not None else settings.ML_API_URL
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.ML_TIMEOUT_MS
        self.session = session or requests.Session()

    def is_enabled(self) -> bool:
        return bool(self.url)

    async def classify(
        self,
        image: bytes,
        title: str = "",
        description: str = "",
        deadline: Optional[Deadline] = None,
        filename: str = "image.jpg",
    ) -> Optional[ClassificationResult]:
        """
        Score an image with the remote service within the deadline.

        Args:
            image: Raw image bytes
            title: Report title sent as context
            description: Report description sent as context
            deadline: Shared budget for this call; defaults to the configured timeout
            filename: Name used for the multipart file part

        Returns:
            ClassificationResult with provider=remote, or None on any soft failure
        """
        if not self.is_enabled():
            return None

        own_deadline = Deadline.after_ms(self.timeout_ms)
        if deadline is not None and deadline.expires_at < own_deadline.expires_at:
            own_deadline = deadline

        budget = own_deadline.remaining()
        if budget <= 0.0:
            logger.warning("Remote classifier skipped: deadline already expired")
            return None

        try:
            payload = await asyncio.wait_for(
                asyncio.to_thread(self._post, image, title, description, filename, budget),
                timeout=budget,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Remote classifier timed out after {budget * 1000:.0f} ms")
            return None
        except requests.RequestException as e:
            logger.warning(f"Remote classifier transport error: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Remote classifier returned malformed JSON: {e}")
            return None

        return self._parse(payload)

    def _post(self, image: bytes, title: str, description: str, filename: str, timeout: float) -> Optional[dict]:
        response = self.session.post(
            self.url,
            files={"image": (filename, image, "application/octet-stream")},
            data={"title": title or "", "description": description or ""},
            timeout=timeout,
        )
        if not response.ok:
            logger.warning(f"Remote classifier non-success {response.status_code}: {response.text[:200]}")
            return None
        return response.json()

    def _parse(self, payload) -> Optional[ClassificationResult]:
        if not isinstance(payload, dict) or not payload.get("category"):
            if payload is not None:
                logger.warning(f"Remote classifier response missing category: {payload}")
            return None

        try:
            category = ReportCategory(str(payload["category"]).lower())
        except ValueError:
            logger.warning(f"Remote classifier returned unknown category: {payload['category']}")
            return None

        try:
            confidence = float(payload.get("confidence", 0.7))
        except (TypeError, ValueError):
            logger.warning(f"Remote classifier returned non-numeric confidence: {payload.get('confidence')}")
            return None

        if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
            logger.warning(f"Remote classifier confidence out of range: {confidence}")
            return None

        return ClassificationResult(
            category=category,
            confidence=confidence,
            reason=str(payload.get("reason") or "Remote image classifier"),
            provider=ClassificationProvider.REMOTE,
        )

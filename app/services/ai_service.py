import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from app.ai.keyword_classifier import KeywordClassifier, keyword_classifier
from app.ai.remote_classifier import Deadline, RemoteClassifierClient
from app.core.config import settings
from app.models.report import ClassificationProvider, ClassificationResult, ReportCategory

logger = logging.getLogger(__name__)


@dataclass
class ClassificationRequest:
    image: Optional[bytes] = None
    title: str = ""
    description: str = ""
    filename: str = "image.jpg"


Strategy = Callable[[ClassificationRequest, Deadline], Awaitable[Optional[ClassificationResult]]]


@dataclass
class ClassifierTier:
    """
    One entry of the fallback chain.

    A result at or above accept_threshold ends the chain. A weaker result
    is remembered as a fallback only when keep_as_fallback is set.
    """
    name: str
    strategy: Strategy
    priority: int
    accept_threshold: float
    keep_as_fallback: bool = False


DEFAULT_RESULT = ClassificationResult(
    category=ReportCategory.OTHER,
    confidence=0.4,
    reason="no signal found",
    provider=ClassificationProvider.DEFAULT,
)


def remote_strategy(client: RemoteClassifierClient) -> Strategy:
    async def run(request: ClassificationRequest, deadline: Deadline) -> Optional[ClassificationResult]:
        if not request.image or not client.is_enabled():
            return None
        return await client.classify(
            request.image,
            title=request.title,
            description=request.description,
            deadline=deadline,
            filename=request.filename,
        )
    return run


def keyword_strategy(classifier: KeywordClassifier) -> Strategy:
    async def run(request: ClassificationRequest, deadline: Deadline) -> Optional[ClassificationResult]:
        return classifier.classify(request.title, request.description)
    return run


class ClassificationPipeline:
    """Ordered, confidence-gated classifier chain. classify() never raises."""

    def __init__(self, tiers: Optional[List[ClassifierTier]] = None, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.ML_TIMEOUT_MS
        self.tiers: List[ClassifierTier] = []
        for tier in tiers or []:
            self.add_tier(tier)

    @classmethod
    def default(
        cls,
        remote_client: Optional[RemoteClassifierClient] = None,
        classifier: Optional[KeywordClassifier] = None,
    ) -> "ClassificationPipeline":
        remote_client = remote_client or RemoteClassifierClient()
        return cls(
            tiers=[
                ClassifierTier(
                    name="remote",
                    strategy=remote_strategy(remote_client),
                    priority=10,
                    accept_threshold=settings.REMOTE_ACCEPT_THRESHOLD,
                ),
                ClassifierTier(
                    name="keyword",
                    strategy=keyword_strategy(classifier or keyword_classifier),
                    priority=20,
                    accept_threshold=settings.KEYWORD_ACCEPT_THRESHOLD,
                    keep_as_fallback=True,
                ),
            ],
            timeout_ms=remote_client.timeout_ms,
        )

    def add_tier(self, tier: ClassifierTier) -> None:
        self.tiers.append(tier)
        self.tiers.sort(key=lambda t: t.priority)

    async def classify(
        self,
        image: Optional[bytes] = None,
        title: str = "",
        description: str = "",
        timeout_ms: Optional[int] = None,
        filename: str = "image.jpg",
    ) -> ClassificationResult:
        """
        Run the tiers in priority order and return exactly one result.

        Args:
            image: Optional raw image bytes for image-aware tiers
            title: Report title
            description: Report description
            timeout_ms: Budget for suspending tiers, defaults to the configured timeout
            filename: Original upload name, forwarded to the remote tier

        Returns:
            ClassificationResult, falling back to category "other" at 0.4
        """
        request = ClassificationRequest(
            image=image,
            title=title or "",
            description=description or "",
            filename=filename,
        )
        deadline = Deadline.after_ms(timeout_ms if timeout_ms is not None else self.timeout_ms)
        fallback: Optional[ClassificationResult] = None

        for tier in self.tiers:
            try:
                result = await tier.strategy(request, deadline)
            except Exception as e:
                logger.warning(f"Classifier tier '{tier.name}' failed: {e}")
                continue

            if result is None:
                logger.debug(f"Classifier tier '{tier.name}' produced no signal")
                continue

            if result.confidence >= tier.accept_threshold:
                logger.info(
                    f"Classified as {result.category.value} by {tier.name} "
                    f"(confidence={result.confidence:.2f})"
                )
                return result

            logger.info(
                f"Tier '{tier.name}' below threshold: {result.category.value} "
                f"at {result.confidence:.2f} < {tier.accept_threshold:.2f}"
            )
            if tier.keep_as_fallback and (fallback is None or result.confidence > fallback.confidence):
                fallback = result

        if fallback is not None:
            logger.info(f"Using best available signal: {fallback.category.value}")
            return fallback

        logger.info("No classifier produced a signal, using default category")
        return DEFAULT_RESULT.model_copy()


# Global instance
classification_pipeline = ClassificationPipeline.default()

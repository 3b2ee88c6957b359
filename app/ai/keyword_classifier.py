import logging
from typing import List, Optional, Sequence, Tuple

from app.models.report import ClassificationProvider, ClassificationResult, ReportCategory

logger = logging.getLogger(__name__)

# Priority order matters: the first category with any match wins
DEFAULT_KEYWORDS: List[Tuple[ReportCategory, List[str]]] = [
    (ReportCategory.POTHOLE, [
        "pothole",
        "potholes",
        "crack",
        "cracked",
        "cracked road",
        "asphalt",
        "damaged road",
        "road damage",
        "broken road",
        "surface damage",
        "pavement",
        "bump",
        "hole in road",
        "road hole",
    ]),
    (ReportCategory.GARBAGE, [
        "garbage",
        "trash",
        "waste",
        "litter",
        "bin",
        "bin overflow",
        "overflow",
        "overflowing",
        "dump",
        "refuse",
        "rubbish",
        "debris",
    ]),
    (ReportCategory.OTHER, []),
]

BASE_CONFIDENCE = 0.7
PER_MATCH_BONUS = 0.1
MAX_CONFIDENCE = 0.95


def keyword_confidence(match_count: int) -> float:
    """min(0.95, 0.7 + 0.1 * matches), rounded so 1 match is exactly 0.8"""
    return round(min(MAX_CONFIDENCE, BASE_CONFIDENCE + PER_MATCH_BONUS * match_count), 2)


class KeywordClassifier:
    """Substring matcher over per-category keyword tables. Pure and deterministic."""

    def __init__(self, keywords: Optional[Sequence[Tuple[ReportCategory, Sequence[str]]]] = None):
        table = keywords if keywords is not None else DEFAULT_KEYWORDS
        self.keywords: List[Tuple[ReportCategory, List[str]]] = [
            (category, [kw.lower() for kw in words]) for category, words in table
        ]

    def classify(self, title: str = "", description: str = "") -> Optional[ClassificationResult]:
        text = f"{title or ''} {description or ''}".lower()
        for category, words in self.keywords:
            if not words:
                continue
            matches = [kw for kw in dict.fromkeys(words) if kw in text]
            if matches:
                confidence = keyword_confidence(len(matches))
                logger.debug(f"Keyword match: category={category.value}, matches={matches}, confidence={confidence}")
                return ClassificationResult(
                    category=category,
                    confidence=confidence,
                    reason=f"Matched keywords: {', '.join(matches)}",
                    provider=ClassificationProvider.KEYWORD,
                )
        return None


keyword_classifier = KeywordClassifier()

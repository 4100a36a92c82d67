"""Generic content-type classifier."""

from storydigest.core.rules import best_label
from storydigest.core.rules.tables import CONTENT_TYPE_RULES, CONTENT_TYPE_THRESHOLD
from storydigest.models.input import ContentType
from storydigest.utils.logger import get_logger
from storydigest.utils.text import word_count

logger = get_logger(__name__)


def classify_content(text: str, threshold: float = CONTENT_TYPE_THRESHOLD) -> tuple[ContentType, float]:
    """
    Classify text into a content category.

    Rule hits are weighted and normalized per 100 words; the best category
    at or above threshold wins, else UNKNOWN.

    Returns:
        (content type, score)
    """
    try:
        words = word_count(text)
        if not words:
            return ContentType.UNKNOWN, 0.0
        scores = CONTENT_TYPE_RULES.score(text, normalize_by=words)
        label, score = best_label(scores, threshold)
        if label is None:
            return ContentType.UNKNOWN, round(score, 2)
        return ContentType(label), round(score, 2)
    except Exception as e:
        logger.debug(f"Content classification failed, degrading to unknown: {e}")
        return ContentType.UNKNOWN, 0.0

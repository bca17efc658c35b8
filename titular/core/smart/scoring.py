"""Confidence scoring.

All confidence numbers the engine reports come from the two pure functions
in this module, so the rules can be tested on their own.
"""

from dataclasses import dataclass

# Strategy base confidences, highest first
STRATEGY_CONFIDENCE = {
    'structured-data': 0.9,
    'semantic-html': 0.7,
    'text-density': 0.5,
    'longest-content': 0.3,
}
RECIPE_BASE_CONFIDENCE = 0.5
VERIFIED_CONFIDENCE_FLOOR = 0.8
LONG_CONTENT_THRESHOLD = 200


@dataclass(frozen=True)
class FieldPresence:
    """Which fields an extraction found.

    Attributes:
        has_title: A title was extracted
        content_length: Length of the extracted content
        has_date: A date was extracted
        has_author: An author was extracted

    """

    has_title: bool = False
    content_length: int = 0
    has_date: bool = False
    has_author: bool = False

    @classmethod
    def of(cls, title: str | None, content: str | None, date: str | None = None, author: str | None = None):
        return cls(
            has_title=bool(title),
            content_length=len(content or ''),
            has_date=bool(date),
            has_author=bool(author),
        )


def _clamp(value: float) -> float:
    return max(0.0, min(value, 1.0))


def score_fields(presence: FieldPresence, base: float = RECIPE_BASE_CONFIDENCE) -> float:
    """Confidence of a selector-driven extraction.

    Starts at ``base`` and adds 0.2 for a title, 0.2 for content longer than
    200 characters, and 0.05 each for a date and an author.

    Returns:
        Confidence clamped to [0, 1].

    """
    score = base
    if presence.has_title:
        score += 0.2
    if presence.content_length > LONG_CONTENT_THRESHOLD:
        score += 0.2
    if presence.has_date:
        score += 0.05
    if presence.has_author:
        score += 0.05
    return round(_clamp(score), 4)


def recipe_confidence(success_count: int, usage_count: int, is_verified: bool = False) -> float:
    """Confidence of a recipe from its track record.

    ``0.5 + 0.5 * success_count / usage_count``, floored at 0.8 for verified
    recipes. Counters outside their valid range are clamped, so the result
    always lies in [0, 1] and never decreases as the success ratio grows.
    """
    usage = max(usage_count, 0)
    successes = min(max(success_count, 0), usage)
    ratio = successes / usage if usage else 0.0
    confidence = _clamp(RECIPE_BASE_CONFIDENCE + 0.5 * ratio)
    if is_verified:
        confidence = max(confidence, VERIFIED_CONFIDENCE_FLOOR)
    return round(confidence, 4)

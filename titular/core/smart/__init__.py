"""Recipe-free extraction: generic strategies and confidence scoring."""

from titular.core.smart.scoring import STRATEGY_CONFIDENCE, FieldPresence, recipe_confidence, score_fields
from titular.core.smart.scraper import SmartScraper
from titular.core.smart.strategies import (
    ExtractionStrategy,
    LongestContentStrategy,
    SemanticHtmlStrategy,
    StructuredDataStrategy,
    TextDensityStrategy,
    default_strategies,
)

__all__ = [
    'STRATEGY_CONFIDENCE',
    'ExtractionStrategy',
    'FieldPresence',
    'LongestContentStrategy',
    'SemanticHtmlStrategy',
    'SmartScraper',
    'StructuredDataStrategy',
    'TextDensityStrategy',
    'default_strategies',
    'recipe_confidence',
    'score_fields',
]

"""Pydantic models for recipes, selectors and results."""

from titular.models.selectors import AttributeSelector, Selector, TextSelector
from titular.models.recipe import ArticleSelectors, CleaningRule, ListingSelectors, SiteRecipe  # noqa: I001
from titular.models.results import (
    ContentMetadata,
    ExtractionResult,
    FetchResult,
    ListingError,
    ListingItem,
    ListingResult,
    OcrBlock,
    OcrResult,
    PaywallResult,
    RecipePage,
    RecipeStats,
    ResolvedRecipe,
    StrategyAttempt,
    TitleCandidate,
)

__all__ = [
    'ArticleSelectors',
    'AttributeSelector',
    'CleaningRule',
    'ContentMetadata',
    'ExtractionResult',
    'FetchResult',
    'ListingError',
    'ListingItem',
    'ListingResult',
    'ListingSelectors',
    'OcrBlock',
    'OcrResult',
    'PaywallResult',
    'RecipePage',
    'RecipeStats',
    'ResolvedRecipe',
    'Selector',
    'SiteRecipe',
    'StrategyAttempt',
    'TextSelector',
    'TitleCandidate',
]

"""Titular - adaptive news article extraction.

Recipes when a site is known, generic strategies when it is not, OCR when
the page is an image.
"""

from titular.config import EngineConfig
from titular.core.fetcher import HTMLFetcher, SimpleFetcher, create_fetcher
from titular.core.smart import SmartScraper
from titular.engine import ExtractionEngine, ExtractOptions
from titular.models import (
    ArticleSelectors,
    ExtractionResult,
    ListingResult,
    ListingSelectors,
    SiteRecipe,
)
from titular.storage import (
    ConfigResolver,
    FeedbackLoop,
    InMemoryRecipeStore,
    JsonRecipeStore,
    RecipeCatalog,
)
from titular.utils import TitularError, init_titular
from titular.validation.paywall import detect_paywall

__all__ = [
    # Engine
    'EngineConfig',
    'ExtractionEngine',
    'ExtractOptions',
    'SmartScraper',
    # Fetchers
    'HTMLFetcher',
    'SimpleFetcher',
    'create_fetcher',
    # Recipes
    'ConfigResolver',
    'FeedbackLoop',
    'InMemoryRecipeStore',
    'JsonRecipeStore',
    'RecipeCatalog',
    # Models
    'ArticleSelectors',
    'ExtractionResult',
    'ListingResult',
    'ListingSelectors',
    'SiteRecipe',
    # Utilities
    'TitularError',
    'detect_paywall',
    'init_titular',
]

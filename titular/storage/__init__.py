"""Recipe storage, static catalog, resolution and feedback."""

from titular.storage.catalog import RecipeCatalog
from titular.storage.feedback import FeedbackLoop
from titular.storage.resolver import ConfigResolver
from titular.storage.store import InMemoryRecipeStore, JsonRecipeStore, RecipeFilters, RecipeStore

__all__ = [
    'ConfigResolver',
    'FeedbackLoop',
    'InMemoryRecipeStore',
    'JsonRecipeStore',
    'RecipeCatalog',
    'RecipeFilters',
    'RecipeStore',
]

"""Feeds extraction outcomes back into recipe statistics."""

import logging

import logfire

from titular.models.recipe import SiteRecipe
from titular.storage.store import RecipeStore


class FeedbackLoop:
    """Records recipe outcomes and user confirmations.

    Updates go through the store, which applies each one atomically per
    recipe id.
    """

    def __init__(self, store: RecipeStore):
        """Initialize the loop.

        Args:
            store: Recipe store that owns the counters

        """
        self.store = store
        self.logger = logging.getLogger(__name__)

    def record(self, recipe_id: str, success: bool, error: str | None = None) -> SiteRecipe:
        """Record one use of a recipe.

        Args:
            recipe_id: Recipe that was used
            success: Whether the extraction validated
            error: Failure message, truncated to 1000 characters

        Returns:
            The updated recipe.

        """
        recipe = self.store.update_stats(recipe_id, success, error)
        logfire.info(
            'Recipe outcome recorded',
            recipe_id=recipe_id,
            domain=recipe.domain,
            success=success,
            confidence=recipe.confidence,
        )
        return recipe

    def confirm(self, recipe_id: str, user_id: str) -> SiteRecipe:
        """Record that ``user_id`` confirmed the recipe works.

        The recipe becomes verified at three distinct confirmations.

        Raises:
            AlreadyVerifiedError: If the user already confirmed it
            RecipeNotFoundError: If the id is unknown

        """
        recipe = self.store.verify_recipe(recipe_id, user_id)
        self.logger.info(f'{user_id} confirmed recipe {recipe_id} ({len(recipe.verified_by)} confirmations)')
        return recipe

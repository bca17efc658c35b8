"""Decides which recipe, if any, applies to a URL."""

import logging

from titular.models.results import ResolvedRecipe
from titular.storage.catalog import RecipeCatalog
from titular.storage.store import RecipeStore
from titular.utils.urls import normalize_domain


class ConfigResolver:
    """Read-only lookup across the recipe store and the static catalog.

    Priority 1 is a verified store recipe, 2 an unverified store recipe,
    3 a catalog entry.
    """

    def __init__(self, store: RecipeStore, catalog: RecipeCatalog | None = None):
        """Initialize the resolver.

        Args:
            store: Recipe store
            catalog: Static catalog. Defaults to None (store only)

        """
        self.store = store
        self.catalog = catalog
        self.logger = logging.getLogger(__name__)

    def resolve(self, url: str) -> ResolvedRecipe:
        """Best recipe for ``url``.

        Returns:
            ResolvedRecipe; ``source`` is 'none' when nothing matched.

        """
        domain = normalize_domain(url)
        candidates = self.store.find_active(domain)
        if candidates:
            best = candidates[0]
            priority = 1 if best.is_verified else 2
            self.logger.debug(f'Resolved {domain} to store recipe {best.id} (priority {priority})')
            return ResolvedRecipe(source='database', recipe=best, priority=priority)

        if self.catalog is not None:
            site = self.catalog.find(domain)
            if site is not None:
                self.logger.debug(f'Resolved {domain} to catalog site {site.domain}')
                return ResolvedRecipe(source='json', recipe=site, priority=3)

        return ResolvedRecipe(source='none')

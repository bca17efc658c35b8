"""Recipe store contract and its in-memory and JSON-file implementations."""

import json
import logging
import math
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from titular.core.smart.scoring import VERIFIED_CONFIDENCE_FLOOR, recipe_confidence
from titular.models.recipe import SiteRecipe
from titular.models.results import RecipePage, RecipeStats
from titular.utils.exceptions import (
    AlreadyVerifiedError,
    DuplicateRecipeError,
    PermissionDeniedError,
    RecipeNotFoundError,
)
from titular.utils.files import init_titular
from titular.utils.urls import normalize_domain

VERIFICATION_THRESHOLD = 3
MAX_ERROR_LENGTH = 1000
EDITABLE_FIELDS = {
    'domain',
    'name',
    'selectors',
    'listing_selectors',
    'cleaning_rules',
    'render_mode',
    'requires_ocr',
    'is_active',
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeFilters(BaseModel):
    """Filters for list_recipes; unset filters match everything.

    Attributes:
        is_active: Match the active flag
        is_verified: Match the verified flag
        domain: Substring of the domain
        created_by: Exact creator

    """

    is_active: bool | None = None
    is_verified: bool | None = None
    domain: str | None = None
    created_by: str | None = None

    def matches(self, recipe: SiteRecipe) -> bool:
        if self.is_active is not None and recipe.is_active != self.is_active:
            return False
        if self.is_verified is not None and recipe.is_verified != self.is_verified:
            return False
        if self.domain and self.domain.lower() not in recipe.domain:
            return False
        return self.created_by is None or recipe.created_by == self.created_by


def resolution_order(recipe: SiteRecipe) -> tuple:
    """Sort key: verified first, then confidence, then successes."""
    return (recipe.is_verified, recipe.confidence, recipe.success_count)


def listing_order(recipe: SiteRecipe) -> tuple:
    """Sort key: verified first, then confidence, then usage."""
    return (recipe.is_verified, recipe.confidence, recipe.usage_count)


class RecipeStore(ABC):
    """Persistence contract for site recipes.

    Implement this interface to back the engine with another database.
    Every mutation must be atomic per recipe id.
    """

    @abstractmethod
    def get_recipe(self, domain: str) -> SiteRecipe | None:
        """Recipe registered for a domain or URL, active or not."""
        pass

    @abstractmethod
    def get_by_id(self, recipe_id: str) -> SiteRecipe | None:
        """Recipe with the given id."""
        pass

    @abstractmethod
    def find_active(self, domain: str) -> list[SiteRecipe]:
        """Active recipes for a domain, best first.

        Ordered by is_verified, confidence and success_count, all descending.
        """
        pass

    @abstractmethod
    def save_recipe(self, recipe: SiteRecipe | dict[str, Any], created_by: str | None = None) -> SiteRecipe:
        """Register a new recipe.

        Raises:
            DuplicateRecipeError: If the domain already has a recipe
            InvalidSelectorError: If a selector does not parse

        """
        pass

    @abstractmethod
    def update_recipe(self, recipe_id: str, changes: dict[str, Any], user_id: str) -> SiteRecipe:
        """Apply a partial edit made by the recipe's creator.

        Raises:
            RecipeNotFoundError: If the id is unknown
            PermissionDeniedError: If ``user_id`` did not create the recipe

        """
        pass

    @abstractmethod
    def update_stats(self, recipe_id: str, success: bool, error: str | None = None) -> SiteRecipe:
        """Record one use of a recipe and recompute its confidence."""
        pass

    @abstractmethod
    def list_recipes(
        self, filters: RecipeFilters | dict[str, Any] | None = None, page: int = 1, limit: int = 20
    ) -> RecipePage:
        """One page of recipes ordered by is_verified, confidence and usage_count."""
        pass

    @abstractmethod
    def get_stats(self, domain: str) -> RecipeStats:
        """Usage counters of the domain's recipe."""
        pass

    @abstractmethod
    def verify_recipe(self, recipe_id: str, user_id: str) -> SiteRecipe:
        """Record a user's confirmation that a recipe works.

        Raises:
            AlreadyVerifiedError: If the user already confirmed it

        """
        pass

    @abstractmethod
    def deactivate(self, recipe_id: str) -> SiteRecipe:
        """Soft-disable a recipe; recipes are never deleted."""
        pass


class InMemoryRecipeStore(RecipeStore):
    """Thread-safe store keeping recipes in a dict.

    Subclasses persist by overriding ``_commit``, which runs under the
    store lock after every mutation.
    """

    def __init__(self, recipes: list[SiteRecipe] | None = None):
        """Initialize the store.

        Args:
            recipes: Recipes to start with, kept as given

        """
        self._lock = threading.RLock()
        self._recipes: dict[str, SiteRecipe] = {}
        self.logger = logging.getLogger(__name__)
        for recipe in recipes or []:
            recipe_id = recipe.id or uuid.uuid4().hex
            self._recipes[recipe_id] = recipe.model_copy(update={'id': recipe_id})

    def _commit(self) -> None:
        pass

    def _require(self, recipe_id: str) -> SiteRecipe:
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(f'No recipe with id {recipe_id}')
        return recipe

    def _store(self, recipe: SiteRecipe) -> SiteRecipe:
        """Replace the stored copy and commit; a failed commit restores the previous copy."""
        if recipe.id is None:
            raise ValueError(f'Recipe for {recipe.domain} has no id')
        previous = self._recipes.get(recipe.id)
        self._recipes[recipe.id] = recipe
        try:
            self._commit()
        except Exception:
            if previous is None:
                del self._recipes[recipe.id]
            else:
                self._recipes[recipe.id] = previous
            raise
        return recipe

    def _domain_taken(self, domain: str, except_id: str | None = None) -> bool:
        return any(r.domain == domain and r.id != except_id for r in self._recipes.values())

    def get_recipe(self, domain: str) -> SiteRecipe | None:
        key = normalize_domain(domain)
        with self._lock:
            matches = sorted((r for r in self._recipes.values() if r.domain == key), key=resolution_order, reverse=True)
        return matches[0] if matches else None

    def get_by_id(self, recipe_id: str) -> SiteRecipe | None:
        with self._lock:
            return self._recipes.get(recipe_id)

    def find_active(self, domain: str) -> list[SiteRecipe]:
        key = normalize_domain(domain)
        with self._lock:
            matches = [r for r in self._recipes.values() if r.domain == key and r.is_active]
        return sorted(matches, key=resolution_order, reverse=True)

    def save_recipe(self, recipe: SiteRecipe | dict[str, Any], created_by: str | None = None) -> SiteRecipe:
        if isinstance(recipe, dict):
            recipe = SiteRecipe.model_validate(recipe)

        now = _now()
        with self._lock:
            if self._domain_taken(recipe.domain):
                raise DuplicateRecipeError(recipe.domain)
            saved = recipe.model_copy(
                update={
                    'id': uuid.uuid4().hex,
                    'source': 'database',
                    'confidence': 0.5,
                    'is_active': True,
                    'is_verified': False,
                    'verified_by': [],
                    'usage_count': 0,
                    'success_count': 0,
                    'failure_count': 0,
                    'last_error': None,
                    'last_success': None,
                    'last_used_at': None,
                    'created_by': created_by or recipe.created_by,
                    'created_at': now,
                    'updated_at': now,
                }
            )
            self.logger.info(f'Saved recipe {saved.id} for {saved.domain}')
            return self._store(saved)

    def update_recipe(self, recipe_id: str, changes: dict[str, Any], user_id: str) -> SiteRecipe:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f'Fields cannot be edited: {sorted(unknown)}')

        with self._lock:
            current = self._require(recipe_id)
            if current.created_by != user_id:
                raise PermissionDeniedError(f'Only the creator of recipe {recipe_id} may edit it')

            data = current.model_dump()
            for name, value in changes.items():
                if name in ('selectors', 'listing_selectors') and isinstance(value, dict) and data.get(name):
                    data[name] = {**data[name], **value}
                else:
                    data[name] = value
            data['updated_at'] = _now()

            updated = SiteRecipe.model_validate(data)
            if updated.domain != current.domain and self._domain_taken(updated.domain, except_id=recipe_id):
                raise DuplicateRecipeError(updated.domain)
            return self._store(updated)

    def update_stats(self, recipe_id: str, success: bool, error: str | None = None) -> SiteRecipe:
        with self._lock:
            current = self._require(recipe_id)
            now = _now()
            usage = current.usage_count + 1
            successes = current.success_count + (1 if success else 0)
            update: dict[str, Any] = {
                'usage_count': usage,
                'last_used_at': now,
                'updated_at': now,
                'confidence': recipe_confidence(successes, usage, current.is_verified),
            }
            if success:
                update.update(success_count=successes, last_success=now, last_error=None)
            else:
                update.update(
                    failure_count=current.failure_count + 1,
                    last_error=(error or 'unknown error')[:MAX_ERROR_LENGTH],
                )
            return self._store(current.model_copy(update=update))

    def list_recipes(
        self, filters: RecipeFilters | dict[str, Any] | None = None, page: int = 1, limit: int = 20
    ) -> RecipePage:
        if not isinstance(filters, RecipeFilters):
            filters = RecipeFilters.model_validate(filters or {})
        page = max(page, 1)
        limit = max(limit, 1)

        with self._lock:
            matches = sorted(
                (r for r in self._recipes.values() if filters.matches(r)), key=listing_order, reverse=True
            )
        start = (page - 1) * limit
        return RecipePage(
            recipes=matches[start : start + limit],
            total=len(matches),
            page=page,
            limit=limit,
            total_pages=math.ceil(len(matches) / limit),
        )

    def get_stats(self, domain: str) -> RecipeStats:
        recipe = self.get_recipe(domain)
        if recipe is None or recipe.id is None:
            raise RecipeNotFoundError(f'No recipe for {normalize_domain(domain)}')
        return RecipeStats(
            recipe_id=recipe.id,
            domain=recipe.domain,
            usage_count=recipe.usage_count,
            success_count=recipe.success_count,
            failure_count=recipe.failure_count,
            success_rate=round(recipe.success_rate, 4),
            confidence=recipe.confidence,
            is_verified=recipe.is_verified,
            verifications=len(recipe.verified_by),
            last_error=recipe.last_error,
            last_success=recipe.last_success.isoformat() if recipe.last_success else None,
        )

    def verify_recipe(self, recipe_id: str, user_id: str) -> SiteRecipe:
        with self._lock:
            current = self._require(recipe_id)
            if user_id in current.verified_by:
                raise AlreadyVerifiedError(f'{user_id} already confirmed recipe {recipe_id}')

            verified_by = [*current.verified_by, user_id]
            is_verified = len(verified_by) >= VERIFICATION_THRESHOLD
            confidence = current.confidence
            if is_verified:
                confidence = max(confidence, VERIFIED_CONFIDENCE_FLOOR)
                if not current.is_verified:
                    self.logger.info(f'Recipe {recipe_id} for {current.domain} is now verified')
            return self._store(
                current.model_copy(
                    update={
                        'verified_by': verified_by,
                        'is_verified': is_verified,
                        'confidence': confidence,
                        'updated_at': _now(),
                    }
                )
            )

    def deactivate(self, recipe_id: str) -> SiteRecipe:
        with self._lock:
            current = self._require(recipe_id)
            return self._store(current.model_copy(update={'is_active': False, 'updated_at': _now()}))


class JsonRecipeStore(InMemoryRecipeStore):
    """Store persisted as a single JSON file under .titular/recipes/.

    The file is rewritten after every mutation.
    """

    FILENAME = 'recipes.json'

    def __init__(self, path: str | Path | None = None):
        """Initialize the store and load the file if it exists.

        Args:
            path: JSON file path. Defaults to .titular/recipes/recipes.json

        """
        super().__init__()
        self.path = Path(path) if path else init_titular('recipes') / self.FILENAME
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        with open(self.path, encoding='utf-8') as f:
            data = json.load(f)
        for raw in data.get('recipes', []):
            recipe = SiteRecipe.model_validate(raw)
            if recipe.id:
                self._recipes[recipe.id] = recipe
        self.logger.debug(f'Loaded {len(self._recipes)} recipes from {self.path}')

    def _commit(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            'updated_at': _now().isoformat(),
            'recipes': [r.model_dump(mode='json', by_alias=True) for r in self._recipes.values()],
        }
        tmp_path = self.path.with_suffix('.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

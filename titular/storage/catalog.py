"""Static recipe catalog loaded from a JSON document."""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from titular.models.recipe import SiteRecipe
from titular.utils.exceptions import CatalogError, TitularError
from titular.utils.urls import normalize_domain


class RecipeCatalog:
    """Read-only recipes shipped as a JSON file.

    The document looks like ``{"sites": [{"domain", "name", "enabled",
    "selectors", "listingSelectors", "cleaningRules", "requiresOcr",
    "renderMode"}]}``. Loading is explicit: call ``init()`` once and
    ``reload()`` whenever the file changes. A document that fails to load
    leaves the previous snapshot in place.

    Attributes:
        path: Location of the JSON document, None for an empty catalog

    """

    def __init__(self, path: str | Path | None = None):
        """Initialize an empty catalog.

        Args:
            path: JSON document to load. Defaults to None (catalog stays empty)

        """
        self.path = Path(path) if path else None
        self._sites: list[SiteRecipe] = []
        self._loaded_at: datetime | None = None
        self._last_error: str | None = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def init(self) -> 'RecipeCatalog':
        """Load the document for the first time.

        Raises:
            CatalogError: If the document is malformed

        """
        self.reload()
        return self

    def reload(self) -> int:
        """Replace the snapshot with the current contents of the document.

        Returns:
            Number of sites loaded.

        Raises:
            CatalogError: If the document is malformed; the previous snapshot is kept

        """
        if self.path is None:
            with self._lock:
                self._sites = []
                self._loaded_at = datetime.now(timezone.utc)
            return 0

        try:
            sites = self._parse(self._read(self.path))
        except CatalogError as e:
            with self._lock:
                self._last_error = str(e)
            self.logger.error(f'Catalog reload failed, keeping previous snapshot: {e}')
            raise

        with self._lock:
            self._sites = sites
            self._loaded_at = datetime.now(timezone.utc)
            self._last_error = None
        self.logger.info(f'Loaded {len(sites)} catalog sites from {self.path}')
        return len(sites)

    @staticmethod
    def _read(path: Path) -> Any:
        try:
            with open(path, encoding='utf-8') as f:
                return json.load(f)
        except OSError as e:
            raise CatalogError(f'Cannot read catalog {path}: {e}') from e
        except json.JSONDecodeError as e:
            raise CatalogError(f'Catalog {path} is not valid JSON: {e}') from e

    def _parse(self, document: Any) -> list[SiteRecipe]:
        if not isinstance(document, dict) or not isinstance(document.get('sites'), list):
            raise CatalogError("Catalog document must be an object with a 'sites' list")

        sites: list[SiteRecipe] = []
        for index, entry in enumerate(document['sites']):
            if not isinstance(entry, dict) or not entry.get('domain') or not entry.get('selectors'):
                raise CatalogError(f"Catalog site #{index} needs 'domain' and 'selectors'")

            data = {key: value for key, value in entry.items() if key != 'enabled'}
            data.setdefault('name', entry['domain'])
            data['isActive'] = entry.get('enabled', True) is not False
            data['source'] = 'json'
            try:
                sites.append(SiteRecipe.model_validate(data))
            except (ValidationError, TitularError) as e:
                raise CatalogError(f'Catalog site {entry["domain"]!r} is invalid: {e}') from e
        return sites

    def find(self, url: str) -> SiteRecipe | None:
        """Enabled catalog recipe for a URL or domain.

        An exact domain match wins; otherwise the first site whose domain
        contains, or is contained in, the requested domain.
        """
        domain = normalize_domain(url)
        if not domain:
            return None
        with self._lock:
            enabled = [site for site in self._sites if site.is_active]

        for site in enabled:
            if site.domain == domain:
                return site
        for site in enabled:
            if site.domain in domain or domain in site.domain:
                return site
        return None

    @property
    def sites(self) -> list[SiteRecipe]:
        with self._lock:
            return list(self._sites)

    def status(self) -> dict[str, Any]:
        """Snapshot summary for status displays."""
        with self._lock:
            return {
                'path': str(self.path) if self.path else None,
                'loaded': self._loaded_at is not None,
                'loaded_at': self._loaded_at.isoformat() if self._loaded_at else None,
                'sites': len(self._sites),
                'enabled': sum(1 for site in self._sites if site.is_active),
                'requires_ocr': sum(1 for site in self._sites if site.requires_ocr),
                'last_error': self._last_error,
            }

"""Models for fetch, extraction and recipe-store results."""

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field

from titular.models.recipe import SiteRecipe


@dataclass
class ContentMetadata:
    """Metadata about the fetched content.

    Attributes:
        requires_js: True if the page looks client-side rendered
        js_framework: Detected framework, if any
        content_length: Length of the HTML

    """

    requires_js: bool = False
    js_framework: str | None = None
    content_length: int = 0


@dataclass
class FetchResult:
    """Result of an HTML fetch operation.

    Attributes:
        url: URL that was requested
        html: HTML content, None on failure
        status_code: HTTP status code, if a response was received
        is_blocked: True if bot detection blocked the request
        block_reason: Why the fetch failed or was blocked
        fetch_time: Seconds spent fetching
        final_url: URL that actually answered, after redirects or slash toggling

    """

    url: str
    html: str | None = None
    status_code: int | None = None
    is_blocked: bool = False
    block_reason: str | None = None
    fetch_time: float = 0.0
    final_url: str | None = None

    metadata: ContentMetadata = field(default_factory=ContentMetadata)

    @property
    def success(self) -> bool:
        """Whether the fetch produced usable HTML."""
        return self.html is not None and not self.is_blocked

    @property
    def requires_js(self) -> bool:
        """Shortcut to check if content requires JavaScript."""
        return self.metadata.requires_js


class PaywallResult(BaseModel):
    """Verdict of the paywall detector.

    Attributes:
        has_paywall: Whether the content looks gated
        confidence: Confidence of the verdict in [0, 1]
        method: Which check decided ('keyword', 'html-class', 'domain', 'length', 'none', 'no-content')

    """

    has_paywall: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    method: str = 'none'


class StrategyAttempt(BaseModel):
    """One try of one strategy; used to decide whether to continue the chain."""

    name: str
    confidence: float = 0.0
    success: bool = False
    timed_out: bool = False
    error: str | None = None


class ExtractionResult(BaseModel):
    """Structured article record produced by the engine.

    When ``success`` is True the title and content passed content validation.

    Attributes:
        success: Whether a valid article was extracted
        title: Article headline
        content: Article body text
        date: Publication date as found on the page
        author: Byline
        images: Absolute image URLs
        confidence: Reliability estimate in [0, 1]
        strategy: Which path produced the result
        has_paywall: Paywall annotation, never invalidates success
        paywall_confidence: Confidence of the paywall verdict
        needs_help: True when every strategy failed and a recipe should be authored
        attempted_strategies: Every strategy tried, in order
        content_hash: SHA-256 of the normalized content, None for short or missing content

    """

    success: bool = False
    url: str | None = None
    title: str | None = None
    content: str | None = None
    date: str | None = None
    author: str | None = None
    images: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    strategy: str | None = None
    has_paywall: bool = False
    paywall_confidence: float = 0.0
    paywall_method: str | None = None
    needs_help: bool = False
    reason: str | None = None
    error: str | None = None
    recipe_id: str | None = None
    attempted_strategies: list[StrategyAttempt] = Field(default_factory=list)
    extraction_time: float = 0.0
    content_hash: str | None = None

    def with_paywall(self, paywall: PaywallResult) -> 'ExtractionResult':
        """Return a copy annotated with a paywall verdict."""
        return self.model_copy(
            update={
                'has_paywall': paywall.has_paywall,
                'paywall_confidence': paywall.confidence,
                'paywall_method': paywall.method,
            }
        )


class ListingItem(BaseModel):
    """A link discovered on a listing page."""

    title: str
    link: str


class ListingError(BaseModel):
    url: str
    error: str


class ListingResult(BaseModel):
    """Outcome of extracting every article linked from a listing page.

    Attributes:
        total_found: Unique links discovered on the listing page
        total_scraped: Articles extracted successfully
        articles: Successful article extractions
        errors: Per-link failures
        duplicates: Links skipped because their article repeats an earlier one

    """

    url: str
    total_found: int = 0
    total_scraped: int = 0
    articles: list[ExtractionResult] = Field(default_factory=list)
    errors: list[ListingError] = Field(default_factory=list)
    items: list[ListingItem] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)


class ResolvedRecipe(BaseModel):
    """What the config resolver found for a URL.

    Attributes:
        source: 'database', 'json', or 'none'
        recipe: The recipe, None when source is 'none'
        priority: 1 verified database, 2 unverified database, 3 static catalog, None otherwise

    """

    source: Literal['database', 'json', 'none'] = 'none'
    recipe: SiteRecipe | None = None
    priority: int | None = None

    @property
    def found(self) -> bool:
        return self.recipe is not None


class RecipeStats(BaseModel):
    """Usage statistics of a recipe."""

    recipe_id: str
    domain: str
    usage_count: int
    success_count: int
    failure_count: int
    success_rate: float
    confidence: float
    is_verified: bool
    verifications: int
    last_error: str | None = None
    last_success: str | None = None


class RecipePage(BaseModel):
    """One page of a recipe listing."""

    recipes: list[SiteRecipe]
    total: int
    page: int
    limit: int
    total_pages: int


class TitleCandidate(BaseModel):
    """A possible page title and where it came from."""

    title: str
    source: str
    confidence: float


class OcrBlock(BaseModel):
    """Text recognized from one image."""

    text: str = ''
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class OcrResult(BaseModel):
    """Combined output of the OCR pipeline for one page.

    Attributes:
        url: Page that was captured
        text: Cleaned text from all screenshots, concatenated
        titles: Probable headlines, longest first
        confidence: Mean backend confidence over screenshots with text
        screenshots: Number of screenshots captured

    """

    url: str
    text: str = ''
    titles: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    screenshots: int = 0

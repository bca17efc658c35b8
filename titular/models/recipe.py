"""Pydantic models for site extraction recipes."""

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from titular.models.selectors import Selector
from titular.utils.urls import normalize_domain
from titular.validation.selectors import parse_selector

RenderMode = Literal['static', 'browser', 'auto']
RecipeSource = Literal['database', 'json']

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ArticleSelectors(BaseModel):
    """Selectors for the fields of a single article page.

    Attributes:
        title: Selector for the headline
        content: Selector for the body container or its paragraphs
        date: Selector for the publication date
        author: Selector for the byline
        images: Selector for article images

    """

    model_config = _CAMEL

    title: Selector
    content: Selector
    date: Selector | None = None
    author: Selector | None = None
    images: Selector | None = None

    @field_validator('title', 'content', 'date', 'author', 'images', mode='before')
    @classmethod
    def _parse(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == '':
            return None
        return parse_selector(value, info.field_name)

    def as_raw(self) -> dict[str, str | None]:
        """Field name to CSS string mapping, for display."""
        return {name: (str(sel) if sel is not None else None) for name, sel in self}


class ListingSelectors(BaseModel):
    """Selectors for a page that lists many articles.

    Attributes:
        container: Selector matching one element per listed article
        link: Selector (inside the container) for the article link
        title: Optional selector (inside the container) for the preview title

    """

    model_config = _CAMEL

    container: Selector
    link: Selector
    title: Selector | None = None

    @field_validator('container', 'link', 'title', mode='before')
    @classmethod
    def _parse(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == '':
            return None
        return parse_selector(value, info.field_name)


class CleaningRule(BaseModel):
    """Ordered regex substitution applied to extracted text.

    Attributes:
        type: Rule type, only 'regex' is supported
        pattern: Regular expression to remove or replace
        replacement: Replacement text, empty by default
        ignore_case: Match case-insensitively

    """

    model_config = _CAMEL

    type: Literal['regex'] = 'regex'
    pattern: str
    replacement: str = ''
    ignore_case: bool = False

    @field_validator('pattern')
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f'invalid regex {value!r}: {e}') from e
        return value

    def apply(self, text: str) -> str:
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.sub(self.pattern, self.replacement, text, flags=flags)


class SiteRecipe(BaseModel):
    """A domain's extraction rules plus its usage statistics.

    Attributes:
        id: Store-assigned identifier
        domain: Normalized domain, unique among recipes
        name: Human readable site name
        selectors: Article-mode selectors
        listing_selectors: Listing-mode selectors, if the site has listing pages
        cleaning_rules: Regex substitutions applied after extraction
        render_mode: 'static', 'browser', or 'auto' to decide from the recipe
        requires_ocr: Allow the OCR fallback for this domain
        source: Where the recipe came from ('database' or 'json')
        confidence: Reliability estimate in [0, 1]
        is_verified: True once enough distinct users confirmed the recipe
        verified_by: Users who confirmed the recipe
        usage_count: Times the recipe was used
        success_count: Successful uses
        failure_count: Failed uses
        last_error: Last failure message, truncated
        is_active: False once soft-disabled

    """

    model_config = _CAMEL

    id: str | None = None
    domain: str
    name: str
    selectors: ArticleSelectors
    listing_selectors: ListingSelectors | None = None
    cleaning_rules: list[CleaningRule] = Field(default_factory=list)
    render_mode: RenderMode = 'auto'
    requires_ocr: bool = False
    source: RecipeSource = 'database'

    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    is_verified: bool = False
    verified_by: list[str] = Field(default_factory=list)
    usage_count: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    last_error: str | None = None
    last_success: datetime | None = None
    last_used_at: datetime | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator('domain', mode='before')
    @classmethod
    def _normalize_domain(cls, value: Any) -> str:
        domain = normalize_domain(str(value or ''))
        if not domain:
            raise ValueError('domain is required')
        return domain

    @field_validator('name')
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError('name is required')
        return value.strip()

    @property
    def success_rate(self) -> float:
        """Successful uses over total uses, 0.0 when unused."""
        return self.success_count / self.usage_count if self.usage_count else 0.0

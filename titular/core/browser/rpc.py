"""In-page evaluation contract for listing extraction.

The function below runs inside the browser process. Only the fields of
``ListingEvaluationRequest`` cross into the page, and only a JSON array of
``{title, link}`` objects comes back; both sides are validated here.
"""

from pydantic import BaseModel, TypeAdapter

from titular.core.browser.session import BrowserSession
from titular.core.extraction.listing import finalize_items
from titular.core.extraction.selectors import URL_ATTRIBUTES
from titular.models.recipe import ListingSelectors
from titular.models.results import ListingItem
from titular.models.selectors import AttributeSelector

LISTING_EVALUATION_JS = """
(request) => {
  const read = (el, attr) => (attr && el.getAttribute(attr)) || '';
  const text = (el) => (el.textContent || '').replace(/\\s+/g, ' ').trim();
  const results = [];
  document.querySelectorAll(request.container).forEach((container) => {
    const linkEl = container.matches(request.link) ? container : container.querySelector(request.link);
    if (!linkEl) return;
    let link = read(linkEl, request.link_attr) || read(linkEl, 'href');
    if (!link && linkEl.tagName !== 'A') {
      const anchor = linkEl.querySelector('a[href]');
      if (anchor) link = anchor.getAttribute('href');
    }
    let title = '';
    if (request.title) {
      const titleEl = container.querySelector(request.title);
      if (titleEl) title = read(titleEl, request.title_attr) || text(titleEl);
    }
    if (!title) title = read(linkEl, request.link_title_attr) || text(linkEl);
    results.push({ title: title.trim(), link: (link || '').trim() });
  });
  return results;
}
"""


class ListingEvaluationRequest(BaseModel):
    """Values passed into the page.

    Attributes:
        container: CSS selector of one listed article
        link: CSS selector of the link inside a container
        title: CSS selector of the preview title inside a container
        base_url: Page base URL; links are resolved against it after return
        link_attr: URL attribute to read from the link element
        link_title_attr: Attribute of the link element holding the title
        title_attr: Attribute of the title element holding the title

    """

    container: str
    link: str
    title: str | None = None
    base_url: str
    link_attr: str | None = None
    link_title_attr: str | None = None
    title_attr: str | None = None

    @classmethod
    def from_selectors(cls, selectors: ListingSelectors, base_url: str) -> 'ListingEvaluationRequest':
        link = selectors.link
        title = selectors.title
        link_is_attribute = isinstance(link, AttributeSelector)
        return cls(
            container=selectors.container.css,
            link=link.css,
            title=title.css if title is not None else None,
            base_url=base_url,
            link_attr=link.attr_name if link_is_attribute and link.attr_name in URL_ATTRIBUTES else None,
            link_title_attr=link.attr_name if link_is_attribute and link.attr_name not in URL_ATTRIBUTES else None,
            title_attr=title.attr_name if isinstance(title, AttributeSelector) else None,
        )


class RawListingItem(BaseModel):
    """One record as returned by the page."""

    title: str = ''
    link: str = ''


_RAW_ITEMS = TypeAdapter(list[RawListingItem])


def evaluate_listing(session: BrowserSession, request: ListingEvaluationRequest) -> list[ListingItem]:
    """Run the listing evaluation in an open page.

    Args:
        session: Open browser session already navigated to the listing page
        request: Values passed into the page

    Returns:
        Filtered, de-duplicated listing items with absolute links.

    Raises:
        pydantic.ValidationError: If the page returned something other than the agreed shape

    """
    raw = session.evaluate(LISTING_EVALUATION_JS, request.model_dump())
    records = _RAW_ITEMS.validate_python(raw or [])
    return finalize_items(((record.title, record.link) for record in records), request.base_url)

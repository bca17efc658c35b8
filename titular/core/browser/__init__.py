"""Headless browser sessions and the in-page evaluation contract."""

from titular.core.browser.rpc import LISTING_EVALUATION_JS, ListingEvaluationRequest, evaluate_listing
from titular.core.browser.session import BrowserSession

__all__ = ['LISTING_EVALUATION_JS', 'BrowserSession', 'ListingEvaluationRequest', 'evaluate_listing']

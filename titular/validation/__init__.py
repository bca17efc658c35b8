"""Selector, content and paywall validation."""

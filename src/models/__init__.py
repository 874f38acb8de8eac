"""Data models for Confluence pages and spaces."""

from src.models.confluence_page import (
    ConfluencePage,
    ConfluenceSpace,
    PageSummary,
    parse_results,
)

__all__ = ['ConfluencePage', 'ConfluenceSpace', 'PageSummary', 'parse_results']

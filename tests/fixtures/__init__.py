"""Test fixtures for the KB agent tests.

This module provides:
- Test credentials
- Sample Confluence REST API payloads (pages, spaces, listings)
- Fake HTTP responses and recording response streams
"""

from .sample_pages import (
    TEST_CREDENTIALS,
    OTHER_CREDENTIALS,
    SAMPLE_PAGE_RESPONSE,
    SAMPLE_SPACES_RESPONSE,
    SAMPLE_SPACE_PAGES_RESPONSE,
    EMPTY_RESULTS_RESPONSE,
    make_page_response,
)
from .http_fakes import make_response, FakeHttp

__all__ = [
    'TEST_CREDENTIALS',
    'OTHER_CREDENTIALS',
    'SAMPLE_PAGE_RESPONSE',
    'SAMPLE_SPACES_RESPONSE',
    'SAMPLE_SPACE_PAGES_RESPONSE',
    'EMPTY_RESULTS_RESPONSE',
    'make_page_response',
    'make_response',
    'FakeHttp',
]

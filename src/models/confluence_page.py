"""Confluence page data models.

These are transient, request-scoped copies of objects owned by Confluence.
Each model parses an API response dict through from_api(), which validates
the shape and raises MalformedResponseError instead of letting a missing key
surface later as an AttributeError or KeyError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.confluence_client.errors import MalformedResponseError


def _require(data: Any, path: str, expected_type: type) -> Any:
    """Walk a dotted path through nested dicts and check the leaf type."""
    current = data
    walked = []
    for key in path.split('.'):
        walked.append(key)
        if not isinstance(current, dict) or key not in current:
            raise MalformedResponseError(f"missing field '{'.'.join(walked)}'")
        current = current[key]

    # bool is an int subclass, never a valid version number
    if expected_type is int and isinstance(current, bool):
        raise MalformedResponseError(f"field '{path}' must be int, got bool")
    if not isinstance(current, expected_type):
        raise MalformedResponseError(
            f"field '{path}' must be {expected_type.__name__}, "
            f"got {type(current).__name__}"
        )
    return current


def _require_id(data: Any) -> str:
    """Page ids arrive as strings, but accept numbers and normalize."""
    raw = data.get('id') if isinstance(data, dict) else None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    return _require(data, 'id', str)


@dataclass
class ConfluencePage:
    """Confluence page with storage format content.

    Attributes:
        page_id: Unique identifier for the page
        title: Page title
        version: Current version number (required for updates)
        space_key: Space key where the page resides (e.g., "TEAM")
        content_storage: Page body in storage format (XHTML)
        webui: Web UI path relative to the site's /wiki root
        space_name: Space display name, when the API includes it
    """
    page_id: str
    title: str
    version: int
    space_key: str
    content_storage: str  # XHTML format
    webui: str
    space_name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ConfluencePage":
        """Parse a `GET /content/{id}?expand=body.storage,version,space` response.

        Raises:
            MalformedResponseError: If a required field is missing or mistyped
        """
        space = data.get('space') if isinstance(data, dict) else None
        space_name = space.get('name') if isinstance(space, dict) else None
        return cls(
            page_id=_require_id(data),
            title=_require(data, 'title', str),
            version=_require(data, 'version.number', int),
            space_key=_require(data, 'space.key', str),
            content_storage=_require(data, 'body.storage.value', str),
            webui=_require(data, '_links.webui', str),
            space_name=space_name if isinstance(space_name, str) else None,
        )


@dataclass
class PageSummary:
    """Page entry from a listing (no body, no version)."""
    page_id: str
    title: str
    webui: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PageSummary":
        return cls(
            page_id=_require_id(data),
            title=_require(data, 'title', str),
            webui=_require(data, '_links.webui', str),
        )


@dataclass
class ConfluenceSpace:
    """Space entry from `GET /space`."""
    key: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ConfluenceSpace":
        return cls(
            key=_require(data, 'key', str),
            name=_require(data, 'name', str),
        )


def parse_results(data: Any, model: Any) -> list:
    """Parse the `results` array of a list response into model instances."""
    results = _require(data, 'results', list)
    return [model.from_api(item) for item in results]

"""HTTP client for the Confluence Cloud REST API.

This module builds authenticated JSON requests against the /wiki/rest/api
surface with a requests session and translates transport and HTTP failures
into our typed exception hierarchy. Every call is a single request with an
explicit timeout; nothing is retried.
"""

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests
from requests.exceptions import RequestException

from src.models.confluence_page import (
    ConfluencePage,
    ConfluenceSpace,
    PageSummary,
    parse_results,
)
from .auth import Credentials, basic_auth_header
from .errors import (
    APIUnreachableError,
    HTTPStatusError,
    MalformedResponseError,
    NotAuthenticatedError,
)

if TYPE_CHECKING:
    from src.agent.session import Session

logger = logging.getLogger(__name__)

API_ROOT = "/wiki/rest/api"
PAGE_EXPAND = "body.storage,version,space"


class ConfluenceClient:
    """Thin client over the Confluence REST API with error translation.

    The client does not own credentials. Each request uses either the
    credentials passed explicitly (the /auth probe does this with a candidate
    credential) or the session's active credential at call time.

    Example:
        >>> client = ConfluenceClient(session)
        >>> page = client.get_page("123456")
        >>> client.update_page(page, page.content_storage + "<p>more</p>")
    """

    def __init__(
        self,
        session: "Session",
        timeout: float = 30,
        http: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            session: Session providing the active credential
            timeout: Seconds before a request is abandoned
            http: requests.Session to send through (one is created if None)
        """
        self._session = session
        self.timeout = timeout
        self._http = http if http is not None else requests.Session()

    def _validate_page_id(self, page_id: str) -> str:
        """Validate that a page ID is numeric.

        Confluence page IDs are always numeric; anything else would be
        spliced into the URL path.

        Raises:
            ValueError: If page_id is empty or not numeric
        """
        page_id_str = str(page_id).strip() if page_id is not None else ''
        if not page_id_str:
            raise ValueError("page_id cannot be empty")

        if not re.match(r'^\d+$', page_id_str):
            raise ValueError(
                f"Invalid page_id format: '{page_id}'. "
                f"Page IDs must contain only numeric characters."
            )
        return page_id_str

    def _sanitize_credentials(self, text: str) -> str:
        """Mask tokens, Authorization headers and emails in log text.

        Example:
            >>> client._sanitize_credentials("Authorization: Basic abc==")
            'Authorization: ***REDACTED***'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'://([\w.-]+):([\w.-]+)@',
            r'://***:***@',
            text
        )
        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(Basic|Bearer)\s+[^\s\n\r]+',
            r'\1 ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(api_?token|token)["\']?\s*[:=]\s*["\']?([^"\'\s&,}]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # Show the domain only
        sanitized = re.sub(
            r'\b[\w.+-]+@([\w.-]+\.[a-z]{2,})\b',
            r'***@\1',
            sanitized,
            flags=re.IGNORECASE
        )
        return sanitized

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Union[str, Dict[str, Any], List[Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
        credentials: Optional[Credentials] = None,
    ) -> Any:
        """Send one authenticated request and return the decoded JSON body.

        Args:
            endpoint: Path below the API root, e.g. "/content/123"
            method: HTTP method
            body: Structured value (serialized to JSON) or an already
                  serialized string
            headers: Header overrides; these win over the defaults
            credentials: Credentials to use instead of the session's

        Returns:
            The parsed JSON response

        Raises:
            NotAuthenticatedError: If no credential is available
            HTTPStatusError: If the response status is not 2xx
            APIUnreachableError: On connection failure or timeout
            MalformedResponseError: If a success body is not JSON
        """
        creds = credentials if credentials is not None else self._session.credentials
        if creds is None:
            raise NotAuthenticatedError()

        url = f"{creds.url}{API_ROOT}{endpoint}"
        merged_headers = {
            'Authorization': basic_auth_header(creds),
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        merged_headers.update(headers or {})

        data = body
        if body is not None and not isinstance(body, (str, bytes)):
            data = json.dumps(body)

        logger.debug(f"{method} {url}")
        try:
            response = self._http.request(
                method,
                url,
                headers=merged_headers,
                data=data,
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.warning(
                f"Request failed: {method} {endpoint} - "
                f"{self._sanitize_credentials(str(e))}"
            )
            raise APIUnreachableError(
                endpoint=creds.url,
                reason=type(e).__name__
            ) from e

        if not 200 <= response.status_code < 300:
            logger.info(f"{method} {endpoint} returned HTTP {response.status_code}")
            raise HTTPStatusError(response.status_code, response.reason)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{method} {endpoint} did not return JSON") from e

    def list_spaces(
        self,
        limit: int = 1,
        credentials: Optional[Credentials] = None,
    ) -> List[ConfluenceSpace]:
        """List accessible spaces (`GET /space?limit=N`)."""
        data = self.request(f"/space?limit={int(limit)}", credentials=credentials)
        return parse_results(data, ConfluenceSpace)

    def get_page(
        self,
        page_id: str,
        credentials: Optional[Credentials] = None,
    ) -> ConfluencePage:
        """Fetch a page with its storage body, version and space expanded.

        Raises:
            ValueError: If page_id is not numeric
            RemoteCallError: If the request fails or the response is malformed
        """
        page_id = self._validate_page_id(page_id)
        data = self.request(
            f"/content/{page_id}?expand={PAGE_EXPAND}",
            credentials=credentials,
        )
        return ConfluencePage.from_api(data)

    def update_page(
        self,
        page: ConfluencePage,
        new_body: str,
        credentials: Optional[Credentials] = None,
    ) -> Dict[str, Any]:
        """Replace a page body, submitting version = page.version + 1.

        Title and space key are sent unchanged from the fetched page.
        Confluence rejects the write (HTTP 409) if the page moved past
        page.version in the meantime.
        """
        page_id = self._validate_page_id(page.page_id)
        payload = {
            'id': page_id,
            'type': 'page',
            'title': page.title,
            'space': {'key': page.space_key},
            'body': {
                'storage': {
                    'value': new_body,
                    'representation': 'storage',
                }
            },
            'version': {'number': page.version + 1},
        }
        return self.request(
            f"/content/{page_id}",
            method="PUT",
            body=payload,
            credentials=credentials,
        )

    def list_space_pages(
        self,
        space_key: str,
        limit: int = 100,
        credentials: Optional[Credentials] = None,
    ) -> List[PageSummary]:
        """List current pages of one space."""
        data = self.request(
            f"/space/{quote(space_key, safe='')}/content/page"
            f"?limit={int(limit)}&status=current",
            credentials=credentials,
        )
        return parse_results(data, PageSummary)

    def create_page(
        self,
        space_key: str,
        title: str,
        content: str,
        parent_id: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> PageSummary:
        """Create a page from a storage-format body (`POST /content`)."""
        payload: Dict[str, Any] = {
            'type': 'page',
            'title': title,
            'space': {'key': space_key},
            'body': {
                'storage': {
                    'value': content,
                    'representation': 'storage',
                }
            },
        }
        if parent_id:
            payload['ancestors'] = [{'id': self._validate_page_id(parent_id)}]

        data = self.request("/content", method="POST", body=payload, credentials=credentials)
        return PageSummary.from_api(data)

    def page_url(self, webui: str, credentials: Optional[Credentials] = None) -> str:
        """Absolute browser URL for a page's relative web UI path."""
        creds = credentials if credentials is not None else self._session.credentials
        if creds is None:
            raise NotAuthenticatedError()
        return f"{creds.url}/wiki{webui}"

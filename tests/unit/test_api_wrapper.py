"""Unit tests for api_wrapper module."""

import base64
import json

import pytest
import requests
from requests.exceptions import ChunkedEncodingError, ConnectionError, ReadTimeout, TooManyRedirects

from src.agent.credential_store import MemoryCredentialStore
from src.agent.session import Session
from src.confluence_client.api_wrapper import ConfluenceClient
from src.confluence_client.errors import (
    APIUnreachableError,
    HTTPStatusError,
    MalformedResponseError,
    NotAuthenticatedError,
)
from src.models.confluence_page import ConfluencePage
from tests.fixtures import (
    OTHER_CREDENTIALS,
    SAMPLE_PAGE_RESPONSE,
    SAMPLE_SPACE_PAGES_RESPONSE,
    SAMPLE_SPACES_RESPONSE,
    make_response,
)


class TestRequest:
    """Test cases for ConfluenceClient.request."""

    def test_requires_credentials(self, anonymous_session, http):
        """No credential means NotAuthenticatedError and no HTTP call."""
        client = ConfluenceClient(anonymous_session, http=http)

        with pytest.raises(NotAuthenticatedError):
            client.request("/space")

        assert http.calls == []

    def test_builds_url_from_base_and_api_root(self, client, http):
        http.queue(make_response(json_data={}))

        client.request("/content/1")

        assert http.calls[0]['url'] == "https://test.atlassian.net/wiki/rest/api/content/1"
        assert http.calls[0]['method'] == "GET"

    def test_default_headers(self, client, http):
        """Basic auth, JSON content type and JSON accept are always sent."""
        http.queue(make_response(json_data={}))

        client.request("/space")

        headers = http.calls[0]['headers']
        encoded = headers['Authorization'][len("Basic "):]
        assert base64.b64decode(encoded).decode() == "test@example.com:token123"
        assert headers['Content-Type'] == 'application/json'
        assert headers['Accept'] == 'application/json'

    def test_caller_headers_win(self, client, http):
        http.queue(make_response(json_data={}))

        client.request("/space", headers={'Accept': 'text/plain', 'X-Extra': '1'})

        headers = http.calls[0]['headers']
        assert headers['Accept'] == 'text/plain'
        assert headers['X-Extra'] == '1'
        assert headers['Content-Type'] == 'application/json'

    def test_structured_body_is_serialized(self, client, http):
        http.queue(make_response(json_data={}))

        client.request("/content", method="POST", body={'a': [1, 2]})

        assert isinstance(http.calls[0]['data'], str)
        assert json.loads(http.calls[0]['data']) == {'a': [1, 2]}

    def test_string_body_sent_as_is(self, client, http):
        http.queue(make_response(json_data={}))

        client.request("/content", method="POST", body='{"raw": true}')

        assert http.calls[0]['data'] == '{"raw": true}'

    def test_timeout_is_passed(self, client, http):
        http.queue(make_response(json_data={}))

        client.request("/space")

        assert http.calls[0]['timeout'] == 5

    def test_explicit_credentials_override_session(self, client, http):
        """Credentials passed in win over the session's."""
        http.queue(make_response(json_data={}))

        client.request("/space", credentials=OTHER_CREDENTIALS)

        assert http.calls[0]['url'].startswith("https://other.atlassian.net/wiki/rest/api")

    def test_non_success_status_raises(self, client, http):
        """A 403 raises HTTPStatusError carrying status and reason, body unread."""
        response = make_response(status=403, reason="Forbidden", json_data={'x': 1})
        http.queue(response)

        with pytest.raises(HTTPStatusError) as exc_info:
            client.request("/content/1")

        assert exc_info.value.status_code == 403
        assert "403" in str(exc_info.value)
        assert "Forbidden" in str(exc_info.value)
        response.json.assert_not_called()

    def test_connection_error_raises_unreachable(self, client, http):
        http.queue(ConnectionError("Connection refused"))

        with pytest.raises(APIUnreachableError):
            client.request("/space")

    def test_timeout_raises_unreachable(self, client, http):
        http.queue(ReadTimeout("read timed out"))

        with pytest.raises(APIUnreachableError) as exc_info:
            client.request("/space")

        assert "ReadTimeout" in str(exc_info.value)

    @pytest.mark.parametrize("error", [
        TooManyRedirects("Exceeded 30 redirects."),
        ChunkedEncodingError("broken"),
    ])
    def test_other_transport_errors_raise_unreachable(self, client, http, error):
        http.queue(error)

        with pytest.raises(APIUnreachableError) as exc_info:
            client.request("/space")

        assert type(error).__name__ in str(exc_info.value)

    def test_non_json_success_body(self, client, http):
        http.queue(make_response(status=200, json_data=None))

        with pytest.raises(MalformedResponseError):
            client.request("/space")


class TestPageOperations:
    """Test cases for page-level methods."""

    def test_get_page_expands_body_version_space(self, client, http):
        http.queue(make_response(json_data=SAMPLE_PAGE_RESPONSE))

        page = client.get_page("123")

        assert http.calls[0]['url'].endswith(
            "/content/123?expand=body.storage,version,space"
        )
        assert isinstance(page, ConfluencePage)
        assert page.version == 3

    @pytest.mark.parametrize("page_id", ["", "abc", "12/../34", "1 2"])
    def test_get_page_rejects_invalid_ids(self, client, http, page_id):
        """Non-numeric ids fail before any request."""
        with pytest.raises(ValueError):
            client.get_page(page_id)
        assert http.calls == []

    def test_get_page_malformed_response(self, client, http):
        http.queue(make_response(json_data={'id': '123'}))

        with pytest.raises(MalformedResponseError):
            client.get_page("123")

    def test_update_page_payload(self, client, http):
        """The write carries the full payload with version + 1."""
        page = ConfluencePage.from_api(SAMPLE_PAGE_RESPONSE)
        http.queue(make_response(json_data={'version': {'number': 4}}))

        client.update_page(page, "<p>old</p><p>new</p>")

        call = http.calls[0]
        assert call['method'] == "PUT"
        assert call['url'].endswith("/content/123")
        assert http.sent_json() == {
            'id': '123',
            'type': 'page',
            'title': 'Team Notes',
            'space': {'key': 'TEAM'},
            'body': {
                'storage': {
                    'value': '<p>old</p><p>new</p>',
                    'representation': 'storage',
                }
            },
            'version': {'number': 4},
        }

    def test_update_page_version_conflict(self, client, http):
        """A 409 from Confluence surfaces as HTTPStatusError."""
        page = ConfluencePage.from_api(SAMPLE_PAGE_RESPONSE)
        http.queue(make_response(status=409, reason="Conflict"))

        with pytest.raises(HTTPStatusError) as exc_info:
            client.update_page(page, "<p>x</p>")

        assert exc_info.value.status_code == 409

    def test_list_spaces(self, client, http):
        http.queue(make_response(json_data=SAMPLE_SPACES_RESPONSE))

        spaces = client.list_spaces(limit=50)

        assert http.calls[0]['url'].endswith("/space?limit=50")
        assert [s.key for s in spaces] == ["TEAM", "DOCS"]

    def test_list_space_pages_quotes_key(self, client, http):
        http.queue(make_response(json_data=SAMPLE_SPACE_PAGES_RESPONSE))

        pages = client.list_space_pages("~user name")

        assert "/space/~user%20name/content/page?limit=100&status=current" in http.calls[0]['url']
        assert [p.page_id for p in pages] == ["123", "456"]

    def test_create_page_with_parent(self, client, http):
        http.queue(make_response(json_data={
            'id': '789', 'title': 'New', '_links': {'webui': '/spaces/TEAM/pages/789'}
        }))

        created = client.create_page("TEAM", "New", "<p>hi</p>", parent_id="123")

        sent = http.sent_json()
        assert http.calls[0]['method'] == "POST"
        assert sent['ancestors'] == [{'id': '123'}]
        assert sent['space'] == {'key': 'TEAM'}
        assert created.page_id == '789'

    def test_page_url(self, client):
        assert client.page_url("/spaces/TEAM/pages/1") == (
            "https://test.atlassian.net/wiki/spaces/TEAM/pages/1"
        )


class TestSanitizeCredentials:
    """Test cases for log sanitization."""

    def test_masks_authorization_header(self, client):
        assert client._sanitize_credentials("Authorization: Basic abc==") == (
            "Authorization: ***REDACTED***"
        )

    def test_masks_token_fields(self, client):
        assert "s3cret" not in client._sanitize_credentials('{"token": "s3cret"}')

    def test_masks_email_local_part(self, client):
        assert client._sanitize_credentials("user test@example.com failed") == (
            "user ***@example.com failed"
        )

    def test_empty_text(self, client):
        assert client._sanitize_credentials("") == ""


def test_session_credential_read_per_request(http):
    """The client reads the session's credential at call time."""
    session = Session(MemoryCredentialStore())
    client = ConfluenceClient(session, http=http)
    session.set_credentials(OTHER_CREDENTIALS)
    http.queue(make_response(json_data={}))

    client.request("/space")

    assert http.calls[0]['url'].startswith("https://other.atlassian.net")


def test_default_http_session_created():
    """Without an injected session the client creates a requests.Session."""
    client = ConfluenceClient(Session(MemoryCredentialStore()))
    assert isinstance(client._http, requests.Session)

"""Fake HTTP layer for unit tests.

FakeHttp stands in for requests.Session in ConfluenceClient. It replays
queued responses (or raises queued exceptions) and records every request
so tests can assert on method, URL, headers and body, or that no request
was made at all.
"""

import json
from typing import Any, List, Optional
from unittest.mock import Mock


def make_response(status: int = 200, json_data: Any = None, reason: str = "OK") -> Mock:
    """Create a mock requests.Response.

    A response built with json_data=None raises ValueError from json(),
    like requests does for a non-JSON body.
    """
    response = Mock()
    response.status_code = status
    response.reason = reason
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


class FakeHttp:
    """Replays queued responses for ConfluenceClient."""

    def __init__(self, *responses: Any):
        self._queue: List[Any] = list(responses)
        self.calls: List[dict] = []

    def queue(self, *responses: Any) -> None:
        self._queue.extend(responses)

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({
            'method': method,
            'url': url,
            'headers': headers or {},
            'data': data,
            'timeout': timeout,
        })
        if not self._queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self._queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def sent_json(self, index: int = -1) -> Optional[dict]:
        """Decode the JSON body of a recorded request."""
        data = self.calls[index]['data']
        return json.loads(data) if data is not None else None

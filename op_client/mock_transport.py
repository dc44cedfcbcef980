"""Offline transport: canned OP API responses served through a real requests Session.

Usage example:
    session = mock_session({'/v1/accounts': (200, {'accounts': []})})
    response = get(options, '/v1/accounts', session=session)
"""
from __future__ import annotations
import io
import json
import threading
from typing import Any, Dict, List, Tuple, Union
from urllib.parse import urlsplit

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from .transport import new_session

Route = Union[Tuple[int, Any], Tuple[int, Any, str], BaseException]

REASONS = {200: 'OK', 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden',
           404: 'Not Found', 500: 'Internal Server Error', 502: 'Bad Gateway', 503: 'Service Unavailable'}

SAMPLE_ROUTES: Dict[str, Route] = {
    '/v1/accounts': (200, {'accounts': [
        {'accountId': 'mock-acc-1', 'name': 'Checking', 'balance': 1250.40, 'currency': 'EUR'},
        {'accountId': 'mock-acc-2', 'name': 'Savings', 'balance': 8100.00, 'currency': 'EUR'},
    ]}),
    '/v1/unauthorized': (401, {'errors': [
        {'id': 'mock-err-1', 'level': 'error', 'type': 'unauthorized', 'message': 'Invalid bearer token'},
    ]}),
    '/v1/broken': (502, '<html><body>Bad Gateway</body></html>'),
}


class MockBody(io.BytesIO):
    """Response body that records when requests hands the connection back."""
    released = False

    def release_conn(self):
        self.released = True


class FailingBody(MockBody):
    """Body whose first read raises ``error``, like a connection dropped mid-response."""

    def __init__(self, error: BaseException):
        super().__init__(b'')
        self.error = error

    def read(self, *args):
        raise self.error


def _encode(body: Any) -> Tuple[bytes, str]:
    if isinstance(body, bytes):
        return body, 'application/octet-stream'
    if isinstance(body, str):
        return body.encode('utf-8'), 'text/html; charset=utf-8'
    return json.dumps(body).encode('utf-8'), 'application/json'


class MockAdapter(BaseAdapter):
    """Serve ``(status, body[, content_type])`` per URL path; an exception route is raised instead.

    An exception as ``body`` is raised while the body is read.
    """

    def __init__(self, routes: Dict[str, Route] | None = None):
        super().__init__()
        self.routes = dict(SAMPLE_ROUTES if routes is None else routes)
        self.requests: List[requests.PreparedRequest] = []
        self.timeouts: List[Any] = []
        self.responses: List[requests.Response] = []
        self._lock = threading.Lock()

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        with self._lock:
            self.requests.append(request)
            self.timeouts.append(timeout)
        path = urlsplit(request.url).path
        route = self.routes.get(path)
        if route is None:
            route = (404, {'errors': [
                {'id': 'mock-404', 'level': 'error', 'type': 'not_found', 'message': f'No route for {path}'},
            ]})
        if isinstance(route, BaseException):
            raise route
        status, body = route[0], route[1]
        if isinstance(body, BaseException):
            content, ctype = b'', 'application/json'
            raw: MockBody = FailingBody(body)
        else:
            content, ctype = _encode(body)
            raw = MockBody(content)
        if len(route) == 3:
            ctype = route[2]

        resp = requests.Response()
        resp.status_code = status
        resp.reason = REASONS.get(status, '')
        resp.headers = CaseInsensitiveDict({'Content-Type': ctype, 'Content-Length': str(len(content))})
        resp.raw = raw
        resp.url = request.url
        resp.request = request
        resp.encoding = 'utf-8'
        with self._lock:
            self.responses.append(resp)
        return resp

    def close(self):
        pass


def mock_session(routes: Dict[str, Route] | None = None) -> requests.Session:
    session = new_session()
    adapter = MockAdapter(routes)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session

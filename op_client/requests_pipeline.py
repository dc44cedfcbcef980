"""Request pipeline for the OP API.

URL builder -> header composer -> query composer -> dispatcher -> response classifier.
Only GET is exposed; every failure surfaces as one of TransportError,
DeserializationError or ApiErrors.
"""
from __future__ import annotations
import asyncio
import dataclasses
import enum
import math
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

import requests
from requests.auth import AuthBase

from .exceptions import ApiErrors, DeserializationError, TransportError
from .models import parse_api_errors
from .options import DEFAULT_TIMEOUT
from .transport import get_session, send


def get_request_url(options, url: str) -> str:
    return f"{options.base_url()}{url}"


class BearerAuth(AuthBase):
    """Bearer token auth. Request-level auth takes precedence over netrc credentials."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, r):
        r.headers['Authorization'] = f"Bearer {self.token}"
        return r


def set_headers(options, request: requests.Request) -> requests.Request:
    token = options.authorization()
    request.headers['x-api-key'] = options.api_key()
    request.headers['Authorization'] = f"Bearer {token}"
    request.headers['Accept'] = 'application/json'
    request.auth = BearerAuth(token)
    return request


def _query_value(key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bytes):
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError as e:
            raise TransportError(f"Query parameter {key!r} is not valid UTF-8") from e
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset, dict)) or dataclasses.is_dataclass(value):
        raise TransportError(f"Query parameter {key!r} is not a scalar: {type(value).__name__}")
    return str(value)


def query_pairs(query: Any) -> List[Tuple[str, str]]:
    """Flatten a structured value into ordered ``(key, value)`` string pairs.

    Accepts a mapping, a dataclass instance, an object with ``to_query_params()``
    or an iterable of 2-tuples. ``None`` values are dropped.
    """
    if hasattr(query, 'to_query_params'):
        query = query.to_query_params()
    if dataclasses.is_dataclass(query) and not isinstance(query, type):
        items = [(f.name, getattr(query, f.name)) for f in dataclasses.fields(query)]
    elif isinstance(query, Mapping):
        items = list(query.items())
    elif isinstance(query, (str, bytes)):
        raise TransportError(f"Query must be structured, got {type(query).__name__}")
    else:
        try:
            items = [item if isinstance(item, (str, bytes)) else tuple(item) for item in query]
        except TypeError as e:
            raise TransportError(f"Query is not serializable: {type(query).__name__}") from e
        if any(isinstance(item, (str, bytes)) or len(item) != 2 for item in items):
            raise TransportError('Query pairs must be (key, value) tuples')

    pairs: List[Tuple[str, str]] = []
    for key, value in items:
        key = str(key)
        encoded = _query_value(key, value)
        if encoded is not None:
            pairs.append((key, encoded))
    return pairs


def set_query_params(query: Any, request: requests.Request) -> requests.Request:
    if query is None:
        return request
    request.params = query_pairs(query)
    return request


def check_errors(response: requests.Response) -> requests.Response:
    """Pass a 200 through untouched; turn anything else into an exception."""
    if response.status_code == 200:
        return response
    try:
        try:
            response.content  # read body
        except requests.RequestException as e:
            raise TransportError(f"Failed reading error body (HTTP {response.status_code}): {e}") from e
        try:
            payload = response.json()
        except ValueError as e:
            raise DeserializationError(f"HTTP {response.status_code} body is not valid JSON: {e}") from e
        errors = parse_api_errors(payload)
    finally:
        response.close()
    raise ApiErrors(errors, status=response.status_code)


def _resolve_timeout(options, timeout: Optional[float]) -> float:
    if timeout is None:
        timeout = options.timeout() if hasattr(options, 'timeout') else DEFAULT_TIMEOUT
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not math.isfinite(timeout) or timeout <= 0:
        raise TransportError(f"Timeout must be a positive finite number of seconds, got {timeout!r}")
    return float(timeout)


def get(options, url: str, query: Any = None, *, session: requests.Session | None = None, timeout: float | None = None) -> requests.Response:
    """Perform a GET against ``options.base_url() + url``.

    Returns the raw streamed response on HTTP 200 (body unread). Raises
    TransportError, DeserializationError or ApiErrors otherwise.
    """
    request_url = get_request_url(options, url)
    request = requests.Request('GET', request_url)
    request = set_headers(options, set_query_params(query, request))
    response = send(session or get_session(), request, _resolve_timeout(options, timeout))
    return check_errors(response)


async def aget(options, url: str, query: Any = None, *, session: requests.Session | None = None, timeout: float | None = None) -> requests.Response:
    """Coroutine form of ``get``; the round trip runs in a worker thread."""
    return await asyncio.to_thread(get, options, url, query, session=session, timeout=timeout)


class Requests:
    """Namespace for the request helpers used by higher-level clients."""
    get = staticmethod(get)
    aget = staticmethod(aget)

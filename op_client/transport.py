from __future__ import annotations
import atexit
import http.cookiejar
import logging
import threading
from typing import Optional

import requests

from .exceptions import TransportError

logger = logging.getLogger(__name__)

_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def new_session() -> requests.Session:
    """Session that never stores cookies, so no state leaks between requests."""
    session = requests.Session()
    session.cookies.set_policy(http.cookiejar.DefaultCookiePolicy(allowed_domains=[]))
    return session


def get_session() -> requests.Session:
    """Return the process-wide Session, creating it on first use."""
    global _session
    with _session_lock:
        if _session is None:
            _session = new_session()
        return _session


def close_session() -> None:
    global _session
    with _session_lock:
        if _session is not None:
            _session.close()
            _session = None


atexit.register(close_session)


def send(session: requests.Session, request: requests.Request, timeout: float) -> requests.Response:
    """Prepare and send one request. Single attempt, body left unread."""
    try:
        prepared = session.prepare_request(request)
    except requests.RequestException as e:
        raise TransportError(f"Invalid request: {e}") from e
    # Headers carry credentials; trace method and URL only
    logger.debug("Sending request: %s %s", prepared.method, prepared.url)
    try:
        return session.send(prepared, timeout=timeout, stream=True)
    except requests.Timeout as e:
        raise TransportError(f"Request timed out after {timeout} seconds: {e}") from e
    except requests.RequestException as e:
        raise TransportError(f"Network error: {e}") from e
    except ValueError as e:
        # urllib3 rejects malformed settings (timeouts, pool args) with ValueError
        raise TransportError(f"Invalid request settings: {e}") from e

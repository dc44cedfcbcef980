from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

if TYPE_CHECKING:
    from .models import ApiError


class OpClientError(Exception):
    """Base class for every failure raised by op_client."""


class ConfigurationError(OpClientError):
    """Missing or invalid configuration (environment variables, timeout)."""


class TransportError(OpClientError):
    """Request could not be sent or its response could not be read (connect, DNS, TLS, timeout, bad URL/header/query)."""


class DeserializationError(OpClientError):
    """Non-200 response whose body is not the expected ``{"errors": [...]}`` shape."""


class ApiErrors(OpClientError):
    """Structured failure reported by the API.

    Holds every ``ApiError`` from the response body, in order. ``status`` is the
    HTTP status of the failed response; all non-200 statuses are handled alike.
    """

    def __init__(self, errors: List['ApiError'], status: Optional[int] = None):
        self.errors = list(errors)
        self.status = status
        super().__init__(str(self))

    def __reduce__(self):
        return (ApiErrors, (self.errors, self.status))

    def __str__(self) -> str:
        return f"API error occurred, reasons: {self.errors!r}"

    def __iter__(self) -> Iterator['ApiError']:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {'errors': [e.to_dict() for e in self.errors]}
        if self.status is not None:
            out['status'] = self.status
        return out

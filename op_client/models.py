from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from .exceptions import DeserializationError

ERROR_FIELDS = ('id', 'level', 'type', 'message')


@dataclass(frozen=True)
class ApiError:
    """Single error record reported by the OP API."""
    id: str
    level: str
    type: str
    message: str

    @classmethod
    def from_dict(cls, data: Any) -> 'ApiError':
        if not isinstance(data, dict):
            raise DeserializationError(f'Error record must be an object, got {type(data).__name__}')
        missing = [f for f in ERROR_FIELDS if f not in data]
        if missing:
            raise DeserializationError(f'Error record missing fields: {missing}')
        bad = [f for f in ERROR_FIELDS if not isinstance(data[f], str)]
        if bad:
            raise DeserializationError(f'Error record fields must be strings: {bad}')
        return cls(**{f: data[f] for f in ERROR_FIELDS})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def parse_api_errors(payload: Any) -> List[ApiError]:
    """Validate a decoded error body and return its records in order.

    Expected shape: ``{"errors": [{"id", "level", "type", "message"}, ...]}``.
    An empty ``errors`` list is accepted.
    """
    if not isinstance(payload, dict):
        raise DeserializationError(f'Error body must be an object, got {type(payload).__name__}')
    if 'errors' not in payload:
        raise DeserializationError("Error body has no 'errors' key")
    records = payload['errors']
    if not isinstance(records, list):
        raise DeserializationError("'errors' must be a list")
    return [ApiError.from_dict(r) for r in records]

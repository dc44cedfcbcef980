"""Helper layer for authenticated GET requests against the OP API.

Usage example:
    from op_client import Options, get
    options = Options.from_env()
    response = get(options, '/v1/accounts', {'limit': 10})
    accounts = response.json()
"""
from .exceptions import (  # noqa: F401
    ApiErrors,
    ConfigurationError,
    DeserializationError,
    OpClientError,
    TransportError,
)
from .models import ApiError  # noqa: F401
from .options import Options  # noqa: F401
from .requests_pipeline import Requests, aget, get  # noqa: F401
from .transport import close_session, get_session  # noqa: F401

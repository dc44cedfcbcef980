from __future__ import annotations
import math
import os
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_TIMEOUT = 30.0


def mask(val: str) -> str:
    if len(val) <= 6:
        return '*' * len(val)
    return val[:4] + '...' + val[-4:]


class Options:
    """Connection settings for the OP API: base URL, API key and bearer token.

    Read-only once built; the pipeline only calls the accessor methods.
    """

    def __init__(self, base_url: str, api_key: str, authorization: str, timeout: float = DEFAULT_TIMEOUT):
        if not math.isfinite(timeout) or timeout <= 0:
            raise ConfigurationError(f'timeout must be a positive finite number, got {timeout}')
        self._base_url = base_url
        self._api_key = api_key
        self._authorization = authorization
        self._timeout = float(timeout)

    @classmethod
    def from_env(cls) -> 'Options':
        base_url = cls.env('OP_API_BASE_URL')
        api_key = cls.env('OP_API_KEY')
        authorization = cls.env('OP_API_AUTHORIZATION')
        raw_timeout = cls.env('OP_API_TIMEOUT', required=False)
        timeout = DEFAULT_TIMEOUT
        if raw_timeout and raw_timeout.strip():
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigurationError(f'OP_API_TIMEOUT must be a number, got {raw_timeout!r}')
        return cls(base_url, api_key, authorization, timeout=timeout)  # type: ignore[arg-type]

    @staticmethod
    def env(name: str, required: bool = True) -> Optional[str]:
        val = os.getenv(name)
        if required and (val is None or val.strip() == ''):
            raise ConfigurationError(f"Missing required environment variable: {name}")
        return val

    def base_url(self) -> str:
        return self._base_url

    def api_key(self) -> str:
        return self._api_key

    def authorization(self) -> str:
        return self._authorization

    def timeout(self) -> float:
        return self._timeout

    def __repr__(self) -> str:
        return (
            f"Options(base_url={self._base_url!r}, api_key={mask(self._api_key)!r}, "
            f"authorization={mask(self._authorization)!r}, timeout={self._timeout})"
        )


def load_env_file(env_path: Path) -> None:
    """Load KEY=VALUE lines into os.environ, keeping any non-empty existing value."""
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        k = k.strip(); v = v.strip().strip('"').strip("'")
        if not k:
            continue
        existing = os.environ.get(k)
        if existing is None or existing.strip() == '':
            os.environ[k] = v

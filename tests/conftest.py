import pytest

from op_client import Options

BASE_URL = 'https://api.example.com'


@pytest.fixture
def options():
    return Options(BASE_URL, 'key-123456', 'token-abcdef', timeout=5)

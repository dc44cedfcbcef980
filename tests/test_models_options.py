import os
import pickle
from pathlib import Path

import pytest

from op_client import ApiError, ApiErrors, ConfigurationError, DeserializationError, Options
from op_client.models import parse_api_errors
from op_client.options import load_env_file
from op_client.transport import close_session, get_session

ENV_VARS = ['OP_API_BASE_URL', 'OP_API_KEY', 'OP_API_AUTHORIZATION', 'OP_API_TIMEOUT']


@pytest.fixture
def clean_env(monkeypatch):
    for k in ENV_VARS:
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def test_api_error_from_dict_ignores_extra_fields():
    err = ApiError.from_dict({'id': 'E9', 'level': 'fatal', 'type': 'server', 'message': 'boom', 'trace': 'x'})
    assert err == ApiError('E9', 'fatal', 'server', 'boom')
    assert err.to_dict() == {'id': 'E9', 'level': 'fatal', 'type': 'server', 'message': 'boom'}


def test_parse_api_errors_reports_missing_fields():
    with pytest.raises(DeserializationError, match='message'):
        parse_api_errors({'errors': [{'id': 'E1', 'level': 'error', 'type': 'x'}]})


def test_parse_api_errors_rejects_non_object_records():
    with pytest.raises(DeserializationError):
        parse_api_errors({'errors': ['E1']})


def test_api_errors_without_status_omits_it():
    errs = ApiErrors([ApiError('E1', 'error', 't', 'm')])
    assert errs.to_dict() == {'errors': [{'id': 'E1', 'level': 'error', 'type': 't', 'message': 'm'}]}
    assert list(errs) == errs.errors


def test_api_errors_survive_pickling():
    errs = ApiErrors([ApiError('E1', 'error', 't', 'm')], status=404)
    restored = pickle.loads(pickle.dumps(errs))
    assert restored.errors == errs.errors
    assert restored.status == 404
    assert str(restored) == str(errs)


def test_options_accessors_and_masked_repr(options):
    assert options.base_url() == 'https://api.example.com'
    assert options.api_key() == 'key-123456'
    assert options.authorization() == 'token-abcdef'
    assert options.timeout() == 5.0
    text = repr(options)
    assert 'key-123456' not in text and 'token-abcdef' not in text


@pytest.mark.parametrize('timeout', [0, -2.5, float('nan'), float('inf')])
def test_options_reject_invalid_timeout(timeout):
    with pytest.raises(ConfigurationError):
        Options('https://api.example.com', 'k', 't', timeout=timeout)


def test_options_from_env(clean_env):
    clean_env.setenv('OP_API_BASE_URL', 'https://sandbox.example.com')
    clean_env.setenv('OP_API_KEY', 'k1')
    clean_env.setenv('OP_API_AUTHORIZATION', 't1')
    clean_env.setenv('OP_API_TIMEOUT', '12.5')
    opts = Options.from_env()
    assert (opts.base_url(), opts.api_key(), opts.authorization(), opts.timeout()) == (
        'https://sandbox.example.com', 'k1', 't1', 12.5)


def test_options_from_env_defaults_timeout(clean_env):
    clean_env.setenv('OP_API_BASE_URL', 'https://sandbox.example.com')
    clean_env.setenv('OP_API_KEY', 'k1')
    clean_env.setenv('OP_API_AUTHORIZATION', 't1')
    assert Options.from_env().timeout() == 30.0


@pytest.mark.parametrize('missing', ['OP_API_BASE_URL', 'OP_API_KEY', 'OP_API_AUTHORIZATION'])
def test_options_from_env_requires_variables(clean_env, missing):
    for k in ['OP_API_BASE_URL', 'OP_API_KEY', 'OP_API_AUTHORIZATION']:
        clean_env.setenv(k, 'value')
    clean_env.setenv(missing, '   ')
    with pytest.raises(ConfigurationError, match=missing):
        Options.from_env()


def test_options_from_env_rejects_bad_timeout(clean_env):
    for k in ['OP_API_BASE_URL', 'OP_API_KEY', 'OP_API_AUTHORIZATION']:
        clean_env.setenv(k, 'value')
    clean_env.setenv('OP_API_TIMEOUT', 'soon')
    with pytest.raises(ConfigurationError):
        Options.from_env()
    clean_env.setenv('OP_API_TIMEOUT', 'nan')
    with pytest.raises(ConfigurationError):
        Options.from_env()


def test_load_env_file_keeps_existing_values(clean_env, tmp_path: Path):
    env_file = tmp_path / '.env'
    env_file.write_text(
        '# comment\nOP_API_KEY="from-file"\nOP_API_BASE_URL=https://file.example.com\nnot a pair\n',
        encoding='utf-8',
    )
    clean_env.setenv('OP_API_BASE_URL', 'https://shell.example.com')
    clean_env.setenv('OP_API_KEY', '')
    load_env_file(env_file)
    assert os.environ['OP_API_KEY'] == 'from-file'
    assert os.environ['OP_API_BASE_URL'] == 'https://shell.example.com'


def test_load_env_file_missing_is_noop(tmp_path: Path):
    load_env_file(tmp_path / 'nope.env')


def test_shared_session_is_reused_until_closed():
    first = get_session()
    assert get_session() is first
    close_session()
    second = get_session()
    assert second is not first
    close_session()


def test_recreating_session_registers_no_extra_exit_handlers(monkeypatch):
    from op_client import transport
    registered = []
    monkeypatch.setattr(transport.atexit, 'register', registered.append)
    for _ in range(3):
        get_session()
        close_session()
    assert registered == []

#!/usr/bin/env python
"""CLI to issue one authenticated GET against the OP API.

Examples:
  python scripts/op_get.py --path /v1/accounts
  python scripts/op_get.py --path /v1/accounts/transactions --param accountId=123 --param limit=20 --out data/tx.json
  python scripts/op_get.py --path /v1/unauthorized --mock --verbose

Environment (or a local .env file):
  OP_API_BASE_URL, OP_API_KEY, OP_API_AUTHORIZATION, OP_API_TIMEOUT (optional)

Exit codes: 0 success, 1 API reported errors, 2 transport/format/config failure.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import requests

# Ensure project root is on sys.path when running directly
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from op_client import ApiErrors, Options, OpClientError, get
from op_client.mock_transport import mock_session
from op_client.options import load_env_file

logger = logging.getLogger('op_get')


def parse_param(raw: str) -> Tuple[str, str]:
    if '=' not in raw:
        raise argparse.ArgumentTypeError(f'expected key=value, got {raw!r}')
    k, v = raw.split('=', 1)
    return k.strip(), v


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description='GET a resource from the OP API')
    p.add_argument('--path', required=True, help='API path appended to OP_API_BASE_URL, e.g. /v1/accounts')
    p.add_argument('--param', action='append', type=parse_param, default=[], help='Query parameter key=value (repeatable)')
    p.add_argument('--out', help='Output file path (default: stdout)')
    p.add_argument('--timeout', type=float, help='Override request timeout in seconds')
    p.add_argument('--mock', action='store_true', help='Serve canned responses instead of calling the API')
    p.add_argument('--verbose', action='store_true')
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='[%(levelname)s] %(message)s')
    load_env_file(PROJECT_ROOT / '.env')

    session = None
    try:
        if args.mock:
            options = Options('https://mock.op-api.local', 'mock-key', 'mock-token')
            session = mock_session()
        else:
            options = Options.from_env()
        response = get(options, args.path, args.param or None, session=session, timeout=args.timeout)
    except ApiErrors as e:
        logger.error('HTTP %s: API reported %d error(s)', e.status, len(e))
        for err in e:
            print(f"{err.level}\t{err.type}\t{err.id}\t{err.message}", file=sys.stderr)
        return 1
    except OpClientError as e:
        logger.error('%s: %s', type(e).__name__, e)
        return 2
    finally:
        if session is not None:
            session.close()

    try:
        if 'application/json' in response.headers.get('Content-Type', ''):
            text = json.dumps(response.json(), ensure_ascii=False, indent=2)
        else:
            text = response.text
    except ValueError as e:
        logger.error('Response body is not valid JSON: %s', e)
        return 2
    except requests.RequestException as e:
        logger.error('Failed reading response body: %s', e)
        return 2
    finally:
        response.close()
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding='utf-8')
        logger.info('Wrote %s', out_path)
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())

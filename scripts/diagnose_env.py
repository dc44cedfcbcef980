#!/usr/bin/env python
"""Environment & connectivity diagnostics for the OP API.

Usage:
  python scripts/diagnose_env.py [--ping /v1/accounts]

Without flags runs variable presence checks. Use --ping PATH to issue one GET through the request pipeline.
"""
from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from op_client import ApiErrors, Options, OpClientError, get
from op_client.options import load_env_file, mask

MANDATORY: List[str] = ['OP_API_BASE_URL', 'OP_API_KEY', 'OP_API_AUTHORIZATION']
OPTIONAL: List[str] = ['OP_API_TIMEOUT']
SECRETS = {'OP_API_KEY', 'OP_API_AUTHORIZATION'}


def check_presence() -> Dict[str, str]:
    report: Dict[str, str] = {}
    for k in MANDATORY:
        v = os.getenv(k)
        report[k] = 'OK' if v and v.strip() else 'MISSING'
    return report


def print_report() -> None:
    presence = check_presence()
    print('\n[VARIABLE PRESENCE]')
    widest = max(len(k) for k in MANDATORY + OPTIONAL)
    for k, status in presence.items():
        raw = os.getenv(k) or ''
        shown = mask(raw) if k in SECRETS else raw
        print(f"  {k.ljust(widest)} : {status:<8} {'' if status != 'OK' else shown}")
    print('\n[OPTIONAL]')
    for k in OPTIONAL:
        raw = os.getenv(k)
        print(f"  {k.ljust(widest)} : {raw if raw else '(default)'}")
    print()


def ping(path: str) -> int:
    missing = [k for k, status in check_presence().items() if status != 'OK']
    if missing:
        print(f"[ping] Skipping connectivity test (missing: {', '.join(missing)})")
        return 2
    try:
        options = Options.from_env()
        print(f"[ping] GET {options.base_url()}{path}")
        response = get(options, path)
    except ApiErrors as e:
        print(f"[ping] Status: {e.status}")
        for err in e:
            print(f"[ping] {err.level} {err.type} ({err.id}): {err.message}")
        if e.status in (401, 403):
            print("HINT 401/403: Check OP_API_KEY and that the bearer token in OP_API_AUTHORIZATION has not expired.")
        return 1
    except OpClientError as e:
        print(f"[ping] ERROR {type(e).__name__}: {e}")
        return 2
    print(f"[ping] Status: {response.status_code}")
    response.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description='Diagnose OP API environment')
    p.add_argument('--ping', metavar='PATH', help='Issue one GET to PATH after the presence checks')
    args = p.parse_args(argv)
    load_env_file(PROJECT_ROOT / '.env')
    print_report()
    if args.ping:
        return ping(args.ping)
    return 0


if __name__ == '__main__':
    sys.exit(main())

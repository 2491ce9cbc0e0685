#!/usr/bin/env python3
"""
Route Contract Checker - detects drift between a Flask app and its contracts.

Reports:
1. Routes the app serves without contract validation
2. Contracts in the registry that no handler implements

Run:
    python scripts/check_route_contract.py --app myservice.app:app --registry myservice.api:REGISTRY

Exit code: 0 if OK, 1 if drift detected

Use in CI to block merges that add unvalidated endpoints.
"""

import argparse
import importlib
import sys

from restcontract.coverage import find_route_drift


def load_object(spec: str):
    """Load "package.module:attribute" (the attribute may be a zero-arg factory)."""
    module_name, _, attr = spec.partition(":")
    if not attr:
        raise SystemExit(f"Expected module:attribute, got '{spec}'")
    obj = getattr(importlib.import_module(module_name), attr)
    return obj() if callable(obj) and not hasattr(obj, "url_map") and not hasattr(obj, "lookup") else obj


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check Flask routes against a contract registry")
    parser.add_argument("--app", required=True, help="Flask app as module:attribute")
    parser.add_argument("--registry", required=True, help="ContractRegistry as module:attribute")
    parser.add_argument("--exempt", action="append", default=[],
                        help="Rule path allowed without a contract (repeatable)")
    args = parser.parse_args(argv)

    app = load_object(args.app)
    registry = load_object(args.registry)

    print("Checking route contract coverage...\n")
    drift = find_route_drift(app, registry, exempt=args.exempt)
    print(drift.format())
    return 0 if drift.ok else 1


if __name__ == "__main__":
    sys.exit(main())

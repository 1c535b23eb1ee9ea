# src/credgrain/cli.py
from __future__ import annotations

"""credgrain command line.

  credgrain allocate --policy policies.yaml --identities identities.json
  credgrain mint-budget --budget budget.yaml --weights weights.json --timestamps nodes.json
  credgrain serve
"""

import argparse
import json
import sys
from typing import Any, List, Optional

from credgrain.env import load_dotenv_if_present
from credgrain.ledger.allocation import allocation_total, compute_allocations
from credgrain.ledger.errors import CredGrainError
from credgrain.ledger.serialization import allocation_to_json, identities_from_json
from credgrain.loader import load_mint_budget, load_policies, read_structured_file
from credgrain.mint.budget import apply_budget
from credgrain.mint.interval import partition_weekly
from credgrain.mint.serialization import (
    adjusted_weights_to_json,
    partition_from_json,
    partition_to_json,
    timestamps_from_json,
    weights_from_json,
)
from credgrain.structured_logging import configure_structured_logging


def _dump(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")


def _cmd_allocate(args: argparse.Namespace) -> int:
    policies = load_policies(args.policy)
    identities = identities_from_json(read_structured_file(args.identities))
    allocations = compute_allocations(policies, identities)
    _dump(
        {
            "allocations": [allocation_to_json(a) for a in allocations],
            "total": allocation_total(allocations).to_decimal_string(),
        }
    )
    return 0


def _cmd_mint_budget(args: argparse.Namespace) -> int:
    budget = load_mint_budget(args.budget)
    weights = weights_from_json(read_structured_file(args.weights)) if args.weights else {}
    if args.intervals:
        partition = partition_from_json(read_structured_file(args.intervals))
    else:
        partition = partition_weekly(timestamps_from_json(read_structured_file(args.timestamps)))
    out = adjusted_weights_to_json(apply_budget(weights, budget, partition))
    out["intervals"] = partition_to_json(partition)
    _dump(out)
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    from credgrain.api.__main__ import main as serve_main

    serve_main()
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="credgrain", description="Grain distributions and Cred minting budgets.")
    ap.add_argument("--log-level", default=None, help="Overrides CREDGRAIN_LOG_LEVEL")
    sub = ap.add_subparsers(dest="command", required=True)

    p_alloc = sub.add_parser("allocate", help="Compute allocations for one or more policies")
    p_alloc.add_argument("--policy", required=True, help="YAML/JSON policy file (object, list, or {policies: [...]})")
    p_alloc.add_argument("--identities", required=True, help="JSON list of {id, cred, paid}")
    p_alloc.set_defaults(func=_cmd_allocate)

    p_mint = sub.add_parser("mint-budget", help="Apply a minting budget to node weights")
    p_mint.add_argument("--budget", required=True, help="YAML/JSON minting budget file")
    p_mint.add_argument("--weights", default=None, help="JSON list of {address, weight}")
    group = p_mint.add_mutually_exclusive_group(required=True)
    group.add_argument("--intervals", default=None, help="JSON interval partition")
    group.add_argument("--timestamps", default=None, help="JSON list of {address, timestampMs}; grouped weekly")
    p_mint.set_defaults(func=_cmd_mint_budget)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.set_defaults(func=_cmd_serve)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv_if_present()
    args = build_parser().parse_args(argv)
    configure_structured_logging(args.log_level)
    try:
        return int(args.func(args))
    except CredGrainError as e:
        sys.stderr.write(json.dumps({"ok": False, "error": e.to_json()}, sort_keys=True) + "\n")
        return 2
    except FileNotFoundError as e:
        sys.stderr.write(json.dumps({"ok": False, "error": {"code": "file_not_found", "message": str(e)}}) + "\n")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

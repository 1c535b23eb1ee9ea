# tests/test_cli.py
from __future__ import annotations

import json

from credgrain.cli import main


def _write(path, obj) -> str:
    path.write_text(json.dumps(obj), encoding="utf-8")
    return str(path)


def test_allocate_prints_allocations(tmp_path, capsys) -> None:
    policy = tmp_path / "policies.yaml"
    policy.write_text(
        "policies:\n"
        "  - policyType: IMMEDIATE\n"
        "    budget: '40'\n"
        "  - policyType: RECENT\n"
        "    budget: '10'\n"
        "    discount: 0.5\n",
        encoding="utf-8",
    )
    identities = _write(
        tmp_path / "identities.json",
        [{"id": "x", "cred": [5, 1], "paid": "0"}, {"id": "y", "cred": [0, 3], "paid": "0"}],
    )

    rc = main(["allocate", "--policy", str(policy), "--identities", identities])
    assert rc == 0

    out = json.loads(capsys.readouterr().out)
    assert len(out["allocations"]) == 2
    assert out["total"] == "50.000000000000000000"
    first = {r["id"]: r["amount"] for r in out["allocations"][0]["receipts"]}
    assert first == {"x": "10.000000000000000000", "y": "30.000000000000000000"}


def test_allocate_reports_errors_on_stderr(tmp_path, capsys) -> None:
    policy = _write(tmp_path / "policy.json", {"policyType": "BALANCED", "budget": "-1"})
    identities = _write(tmp_path / "identities.json", [{"id": "x", "cred": [1]}])

    rc = main(["allocate", "--policy", policy, "--identities", identities])
    assert rc == 2

    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["ok"] is False
    assert err["error"]["code"] == "negative_budget"


def test_mint_budget_groups_timestamps_weekly(tmp_path, capsys) -> None:
    budget = _write(
        tmp_path / "budget.json",
        {"intervalLength": "WEEKLY", "lines": [{"prefix": ["foo"], "policies": [{"startTimeMs": 0, "budget": 1}]}]},
    )
    weights = _write(tmp_path / "weights.json", [{"address": ["foo", "a"], "weight": 4}])
    timestamps = _write(
        tmp_path / "timestamps.json",
        [{"address": ["foo", "a"], "timestampMs": 1609632000000}, {"address": ["bar"], "timestampMs": 1609632000001}],
    )

    rc = main(["mint-budget", "--budget", budget, "--weights", weights, "--timestamps", timestamps])
    assert rc == 0

    out = json.loads(capsys.readouterr().out)
    w = {tuple(x["address"]): x["weight"] for x in out["weights"]}
    assert w[("foo", "a")] == 1.0
    assert out["adjustments"][0]["normalizer"] == 0.25
    assert out["intervals"] == [
        {"startTimeMs": 1609632000000, "endTimeMs": 1609632000000 + 604800000, "addresses": [["foo", "a"], ["bar"]]}
    ]


def test_missing_file_exits_2(tmp_path, capsys) -> None:
    rc = main(["allocate", "--policy", str(tmp_path / "nope.yaml"), "--identities", str(tmp_path / "nope.json")])
    assert rc == 2
    assert "file_not_found" in capsys.readouterr().err

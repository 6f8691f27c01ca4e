"""Tests for the CLI run/snapshot flow."""

from __future__ import annotations

import json

from cli.main import run_cli


def _write_config(tmp_path, num_agents: int = 4):
    config_path = tmp_path / "swarm.yaml"
    config_path.write_text(
        f"num_agents: {num_agents}\nseed: 3\ntick_interval_ms: 10\n",
        encoding="utf-8",
    )
    return config_path


def test_cli_snapshot_prints_json(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)

    assert run_cli(["snapshot", "--config", str(config_path), "--ticks", "3", "--dt", "0.1"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert [agent["id"] for agent in payload["agents"]] == [f"auv-{i}" for i in range(4)]
    assert payload["bounds"] == [-50.0, 50.0, -50.0, 50.0]
    assert payload["missions"] == []


def test_cli_snapshot_is_reproducible_for_a_seed(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)

    run_cli(["snapshot", "--config", str(config_path), "--ticks", "5"])
    first = json.loads(capsys.readouterr().out)
    run_cli(["snapshot", "--config", str(config_path), "--ticks", "5"])
    second = json.loads(capsys.readouterr().out)

    assert first["agents"] == second["agents"]


def test_cli_run_prints_analytics(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path, num_agents=3)

    assert run_cli(["run", "--config", str(config_path), "--seconds", "0.05"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["total_agents"] == 3
    assert report["active_missions"] == 0
    assert report["active_agents"] + report["agents_reached_goal"] <= 3

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ebes.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_jsonl(path: Path, records: list[object]) -> None:
    path.write_text("\n".join(json.dumps(item) for item in records), encoding="utf-8")


def test_cli_scores_records_and_writes_output(tmp_path: Path, runner: CliRunner) -> None:
    input_path = tmp_path / "aggregates.jsonl"
    output_path = tmp_path / "out" / "scores.json"
    write_jsonl(
        input_path,
        [
            {
                "person_id": "R-1",
                "role_type": "recruiter",
                "aggregates": {
                    "submissions_6h": 2,
                    "submissions_24h": 3,
                    "interviews_level_1": 2,
                    "interviews_level_2": 1,
                    "deals": 1,
                    "assigned_roles": 2,
                    "actively_worked_roles": 1,
                },
            },
            {
                "person_id": "AM-1",
                "role_type": "account_manager",
                "aggregates": {
                    "total_roles": 10,
                    "interview_1_count": 4,
                    "interview_2_count": 2,
                    "deal_roles": 1,
                    "lost_roles": 2,
                    "on_hold_roles": 1,
                    "active_roles": 6,
                },
            },
        ],
    )

    result = runner.invoke(app, ["--input", str(input_path), "--output", str(output_path)])

    assert result.exit_code == 0, result.output
    assert "Scored 2 records" in result.output
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["metadata"]["record_count"] == 2
    assert payload["metadata"]["errors"] == []
    recruiter, manager = payload["results"]
    assert (recruiter["person_id"], recruiter["score"], recruiter["label"]) == ("R-1", 100, "Excellent")
    assert (manager["score"], manager["label"]) == (32.5, "Average")
    assert "cv_quality_label" not in manager


def test_cli_applies_yaml_overrides(tmp_path: Path, runner: CliRunner) -> None:
    input_path = tmp_path / "aggregates.jsonl"
    output_path = tmp_path / "scores.json"
    config_path = tmp_path / "ebes.yaml"
    write_jsonl(
        input_path,
        [{"person_id": 7, "role_type": "recruiter", "aggregates": {"deals": 1, "assigned_roles": 4}}],
    )
    config_path.write_text("scoring:\n  recruiter:\n    deal: 10\n", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--input",
            str(input_path),
            "--output",
            str(output_path),
            "--config",
            str(config_path),
            "--log-level",
            "WARNING",
        ],
    )

    assert result.exit_code == 0, result.output
    [entry] = json.loads(output_path.read_text(encoding="utf-8"))["results"]
    assert entry["table1_points"] == 10.0
    assert entry["score"] == 83.3


def test_cli_rejects_invalid_config(tmp_path: Path, runner: CliRunner) -> None:
    input_path = tmp_path / "aggregates.jsonl"
    config_path = tmp_path / "bad.yaml"
    write_jsonl(input_path, [])
    config_path.write_text("workflow:\n  max_active_roles: 0\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["--input", str(input_path), "--output", str(tmp_path / "o.json"), "--config", str(config_path)],
    )

    assert result.exit_code != 0

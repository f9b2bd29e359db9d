from __future__ import annotations

import json
from pathlib import Path

from ebes.container import create_container
from ebes.pipeline import AuditLogger


def test_pipeline_writes_audit_log_and_collects_errors(tmp_path: Path) -> None:
    input_path = tmp_path / "aggregates.jsonl"
    input_path.write_text(
        "\n".join(
            [
                json.dumps(
                    {
                        "person_id": "RM-1",
                        "role_type": "recruitment_manager",
                        "aggregates": {"submissions_6h": 12, "total_roles": 10, "avg_cv_quality": 98},
                    }
                ),
                "{not json",
                json.dumps({"person_id": "X", "role_type": "admin", "aggregates": {}}),
                json.dumps({"person_id": "R-9", "role_type": "recruiter", "aggregates": {"deals": -1}}),
                "",
            ]
        ),
        encoding="utf-8",
    )
    output_path = tmp_path / "scores.json"
    audit_path = tmp_path / "audit" / "audit.jsonl"

    pipeline = create_container().pipeline()
    results = pipeline.run(
        input_path=input_path,
        output_path=output_path,
        audit_logger=AuditLogger(audit_path),
    )

    [result] = results
    assert result["person_id"] == "RM-1"
    assert result["score"] == 85.0
    assert result["quality_bonus"] == 5.0
    assert result["cv_quality_label"] == "Excellent"

    payload = json.loads(output_path.read_text(encoding="utf-8"))
    errors = payload["metadata"]["errors"]
    assert len(errors) == 3
    assert errors[0].startswith("line 2:")
    assert payload["metadata"]["app_version"]

    [audit] = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    assert audit["aggregates"]["submissions_6h"] == 12
    assert audit["label"] == "Strong"

# File: backend/tests/test_tree_cli.py
# Version: v0.2.0
"""
Tests for the offline service tree CLI.
"""
import json

from backend.app.cli.service_tree_cli import main

from conftest import BRANCH_DOC, GENERAL_RECORDS


def _write(tmp_path, name, data):
    p = tmp_path / name
    p.write_text(json.dumps(data), encoding="utf-8")
    return str(p)


def test_render_after_group_toggle_and_cost(tmp_path, capsys):
    records = _write(tmp_path, "types.json", GENERAL_RECORDS)
    rc = main(["--records", records, "--toggle", "General", "--cost", "Lab Test=25"])
    assert rc == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "[x] General (GEN)  [2/2]"
    assert out[1] == "  [x] Consultation (CONS)  20.00"
    assert out[2] == "  [x] Lab Test (LAB)  25.00"
    assert out[-1] == "2 services selected, total cost 45.00"


def test_payload_from_branch_tree_document(tmp_path, capsys):
    records = _write(tmp_path, "branch.json", BRANCH_DOC)
    rc = main(["--records", records, "--toggle", "Consultation:off", "--toggle", "X-Ray", "--payload"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"assignments": [{"serviceTypeId": "X-Ray", "cost": 50.0}]}


def test_assigned_file_replaces_seeded_store(tmp_path, capsys):
    records = _write(tmp_path, "types.json", {"serviceTypes": GENERAL_RECORDS})
    assigned = _write(tmp_path, "assigned.json", [
        {"serviceTypeId": "Lab Test", "cost": 12},
        {"serviceTypeId": "General", "cost": 1},
    ])
    rc = main(["--records", records, "--assigned", assigned, "--payload"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    # group ids never reach the payload
    assert payload == {"assignments": [{"serviceTypeId": "Lab Test", "cost": 12.0}]}


def test_search_keeps_ancestors(tmp_path, capsys):
    records = _write(tmp_path, "branch.json", BRANCH_DOC)
    assert main(["--records", records, "--search", "x-ray"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].endswith("Imaging (IMG)  [0/1]")
    assert out[1].strip().startswith("[ ] X-Ray (XR)")
    assert not any("General" in line for line in out)


def test_unknown_id_exit_code(tmp_path):
    records = _write(tmp_path, "types.json", GENERAL_RECORDS)
    assert main(["--records", records, "--toggle", "Nope"]) == 1


def test_unreadable_input_exit_code(tmp_path):
    assert main(["--records", str(tmp_path / "missing.json")]) == 2
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main(["--records", str(bad)]) == 2


def test_cost_without_value_is_rejected(tmp_path, capsys):
    records = _write(tmp_path, "types.json", GENERAL_RECORDS)
    rc = main(["--records", records, "--toggle", "General", "--cost", "Lab Test", "--payload"])
    assert rc == 2
    assert capsys.readouterr().out == ""
    assert main(["--records", records, "--cost", "=5"]) == 2

"""
Tests for the formlogic command line.

Tests cover:
- check on files and directories, exit codes and problem listings
- evaluate output and its exit codes
- --data parsing from inline JSON and @file
"""
import json

import pytest

from formlogic.cli import main

from tests.conftest import PACKS_DIR


CYCLIC_PACK = """
schema_version: "1.0.0"
id: cyclic
title: Cyclic
fields:
  - name: a
    conditions:
      visibility: { field: b, operator: is_not_empty }
  - name: b
    conditions:
      visibility: { field: a, operator: is_not_empty }
"""


class TestCheck:

    def test_bundled_directory_is_clean(self, capsys):
        assert main(["check", str(PACKS_DIR)]) == 0
        out = capsys.readouterr().out
        assert "[OK] family_intake (8 fields)" in out
        assert "[OK] job_application (8 fields)" in out

    def test_problems_are_listed(self, tmp_path, capsys):
        path = tmp_path / "cyclic.yaml"
        path.write_text(CYCLIC_PACK, encoding="utf-8")

        assert main(["check", str(path)]) == 1
        out = capsys.readouterr().out
        assert "[FAIL] cyclic" in out
        assert "[FL_CONFIG_CIRCULAR_DEPENDENCY] Circular dependency detected: a -> b -> a" in out

    def test_invalid_pack(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("id: bad\ntitle: Bad\nfields:\n  - name: a\n    type: slider\n", encoding="utf-8")

        assert main(["check", str(path)]) == 1
        out = capsys.readouterr().out
        assert "[ERROR]" in out
        assert "fields -> 0 -> type" in out

    def test_version_mismatch_and_lenient(self, tmp_path, capsys):
        path = tmp_path / "future.yaml"
        path.write_text(CYCLIC_PACK.replace('"1.0.0"', '"2.0.0"'), encoding="utf-8")

        assert main(["check", str(path)]) == 1
        assert "Schema version mismatch" in capsys.readouterr().out
        assert main(["--lenient", "check", str(path)]) == 1
        assert "[FAIL] cyclic" in capsys.readouterr().out

    def test_missing_path(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "nothing.yaml")]) == 1
        assert "Not found" in capsys.readouterr().out


class TestEvaluate:

    def test_valid_snapshot(self, capsys):
        data = json.dumps({"fullName": "Ada", "hasChildren": True, "age": 4})
        assert main(["evaluate", str(PACKS_DIR / "family_intake.yaml"), "--data", data]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["form_id"] == "family_intake"
        assert output["validation"] == {"is_valid": True, "errors": {}}
        assert output["active_state"]["childcare"]["visible"] is True
        assert len(output["state_hash"]) == 64

    def test_invalid_snapshot_exits_2(self, tmp_path, capsys):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({"hasChildren": True}), encoding="utf-8")

        assert main(["evaluate", str(PACKS_DIR / "family_intake.yaml"), "--data", f"@{data_file}"]) == 2
        output = json.loads(capsys.readouterr().out)
        assert output["validation"]["errors"] == {
            "fullName": ["Full name is required"],
            "age": ["Age of youngest child is required"],
        }

    @pytest.mark.parametrize("raw", ["[1, 2]", "{not json"])
    def test_bad_data(self, raw, capsys):
        assert main(["evaluate", str(PACKS_DIR / "family_intake.yaml"), "--data", raw]) == 1
        assert "Invalid --data" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage: formlogic" in capsys.readouterr().out

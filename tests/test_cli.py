"""Tests for the command-line interface."""

import json
from datetime import date, timedelta

import pytest

from shiftcycle.cli import load_pattern_file, main


@pytest.fixture
def pattern_file(tmp_path):
    path = tmp_path / "pattern.json"
    path.write_text(json.dumps({
        "shifts": [
            {"id": "a", "name": "Alpha", "start": "06:00", "end": "14:00"},
            {"id": "b", "name": "Beta", "start": "22:00", "end": "06:00"},
        ],
        "days": ["a", "b", None],
    }), encoding="utf-8")
    return str(path)


@pytest.fixture
def gapped_file(tmp_path):
    path = tmp_path / "gapped.json"
    path.write_text(json.dumps({
        "shifts": [{"id": "a", "name": "Alpha"}],
        "days": [
            {"dayNumber": 1, "shiftId": "a"},
            {"dayNumber": 2, "shiftId": "a"},
            {"dayNumber": 4},
        ],
    }), encoding="utf-8")
    return str(path)


@pytest.fixture
def numeric_file(tmp_path):
    path = tmp_path / "numeric.json"
    path.write_text(json.dumps({
        "shifts": [{"id": 1, "name": "One"}, {"id": 2, "name": "Two"}],
        "days": [1, {"dayNumber": 2, "shiftId": 2}, None],
    }), encoding="utf-8")
    return str(path)


class TestLoadPatternFile:
    """Tests for pattern file parsing."""

    def test_loads_days_and_shifts(self, pattern_file):
        pattern, catalog = load_pattern_file(pattern_file)
        assert pattern.length == 3
        assert pattern.day(3).is_rest_day
        assert catalog.get_shift("b").crosses_midnight is True

    def test_explicit_day_numbers(self, gapped_file):
        pattern, _ = load_pattern_file(gapped_file)
        assert [d.day_number for d in pattern] == [1, 2, 4]

    def test_numeric_shift_ids_become_strings(self, numeric_file):
        pattern, catalog = load_pattern_file(numeric_file)
        assert [d.shift_ref for d in pattern] == ["1", "2", None]
        assert catalog.get_shift("1").name == "One"


class TestCommands:
    """Tests for the CLI commands."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_stats(self, pattern_file, capsys):
        assert main(["stats", pattern_file]) == 0
        out = capsys.readouterr().out
        assert "3-day pattern with 2 work days and 1 rest days (shifts: Alpha, Beta)" in out
        assert "66.7%" in out

    def test_stats_rejects_invalid_pattern(self, gapped_file, capsys):
        assert main(["stats", gapped_file]) == 1
        out = capsys.readouterr().out
        assert "non_sequential" in out
        assert "Work share" not in out

    def test_numeric_shift_ids(self, numeric_file, capsys):
        assert main(["validate", numeric_file, "--name", "Numbers"]) == 0
        assert main(["stats", numeric_file]) == 0
        assert "shifts: One, Two" in capsys.readouterr().out

    def test_unknown_numeric_shift_id(self, tmp_path, capsys):
        path = tmp_path / "unknown.json"
        path.write_text(json.dumps({"shifts": [{"id": 1}], "days": [7, None]}), encoding="utf-8")
        assert main(["validate", str(path)]) == 1
        assert "missing_shift_reference" in capsys.readouterr().out

    def test_validate_ok(self, pattern_file, capsys):
        assert main(["validate", pattern_file, "--name", "Rota"]) == 0
        assert "is valid" in capsys.readouterr().out

    def test_validate_non_sequential(self, gapped_file, capsys):
        assert main(["validate", gapped_file]) == 1
        assert "non_sequential" in capsys.readouterr().out

    def test_validate_start_too_far(self, pattern_file, capsys):
        start = (date.today() - timedelta(days=4 * 366)).isoformat()
        assert main(["validate", pattern_file, "--start", start]) == 1
        assert "start_date_too_far_past" in capsys.readouterr().out

    def test_preview(self, pattern_file, capsys):
        assert main(["preview", pattern_file, "--start", "2025-01-01", "--days", "7"]) == 0
        lines = [l for l in capsys.readouterr().out.splitlines() if l.startswith("  2025-")]
        assert len(lines) == 7
        assert "Alpha" in lines[0]
        assert "Beta" in lines[1]
        assert "Rest" in lines[2]

    def test_preview_invalid_days(self, pattern_file, capsys):
        assert main(["preview", pattern_file, "--days", "0"]) == 1
        assert "invalid_preview_range" in capsys.readouterr().out

    def test_resolve(self, pattern_file, capsys):
        assert main(["resolve", pattern_file, "--anchor", "2025-01-01", "--date", "2025-01-05"]) == 0
        assert "2025-01-05 (day 2): Beta (22:00 - 06:00)" in capsys.readouterr().out

    def test_resolve_outside(self, pattern_file, capsys):
        assert main(["resolve", pattern_file, "--anchor", "2025-01-01", "--date", "2024-12-31"]) == 0
        assert "not covered" in capsys.readouterr().out

    def test_resolve_end_before_anchor(self, pattern_file, capsys):
        code = main([
            "resolve", pattern_file,
            "--anchor", "2025-01-10", "--end", "2025-01-01", "--date", "2025-01-05",
        ])
        assert code == 1

    def test_encode_then_decode(self, pattern_file, tmp_path, capsys):
        assert main(["encode", pattern_file, "--name", "Rota", "--start", "2025-01-01"]) == 0
        rule = json.loads(capsys.readouterr().out)
        assert rule["frequency"] == "quattrodue_cycle"
        assert "CUSTOM_PATTERN_DATA:" in rule["description"]

        rule_file = tmp_path / "rule.json"
        rule_file.write_text(json.dumps(rule), encoding="utf-8")
        assert main(["decode", str(rule_file)]) == 0
        out = capsys.readouterr().out
        assert "3 days" in out
        assert "Day 3: REST" in out

    def test_decode_lenient(self, tmp_path, capsys):
        rule_file = tmp_path / "rule.json"
        rule_file.write_text(json.dumps({
            "id": "r1",
            "frequency": "quattrodue_cycle",
            "description": 'CUSTOM_PATTERN_DATA:{"pattern_days":[{"dayNumber":1,"isRestDay":true},{"dayN',
        }), encoding="utf-8")
        assert main(["decode", str(rule_file)]) == 1
        assert main(["decode", "--lenient", str(rule_file)]) == 0
        assert "warning:" in capsys.readouterr().out

    def test_config_file(self, pattern_file, tmp_path, capsys):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"max_pattern_days": 2}), encoding="utf-8")
        assert main(["--config", str(config_file), "validate", pattern_file]) == 1
        assert "too_long" in capsys.readouterr().out

    def test_bad_config_file(self, pattern_file, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"unknown_key": 1}), encoding="utf-8")
        assert main(["--config", str(config_file), "stats", pattern_file]) == 2

    def test_missing_pattern_file(self, tmp_path):
        assert main(["stats", str(tmp_path / "missing.json")]) == 2

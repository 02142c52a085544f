from __future__ import annotations

from adbcleaner.history import format_history, history_path, log_history, parse_history


def test_log_and_parse_newest_first(tmp_path):
    path = history_path(str(tmp_path / "logs"))
    log_history(path, "dry-run", ["[DRY-RUN] com.foo.bar"], 0)
    log_history(path, "uninstall", ["[SUCCESS] com.foo.bar", "[FAIL] com.vendor.store"], 1)

    entries = parse_history(path)
    assert [e["action"] for e in entries] == ["uninstall", "dry-run"]
    assert entries[0]["rc"] == 1
    assert entries[0]["lines"] == ["[SUCCESS] com.foo.bar", "[FAIL] com.vendor.store"]


def test_parse_missing_file(tmp_path):
    assert parse_history(str(tmp_path / "history.log")) == []


def test_format_history_lists_runs(tmp_path):
    path = str(tmp_path / "history.log")
    log_history(path, "uninstall", ["[SUCCESS] com.foo.bar"], 0)
    text = format_history(parse_history(path))
    assert "uninstall" in text
    assert "[SUCCESS] com.foo.bar" in text
    assert format_history([]) == "No runs recorded yet."

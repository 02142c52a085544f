from __future__ import annotations

import json

import pytest

from adbcleaner.config import Config, load_config
from adbcleaner.errors import ParseError


def test_missing_file_gives_defaults_and_creates_dirs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config("config.json")
    assert cfg.adb_path == "adb"
    assert cfg.packages_file == "packs.txt"
    assert cfg.user_id == "0"
    assert cfg.theme == "default"
    assert cfg.auto_select_safe is False
    assert (tmp_path / "logs").is_dir()
    assert (tmp_path / "backups").is_dir()


def test_partial_file_keeps_defaults_for_missing_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "adbPath": "/opt/platform-tools/adb",
        "userId": 10,
        "autoSelectSafe": True,
        "logDir": str(tmp_path / "l"),
        "backupDir": str(tmp_path / "b"),
        "somethingElse": "ignored",
    }), encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg.adb_path == "/opt/platform-tools/adb"
    assert cfg.user_id == "10"
    assert cfg.auto_select_safe is True
    assert cfg.packages_file == "packs.txt"
    assert (tmp_path / "l").is_dir()
    assert (tmp_path / "b").is_dir()


def test_malformed_json_raises_parse_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ParseError):
        load_config(str(path))


def test_non_object_json_raises_parse_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ParseError):
        load_config(str(path))


def test_bad_bool_raises_parse_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"autoSelectSafe": "yes"}), encoding="utf-8")
    with pytest.raises(ParseError):
        load_config(str(path))


def test_undecodable_file_raises_parse_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_bytes(b'{"theme": "caf\xe9"}')
    with pytest.raises(ParseError):
        load_config(str(path))


@pytest.mark.parametrize("value", [None, 1.5, ["adb"], {"path": "adb"}, True])
def test_non_string_value_raises_parse_error(tmp_path, value):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"adbPath": value}), encoding="utf-8")
    with pytest.raises(ParseError):
        load_config(str(path))


def test_save_writes_camel_case_and_round_trips(tmp_path):
    path = tmp_path / "conf" / "config.json"
    cfg = Config(
        adb_path="adb2",
        log_dir=str(tmp_path / "logs"),
        backup_dir=str(tmp_path / "backups"),
        theme="mono",
        auto_select_safe=True,
        path=str(path),
    )
    cfg.save()
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {
        "adbPath": "adb2",
        "packagesFile": "packs.txt",
        "logDir": str(tmp_path / "logs"),
        "backupDir": str(tmp_path / "backups"),
        "userId": "0",
        "theme": "mono",
        "autoSelectSafe": True,
    }
    again = load_config(str(path))
    assert again == cfg

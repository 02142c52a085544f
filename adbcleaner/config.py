from __future__ import annotations
import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from .errors import ParseError

CONFIG_FILE = "config.json"

# attribute -> json key
JSON_KEYS = {
    "adb_path": "adbPath",
    "packages_file": "packagesFile",
    "log_dir": "logDir",
    "backup_dir": "backupDir",
    "user_id": "userId",
    "theme": "theme",
    "auto_select_safe": "autoSelectSafe",
}

def load_json(path: str, default: Any) -> Any:
    if not os.path.exists(path):
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"failed to parse config file {path}: {e}") from e
    if not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"failed to parse config file {path}: {e}") from e

def save_json(path: str, obj: Any) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)

@dataclass
class Config:
    adb_path: str = "adb"
    packages_file: str = "packs.txt"
    log_dir: str = "logs"
    backup_dir: str = "backups"
    user_id: str = "0"
    theme: str = "default"
    auto_select_safe: bool = False
    path: str = CONFIG_FILE

    def to_json(self) -> Dict[str, Any]:
        d = asdict(self)
        return {JSON_KEYS[k]: d[k] for k in JSON_KEYS}

    def save(self) -> None:
        save_json(self.path, self.to_json())

def from_json(raw: Dict[str, Any], path: str = CONFIG_FILE) -> Config:
    cfg = Config(path=path)
    for f in fields(Config):
        key = JSON_KEYS.get(f.name)
        if key is None or key not in raw:
            continue
        val = raw[key]
        if f.name == "auto_select_safe":
            if not isinstance(val, bool):
                raise ParseError(f"{key}: expected true/false, got {val!r}")
            setattr(cfg, f.name, val)
        elif isinstance(val, str) or (isinstance(val, int) and not isinstance(val, bool)):
            setattr(cfg, f.name, str(val))
        else:
            raise ParseError(f"{key}: expected a string, got {val!r}")
    return cfg

def load_config(path: str = CONFIG_FILE) -> Config:
    raw = load_json(path, {})
    if not isinstance(raw, dict):
        raise ParseError(f"failed to parse config file {path}: expected a JSON object")
    cfg = from_json(raw, path)
    os.makedirs(cfg.log_dir, exist_ok=True)
    os.makedirs(cfg.backup_dir, exist_ok=True)
    return cfg

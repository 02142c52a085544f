from __future__ import annotations
import os, time, re
from typing import Any, Dict, List

from rich.markup import escape

HISTORY_FILE = "history.log"

def history_path(log_dir: str) -> str:
    return os.path.join(log_dir or ".", HISTORY_FILE)

def log_history(path: str, action: str, lines: List[str], rc: int) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"[{ts}] {action} rc={rc}\n")
        for l in lines:
            f.write("  " + l + "\n")
        f.write("\n")

def parse_history(path: str, max_entries: int = 500) -> List[Dict[str, Any]]:
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        txt = f.read()
    blocks = [b.strip() for b in txt.split("\n\n") if b.strip()]
    entries: List[Dict[str, Any]] = []
    for b in blocks[-max_entries:]:
        lines = b.splitlines()
        m = re.match(r"^\[(.*?)\]\s+([\w-]+)\s+rc=(\d+)", lines[0].strip())
        if not m:
            continue
        ts, action, rc = m.group(1), m.group(2), int(m.group(3))
        items = [ln.strip() for ln in lines[1:] if ln.strip()]
        entries.append({"ts": ts, "action": action, "rc": rc, "lines": items})
    entries.reverse()
    return entries

def format_history(entries: List[Dict[str, Any]], limit: int = 10) -> str:
    if not entries:
        return "No runs recorded yet."
    out: List[str] = []
    for e in entries[:limit]:
        out.append(f"[b]{e['ts']}[/b]  {e['action']}  rc={e['rc']}  ({len(e['lines'])} lines)")
        for ln in e["lines"][:5]:
            out.append(f"  {escape(ln)}")
        if len(e["lines"]) > 5:
            out.append(f"  [dim]… {len(e['lines']) - 5} more[/dim]")
    return "\n".join(out)

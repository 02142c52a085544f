from __future__ import annotations
import os
import time
from typing import Iterable, List, Optional

from .models import Package, SAFE

def parse_manifest_line(line: str) -> Optional[Package]:
    """
    package_name
    package_name # Description
    package_name # Description | Category | RiskLevel
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    if "#" not in line:
        return Package(name=line)

    name, meta = line.split("#", 1)
    pkg = Package(name=name.strip())
    meta = meta.strip()
    if "|" in meta:
        parts = [p.strip() for p in meta.split("|")]
        pkg.description = parts[0]
        if len(parts) > 1: pkg.category = parts[1]
        if len(parts) > 2: pkg.risk_level = parts[2]
    else:
        pkg.description = meta
    return pkg

def parse_manifest(text: str) -> List[Package]:
    out: List[Package] = []
    for ln in text.splitlines():
        pkg = parse_manifest_line(ln)
        if pkg is not None:
            out.append(pkg)
    return out

class Catalog:
    """
    Ordered candidate packages in manifest order. Names may repeat; every
    manifest line is its own entry and name lookups take the first match.
    """

    def __init__(self, packages: Optional[Iterable[Package]] = None):
        self.packages: List[Package] = list(packages or [])

    def __len__(self) -> int:
        return len(self.packages)

    def __getitem__(self, idx: int) -> Package:
        return self.packages[idx]

    def load(self, source: str) -> List[Package]:
        with open(source, "r", encoding="utf-8", errors="replace") as f:
            self.packages = parse_manifest(f.read())
        return self.packages

    def find(self, name: str) -> Optional[Package]:
        for p in self.packages:
            if p.name == name:
                return p
        return None

    # ---------- device state ----------
    def refresh_installed(self, installed: Iterable[str]) -> None:
        names = set(installed)
        for p in self.packages:
            p.installed = p.name in names

    # ---------- selection ----------
    def select_all(self) -> None:
        for p in self.packages:
            p.selected = True

    def deselect_all(self) -> None:
        for p in self.packages:
            p.selected = False

    def select_installed(self) -> None:
        for p in self.packages:
            if p.installed:
                p.selected = True

    def select_by_risk_level(self, level: str) -> None:
        for p in self.packages:
            if p.risk_level == level:
                p.selected = True

    def select_safe(self) -> None:
        self.select_by_risk_level(SAFE)

    def select_by_category(self, category: str) -> None:
        for p in self.packages:
            if p.category == category:
                p.selected = True

    def toggle_at(self, index: int) -> None:
        if 0 <= index < len(self.packages):
            p = self.packages[index]
            p.selected = not p.selected

    # ---------- queries ----------
    def selected(self) -> List[Package]:
        return [p for p in self.packages if p.selected]

    def count_total(self) -> int:
        return len(self.packages)

    def count_selected(self) -> int:
        return sum(1 for p in self.packages if p.selected)

    def count_installed(self) -> int:
        return sum(1 for p in self.packages if p.installed)

    def search(self, query: str) -> List[Package]:
        q = query.lower()
        return [p for p in self.packages if q in p.name.lower() or q in p.description.lower()]

    def filter_by_risk_level(self, level: str) -> List[Package]:
        return [p for p in self.packages if p.risk_level == level]

    def filter_by_category(self, category: str) -> List[Package]:
        return [p for p in self.packages if p.category == category]

    def categories(self) -> List[str]:
        return sorted({p.category for p in self.packages if p.category})

    def risk_levels(self) -> List[str]:
        return sorted({p.risk_level for p in self.packages if p.risk_level})

    # ---------- backup ----------
    def save_backup(self, backup_dir: str) -> str:
        backup_dir = backup_dir or "backups"
        os.makedirs(backup_dir, exist_ok=True)
        ts = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(backup_dir, f"backup_{ts}.txt")
        with open(path, "w", encoding="utf-8") as f:
            for p in self.selected():
                f.write(p.backup_line() + "\n")
        return path

    def load_backup(self, path: str) -> int:
        # selections change only once the whole file has been read
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
        marked = 0
        for ln in lines:
            ln = ln.strip()
            if not ln:
                continue
            p = self.find(ln.split("|", 1)[0])
            if p is not None:
                p.selected = True
                marked += 1
        return marked

def latest_backup(backup_dir: str) -> str:
    backup_dir = backup_dir or "backups"
    if not os.path.isdir(backup_dir):
        return ""
    names = sorted(n for n in os.listdir(backup_dir) if n.startswith("backup_") and n.endswith(".txt"))
    return os.path.join(backup_dir, names[-1]) if names else ""

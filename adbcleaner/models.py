from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

SAFE = "SAFE"
RISKY = "RISKY"
DANGER = "DANGER"

@dataclass
class Package:
    name: str
    description: str = ""
    category: str = ""
    risk_level: str = ""  # SAFE|RISKY|DANGER, open vocabulary
    installed: bool = False
    selected: bool = False

    def backup_line(self) -> str:
        return f"{self.name}|{self.description}|{self.category}|{self.risk_level}"

@dataclass(frozen=True)
class Device:
    id: str
    manufacturer: str = ""
    model: str = ""
    android_version: str = ""
    user_id: str = "0"

@dataclass
class BatchResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    log: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from rich.markup import escape

from .models import DANGER, RISKY, SAFE

@dataclass(frozen=True)
class Palette:
    success: str = "#04B575"
    error: str = "#F43F5E"
    warning: str = "#F59E0B"
    info: str = "#3B82F6"
    selected: str = "#7D56F4"
    muted: str = "#6B7280"

    def paint(self, style: str, text: str) -> str:
        return f"[{style}]{text}[/]"

    def risk(self, level: str) -> str:
        if not level:
            return ""
        text = escape(f"[{level}]")
        colour = {SAFE: self.success, RISKY: self.warning, DANGER: self.error}.get(level)
        return self.paint(colour, text) if colour else text

PALETTES: Dict[str, Palette] = {
    "default": Palette(),
    "mono": Palette(
        success="bold",
        error="bold reverse",
        warning="italic",
        info="default",
        selected="bold",
        muted="dim",
    ),
}

def palette_for(theme: str) -> Palette:
    return PALETTES.get(theme, PALETTES["default"])

from __future__ import annotations
from rich.markup import escape
from textual.widgets import Static

PREVIEW = 15

def build(app, pane):
    app.mount_topcard(pane, "Confirm Removal", "", "Tab Dry run · Enter Continue · Esc Back")
    pane.mount(Static("", id="confirm_body", classes="infobox"))

def refresh(app):
    p = app.palette
    selected = app.catalog.selected()
    lines = [f"You are about to remove [b]{len(selected)}[/b] packages.", ""]
    if app.session.dry_run:
        lines.append(p.paint(p.warning, "DRY RUN MODE - No packages will be removed"))
        lines.append("")
    for pkg in selected[:PREVIEW]:
        inst = "" if pkg.installed else p.paint(p.muted, " (not installed)")
        lines.append(f"  {p.risk(pkg.risk_level)} {escape(pkg.name)}{inst}")
    if len(selected) > PREVIEW:
        lines.append(p.paint(p.muted, f"  … {len(selected) - PREVIEW} more"))
    lines += ["", "Press Tab to toggle dry run mode", "Press Enter to continue", "Press Esc to go back"]
    app.query_one("#confirm_body", Static).update("\n".join(lines))

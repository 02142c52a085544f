from __future__ import annotations
from textual.widgets import Static

from .progress_view import paint_line

TAIL = 15

def build(app, pane):
    app.mount_topcard(pane, "Debloat Complete", "", "Enter Exit")
    pane.mount(Static("", id="done_body", classes="infobox"))

def refresh(app):
    p = app.palette
    res = app.session.result
    if res is None:
        return
    lines = [
        p.paint(p.success, f"✓ Successfully removed: {res.success}"),
        p.paint(p.error, f"✗ Failed: {res.failed}"),
        p.paint(p.warning, f"○ Skipped: {res.skipped}"),
        "",
    ]
    if app.session.dry_run:
        lines += [p.paint(p.warning, "Dry run: nothing was removed."), ""]
    lines += [paint_line(app, ln) for ln in app.session.log[-TAIL:]]
    lines += ["", "Press Enter to exit"]
    app.query_one("#done_body", Static).update("\n".join(lines))

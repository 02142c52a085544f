from __future__ import annotations
from rich.markup import escape
from textual.widgets import ProgressBar, Static

from ..workflow import TAG_DRY_RUN, TAG_FAIL, TAG_SKIP, TAG_SUCCESS

TAIL = 10

def build(app, pane):
    app.mount_topcard(pane, "Removing Packages", "Packages are removed one at a time.", "Ctrl+C Quit")
    pane.mount(ProgressBar(total=None, show_eta=False, id="batch_progress"))
    pane.mount(Static("", id="progress_log", classes="infobox"))

def reset(app, total: int):
    app.query_one("#batch_progress", ProgressBar).update(total=total, progress=0)
    app.query_one("#progress_log", Static).update("")

def paint_line(app, line: str) -> str:
    p = app.palette
    colour = {
        TAG_SUCCESS: p.success,
        TAG_DRY_RUN: p.info,
        TAG_SKIP: p.warning,
        TAG_FAIL: p.error,
    }
    for tag, c in colour.items():
        if line.startswith(f"[{tag}]"):
            return p.paint(c, escape(line))
    return escape(line)

def refresh(app):
    log = app.session.log
    app.query_one("#batch_progress", ProgressBar).update(progress=len(log))
    tail = [paint_line(app, ln) for ln in log[-TAIL:]]
    spinner = "|/-\\"[app.session.ticks % 4]
    tail.append(f"[dim]{spinner} working…[/dim]")
    app.query_one("#progress_log", Static).update("\n".join(tail))

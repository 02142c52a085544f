from __future__ import annotations
from rich.markup import escape
from textual.containers import Horizontal
from textual.widgets import DataTable, Input, Static

from ..workflow import SEARCHING

COLUMNS = ("Sel", "Package", "Risk", "Category", "Inst", "Description")

def build(app, pane):
    app.mount_topcard(
        pane,
        "Packages to Remove",
        app.cfg.packages_file,
        "↑/↓ Navigate · Space Toggle · F1 All · F2 None · F3 Installed · F4 Safe · F5 Search · "
        "f Risk · c Category · i Info · b Backup · l Restore · Enter Confirm · Ctrl+C Quit",
    )
    pane.mount(Input(placeholder="Search packages…", max_length=50, id="search_input"))
    pane.mount(Static("", id="list_filters", classes="filters"))

    row = Horizontal(id="list_row")
    pane.mount(row)

    tbl = DataTable(id="pkg_tbl")
    app.safe_cursor_row(tbl)
    tbl.can_focus = False
    tbl.add_columns(*COLUMNS)

    row.mount(tbl)
    row.mount(Static("", id="pkg_info", classes="infobox"))

    app._list_rows = None
    refresh(app)

def focus_search(app):
    try:
        inp = app.query_one("#search_input", Input)
        inp.display = True
        inp.focus()
    except Exception:
        pass

def _row_state(app):
    s = app.session
    return tuple((i, app.catalog[i].selected, app.catalog[i].installed) for i in s.visible)

def _populate(app):
    p = app.palette
    tbl = app.query_one("#pkg_tbl", DataTable)
    tbl.clear(columns=True)
    tbl.add_columns(*COLUMNS)
    for i in app.session.visible:
        pkg = app.catalog[i]
        sel = p.paint(p.selected, "✔") if pkg.selected else ""
        inst = p.paint(p.success, "✔") if pkg.installed else ""
        tbl.add_row(
            sel,
            escape(pkg.name),
            p.risk(pkg.risk_level),
            escape(pkg.category),
            inst,
            escape((pkg.description or "No description")[:60]),
            key=str(i),
        )

def _info(app):
    box = app.query_one("#pkg_info", Static)
    pkg = app.session.cursor_package()
    if pkg is None:
        box.update("[b]Info[/b]\n\nNo packages match.")
        return
    p = app.palette
    lines = [
        f"[b]{escape(pkg.name)}[/b]",
        "",
        escape(pkg.description or "No description"),
        "",
        f"[dim]Category:[/dim] {escape(pkg.category or '-')}",
        f"[dim]Risk:[/dim] {p.risk(pkg.risk_level) or '-'}",
        f"[dim]Installed:[/dim] {'yes' if pkg.installed else 'no'}",
        f"[dim]Selected:[/dim] {'yes' if pkg.selected else 'no'}",
    ]
    box.update("\n".join(lines))

def _filters(app):
    s = app.session
    bits = [f"Showing {len(s.visible)}/{app.catalog.count_total()}"]
    if s.query:
        bits.append(f"search: {escape(s.query)}")
    if s.risk_filter:
        bits.append(f"risk: {escape(s.risk_filter)}")
    if s.category_filter:
        bits.append(f"category: {escape(s.category_filter)}")
    app.query_one("#list_filters", Static).update("[dim]" + " · ".join(bits) + "[/dim]")

def refresh(app):
    s = app.session
    state = _row_state(app)
    if state != app._list_rows:
        _populate(app)
        app._list_rows = state

    tbl = app.query_one("#pkg_tbl", DataTable)
    if tbl.row_count:
        try:
            tbl.move_cursor(row=s.cursor)
        except Exception:
            pass

    inp = app.query_one("#search_input", Input)
    inp.display = s.mode == SEARCHING or bool(s.query)

    _filters(app)
    _info(app)

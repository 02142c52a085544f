from __future__ import annotations

import threading
from typing import List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import ContentSwitcher, DataTable, Footer, Header, Input, Static

from .catalog import Catalog, latest_backup
from .config import Config
from .errors import DeviceError
from .history import format_history, history_path, log_history, parse_history
from .modals import OutputModal, TextInputModal
from .models import BatchResult, Device
from .theme import palette_for
from .workflow import (
    CONFIRMING,
    EXECUTING,
    FINISHED,
    LISTING,
    SEARCHING,
    BatchDone,
    BatchLine,
    CatalogChanged,
    Event,
    Key,
    TAG_FAIL,
    Quit,
    SearchChanged,
    StartBatch,
    Tick,
    new_session,
    run_batch,
    step,
)

from .views import confirm_view, done_view, list_view, progress_view

APP_NAME = "ADB Cleaner"

VIEW_FOR_MODE = {
    LISTING: "view_list",
    SEARCHING: "view_list",
    CONFIRMING: "view_confirm",
    EXECUTING: "view_progress",
    FINISHED: "view_done",
}

# commands each mode reacts to; everything else is hidden from the footer
MODE_COMMANDS = {
    LISTING: {
        "up", "down", "toggle", "select_all", "deselect_all", "select_installed",
        "select_safe", "search", "confirm", "risk_filter", "category_filter",
    },
    SEARCHING: {"up", "down", "back"},
    CONFIRMING: {"dry_run", "confirm", "back"},
    EXECUTING: set(),
    FINISHED: {"confirm"},
}

LISTING_ACTIONS = {
    "package_info", "refresh_installed", "save_backup", "load_backup", "show_history", "save_config",
}

class AdbCleanerApp(App):
    CSS = """
    Screen { background: $background; }
    Header { background: $panel; }
    Footer { background: $panel; }

    #views { height: 1fr; }
    #list_row { height: 1fr; }
    #pkg_tbl { width: 3fr; height: 1fr; }
    #pkg_info { width: 1fr; min-width: 36; height: 1fr; overflow: auto; }
    #search_input { display: none; }

    #statusbar { height: auto; border: round $primary; background: $boost; padding: 0 2; margin: 0 1 1 1; }

    .topcard { height: auto; border: round $primary; background: $panel; padding: 1 2; margin: 0 1 1 1; }
    .infobox { border: round $primary; background: $boost; padding: 1 2; margin: 0 1 1 1; }
    .filters { height: auto; padding: 0 2; margin: 0 1; }

    ProgressBar { margin: 0 1 1 3; }
    DataTable { height: 1fr; border: round $surface; background: $panel; margin: 0 1 1 1; }
    Input { border: round $surface; background: $panel; margin: 0 1 1 1; }

    #modal { width: 92%; max-width: 120; height: auto; padding: 1 2; border: round $primary; background: $panel; }
    OutputModal, TextInputModal { align: center middle; }
    """

    AUTO_FOCUS = None

    BINDINGS = [
        Binding("ctrl+c", "quit_session", "Quit", priority=True),
        Binding("up", "cmd('up')", "Up", show=False),
        Binding("down", "cmd('down')", "Down", show=False),
        Binding("space", "cmd('toggle')", "Toggle"),
        Binding("f1", "cmd('select_all')", "Select all"),
        Binding("f2", "cmd('deselect_all')", "Deselect all"),
        Binding("f3", "cmd('select_installed')", "Select installed"),
        Binding("f4", "cmd('select_safe')", "Select safe"),
        Binding("f5", "cmd('search')", "Search"),
        Binding("slash", "cmd('search')", "Search", show=False),
        Binding("enter", "cmd('confirm')", "Confirm"),
        Binding("escape", "cmd('back')", "Back"),
        Binding("tab", "cmd('dry_run')", "Dry run", priority=True),
        Binding("f", "cmd('risk_filter')", "Risk filter"),
        Binding("c", "cmd('category_filter')", "Category filter"),
        Binding("i", "package_info", "Info"),
        Binding("r", "refresh_installed", "Refresh"),
        Binding("b", "save_backup", "Backup"),
        Binding("l", "load_backup", "Restore"),
        Binding("h", "show_history", "History"),
        Binding("ctrl+s", "save_config", "Save config"),
    ]

    def __init__(self, cfg: Config, client, device: Device, catalog: Catalog):
        super().__init__()
        self.cfg = cfg
        self.client = client
        self.device = device
        self.catalog = catalog
        self.palette = palette_for(cfg.theme)
        self.session = new_session(catalog)
        self.history_log = history_path(cfg.log_dir)
        self.last_action = "Ready."
        self._batch: Optional[threading.Thread] = None
        self._list_rows = None

    # ---------- modal helpers ----------
    def show_output(self, title: str, body: str) -> None:
        self.push_screen(OutputModal(title, body))

    def modal_open(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    # ---------- basics ----------
    def set_last(self, msg: str) -> None:
        self.last_action = msg
        self.update_status()

    def update_status(self) -> None:
        s = self.session
        d = self.device
        p = self.palette
        parts = [
            f"Device: {escape(d.manufacturer)} {escape(d.model)} ({escape(d.id)})",
            f"Android: {escape(d.android_version)}",
            f"Selected: {s.selected_count}/{self.catalog.count_total()}",
            f"Installed: {self.catalog.count_installed()}",
        ]
        if s.dry_run:
            parts.append(p.paint(p.warning, "DRY RUN"))
        parts.append(f"Last: {escape(self.last_action)}")
        try:
            self.query_one("#statusbar", Static).update("   ".join(parts))
        except Exception:
            pass

    def mount_topcard(self, pane, title: str, subtitle: str = "", keys: str = "") -> None:
        lines = [f"[b]{title}[/b]"]
        if subtitle:
            lines.append(f"[dim]{subtitle}[/dim]")
        if keys:
            lines.append(f"[dim]{keys}[/dim]")
        pane.mount(Static("\n".join(lines), classes="topcard"))

    @staticmethod
    def safe_cursor_row(tbl: DataTable) -> None:
        try:
            tbl.cursor_type = "row"  # type: ignore[attr-defined]
        except Exception:
            pass

    # ---------- app layout ----------
    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("", id="statusbar")
        with ContentSwitcher(initial="view_list", id="views"):
            yield Vertical(id="view_list")
            yield Vertical(id="view_confirm")
            yield Vertical(id="view_progress")
            yield Vertical(id="view_done")
        yield Footer()

    def on_mount(self) -> None:
        self.title = APP_NAME
        self.sub_title = f"{self.device.manufacturer} {self.device.model}".strip()
        if self.cfg.theme in getattr(self, "available_themes", {}):
            self.theme = self.cfg.theme

        list_view.build(self, self.clear_pane("view_list"))
        confirm_view.build(self, self.clear_pane("view_confirm"))
        progress_view.build(self, self.clear_pane("view_progress"))
        done_view.build(self, self.clear_pane("view_done"))

        self.set_interval(1.0, lambda: self.apply_event(Tick()))
        self.render_session()

    def clear_pane(self, pane_id: str) -> Vertical:
        pane = self.query_one(f"#{pane_id}", Vertical)
        pane.remove_children()
        return pane

    def render_session(self) -> None:
        s = self.session
        self.query_one("#views", ContentSwitcher).current = VIEW_FOR_MODE[s.mode]
        if s.mode in (LISTING, SEARCHING):
            list_view.refresh(self)
        elif s.mode == CONFIRMING:
            confirm_view.refresh(self)
        elif s.mode == EXECUTING:
            progress_view.refresh(self)
        elif s.mode == FINISHED:
            done_view.refresh(self)
        self.update_status()
        self.refresh_bindings()

    # ---------- event dispatch ----------
    def apply_event(self, event: Event) -> None:
        before = self.session.mode
        self.session, effects = step(self.session, event)
        for eff in effects:
            if isinstance(eff, StartBatch):
                self.start_batch(eff.dry_run)
            elif isinstance(eff, Quit):
                self.exit()
                return
        if isinstance(event, Tick) and self.session.mode != EXECUTING:
            return
        if before != self.session.mode:
            self.focus_for_mode(before, self.session.mode)
        self.render_session()

    def focus_for_mode(self, before: str, after: str) -> None:
        if after == SEARCHING:
            list_view.focus_search(self)
        elif before == SEARCHING:
            self.set_focus(None)

    def check_action(self, action: str, parameters) -> Optional[bool]:
        if action == "quit_session":
            return True
        if self.modal_open():
            return False if action == "cmd" or action in LISTING_ACTIONS else True
        if action == "cmd":
            return bool(parameters) and parameters[0] in MODE_COMMANDS[self.session.mode]
        if action in LISTING_ACTIONS:
            return self.session.mode == LISTING
        return True

    def action_cmd(self, command: str) -> None:
        if self.modal_open():
            return
        self.apply_event(Key(command))

    def action_quit_session(self) -> None:
        self.apply_event(Key("quit"))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search_input":
            self.apply_event(SearchChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search_input":
            self.apply_event(Key("back"))

    # ---------- batch ----------
    def start_batch(self, dry_run: bool) -> None:
        pkgs = self.catalog.selected()
        progress_view.reset(self, len(pkgs))
        self.set_last(f"{'Dry run' if dry_run else 'Removal'} of {len(pkgs)} packages started")

        def post(fn, *args):
            # the operator may quit mid-batch; the thread then runs on without a UI
            if not self.is_running:
                return
            try:
                self.call_from_thread(fn, *args)
            except RuntimeError:
                pass

        def worker():
            try:
                res = run_batch(
                    pkgs,
                    self.client,
                    self.cfg.user_id,
                    dry_run,
                    progress=lambda line: post(self.apply_event, BatchLine(line)),
                )
            except Exception as e:
                res = BatchResult(failed=len(pkgs), log=[f"[{TAG_FAIL}] batch stopped: {e}"])
            # the session only leaves executing once this arrives
            post(self.finish_batch, res, dry_run)

        self._batch = threading.Thread(target=worker, daemon=True)
        self._batch.start()

    def finish_batch(self, res: BatchResult, dry_run: bool) -> None:
        try:
            log_history(self.history_log, "dry-run" if dry_run else "uninstall", res.log, res.failed)
            self.last_action = f"Done: {res.success} ok, {res.failed} failed, {res.skipped} skipped"
        except OSError as e:
            self.last_action = f"History log failed: {e}"
        self.apply_event(BatchDone(res))

    # ---------- listing actions ----------
    def action_package_info(self) -> None:
        pkg = self.session.cursor_package()
        if pkg is None:
            return
        lines: List[str] = [
            f"Description: {escape(pkg.description or 'No description')}",
            f"Category: {escape(pkg.category or '-')}",
            f"Risk: {self.palette.risk(pkg.risk_level) or '-'}",
            f"Installed: {'yes' if pkg.installed else 'no'}",
            f"Selected: {'yes' if pkg.selected else 'no'}",
        ]
        if pkg.installed:
            try:
                info = self.client.get_package_info(pkg.name)
                for k in ("versionName", "versionCode"):
                    if k in info:
                        lines.append(f"{k}: {escape(info[k])}")
            except DeviceError as e:
                lines.append(f"[dim]package info unavailable: {escape(str(e))}[/dim]")
        self.show_output(escape(pkg.name), "\n".join(lines))

    def action_refresh_installed(self) -> None:
        try:
            installed = self.client.list_packages("all")
        except DeviceError as e:
            self.set_last(f"Refresh failed: {e}")
            self.show_output("Refresh failed", escape(str(e)))
            return
        self.catalog.refresh_installed(installed)
        self.last_action = f"Installed state refreshed ({self.catalog.count_installed()} on device)"
        self.apply_event(CatalogChanged())

    def action_save_backup(self) -> None:
        try:
            path = self.catalog.save_backup(self.cfg.backup_dir)
        except OSError as e:
            self.set_last(f"Backup failed: {e}")
            self.show_output("Backup failed", escape(str(e)))
            return
        self.set_last(f"Backup saved: {path}{self.record_history('backup', path)}")

    def record_history(self, action: str, path: str) -> str:
        """Status suffix; empty when the entry was written."""
        try:
            log_history(self.history_log, action, [path], 0)
        except OSError as e:
            return f" (history log failed: {e})"
        return ""

    def action_load_backup(self) -> None:
        self.push_screen(
            TextInputModal("Load backup", "path to backup_*.txt", latest_backup(self.cfg.backup_dir)),
            callback=self.load_backup_from,
        )

    def load_backup_from(self, path: Optional[str]) -> None:
        if not path:
            self.set_last("Restore cancelled")
            return
        try:
            marked = self.catalog.load_backup(path)
        except OSError as e:
            self.set_last(f"Restore failed: {e}")
            self.show_output("Restore failed", escape(str(e)))
            return
        self.last_action = f"Restored {marked} selections from {path}{self.record_history('restore', path)}"
        self.apply_event(CatalogChanged())

    def action_show_history(self) -> None:
        try:
            entries = parse_history(self.history_log)
        except OSError as e:
            self.show_output("History", escape(str(e)))
            return
        self.show_output("History", format_history(entries))

    def action_save_config(self) -> None:
        try:
            self.cfg.save()
        except OSError as e:
            self.set_last(f"Saving config failed: {e}")
            return
        self.set_last(f"Config saved: {self.cfg.path}")

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple, Union

from .catalog import Catalog
from .errors import DeviceError
from .models import BatchResult, Package

LISTING = "listing"
SEARCHING = "searching"
CONFIRMING = "confirming"
EXECUTING = "executing"
FINISHED = "finished"

TAG_DRY_RUN = "DRY-RUN"
TAG_SKIP = "SKIP"
TAG_FAIL = "FAIL"
TAG_SUCCESS = "SUCCESS"

# ---------- events ----------
@dataclass(frozen=True)
class Key:
    command: str  # up|down|toggle|select_all|deselect_all|select_installed|select_safe|search|confirm|back|dry_run|quit|risk_filter|category_filter

@dataclass(frozen=True)
class SearchChanged:
    query: str

@dataclass(frozen=True)
class CatalogChanged:
    pass

@dataclass(frozen=True)
class Tick:
    pass

@dataclass(frozen=True)
class BatchLine:
    line: str

@dataclass(frozen=True)
class BatchDone:
    result: BatchResult

Event = Union[Key, SearchChanged, CatalogChanged, Tick, BatchLine, BatchDone]

# ---------- effects ----------
@dataclass(frozen=True)
class StartBatch:
    dry_run: bool

@dataclass(frozen=True)
class Quit:
    pass

Effect = Union[StartBatch, Quit]

@dataclass(frozen=True)
class Session:
    catalog: Catalog
    mode: str = LISTING
    cursor: int = 0
    query: str = ""
    risk_filter: str = ""
    category_filter: str = ""
    visible: Tuple[int, ...] = ()
    selected_count: int = 0
    dry_run: bool = False
    log: Tuple[str, ...] = ()
    result: Optional[BatchResult] = None
    ticks: int = 0
    done: bool = False

    def cursor_package(self) -> Optional[Package]:
        if 0 <= self.cursor < len(self.visible):
            return self.catalog[self.visible[self.cursor]]
        return None

def visible_indices(catalog: Catalog, query: str, risk: str, category: str) -> Tuple[int, ...]:
    hits = {id(p) for p in catalog.search(query)}
    out: List[int] = []
    for i, p in enumerate(catalog.packages):
        if id(p) not in hits:
            continue
        if risk and p.risk_level != risk:
            continue
        if category and p.category != category:
            continue
        out.append(i)
    return tuple(out)

def _refilter(s: Session) -> Session:
    vis = visible_indices(s.catalog, s.query, s.risk_filter, s.category_filter)
    cursor = max(0, min(s.cursor, len(vis) - 1))
    return replace(s, visible=vis, cursor=cursor, selected_count=s.catalog.count_selected())

def _cycle(current: str, values: List[str]) -> str:
    ring = [""] + values
    i = ring.index(current) if current in ring else 0
    return ring[(i + 1) % len(ring)]

def new_session(catalog: Catalog, dry_run: bool = False) -> Session:
    return _refilter(Session(catalog=catalog, dry_run=dry_run))

BULK = {
    "select_all": Catalog.select_all,
    "deselect_all": Catalog.deselect_all,
    "select_installed": Catalog.select_installed,
    "select_safe": Catalog.select_safe,
}

def _move(s: Session, delta: int) -> Session:
    if not s.visible:
        return s
    return replace(s, cursor=max(0, min(s.cursor + delta, len(s.visible) - 1)))

def _step_listing(s: Session, cmd: str) -> Tuple[Session, List[Effect]]:
    if cmd == "up":
        return _move(s, -1), []
    if cmd == "down":
        return _move(s, 1), []
    if cmd == "toggle":
        if s.cursor_package() is not None:
            s.catalog.toggle_at(s.visible[s.cursor])
        return replace(s, selected_count=s.catalog.count_selected()), []
    if cmd in BULK:
        BULK[cmd](s.catalog)
        return replace(s, selected_count=s.catalog.count_selected()), []
    if cmd == "risk_filter":
        return _refilter(replace(s, risk_filter=_cycle(s.risk_filter, s.catalog.risk_levels()))), []
    if cmd == "category_filter":
        return _refilter(replace(s, category_filter=_cycle(s.category_filter, s.catalog.categories()))), []
    if cmd == "search":
        return replace(s, mode=SEARCHING), []
    if cmd == "confirm":
        return replace(s, mode=CONFIRMING, selected_count=s.catalog.count_selected()), []
    return s, []

def _step_searching(s: Session, cmd: str) -> Tuple[Session, List[Effect]]:
    if cmd == "up":
        return _move(s, -1), []
    if cmd == "down":
        return _move(s, 1), []
    if cmd == "back":
        return replace(s, mode=LISTING), []
    return s, []

def _step_confirming(s: Session, cmd: str) -> Tuple[Session, List[Effect]]:
    if cmd == "dry_run":
        return replace(s, dry_run=not s.dry_run), []
    if cmd == "back":
        return replace(s, mode=LISTING), []
    if cmd == "confirm":
        return replace(s, mode=EXECUTING, log=(), result=None), [StartBatch(dry_run=s.dry_run)]
    return s, []

def step(s: Session, event: Event) -> Tuple[Session, List[Effect]]:
    """
    Single transition: session + event in, new session + effects out.
    Selection commands mutate the catalog in place.
    """
    if s.done:
        return s, []

    if isinstance(event, Key):
        if event.command == "quit":
            return replace(s, done=True), [Quit()]
        if s.mode == LISTING:
            return _step_listing(s, event.command)
        if s.mode == SEARCHING:
            return _step_searching(s, event.command)
        if s.mode == CONFIRMING:
            return _step_confirming(s, event.command)
        if s.mode == FINISHED and event.command == "confirm":
            return replace(s, done=True), [Quit()]
        return s, []

    if isinstance(event, SearchChanged):
        if s.mode != SEARCHING:
            return s, []
        return _refilter(replace(s, query=event.query)), []

    if isinstance(event, CatalogChanged):
        return _refilter(s), []

    if isinstance(event, Tick):
        return replace(s, ticks=s.ticks + 1), []

    if isinstance(event, BatchLine):
        if s.mode != EXECUTING:
            return s, []
        return replace(s, log=s.log + (event.line,)), []

    if isinstance(event, BatchDone):
        if s.mode != EXECUTING:
            return s, []
        r = event.result
        log = s.log if len(s.log) >= len(r.log) else tuple(r.log)
        return replace(s, mode=FINISHED, result=r, log=log, selected_count=s.catalog.count_selected()), []

    return s, []

# ---------- batch ----------
def run_batch(
    packages: List[Package],
    bridge,
    user_id: str,
    dry_run: bool,
    progress: Optional[Callable[[str], None]] = None,
) -> BatchResult:
    """
    Removes packages one at a time, in the given order. Per-package adb
    errors are counted as skipped (existence re-check) or failed (uninstall,
    or any other error raised by the bridge) and never stop the batch.
    """
    res = BatchResult()

    def emit(tag: str, name: str, detail: str = "") -> None:
        line = f"[{tag}] {name}" + (f": {detail}" if detail else "")
        res.log.append(line)
        if progress is not None:
            progress(line)

    for pkg in packages:
        if dry_run:
            res.success += 1
            emit(TAG_DRY_RUN, pkg.name)
            continue

        if not pkg.installed:
            res.skipped += 1
            emit(TAG_SKIP, pkg.name, "not installed")
            continue

        try:
            still_there = bridge.is_installed(pkg.name)
        except DeviceError as e:
            res.skipped += 1
            emit(TAG_SKIP, pkg.name, str(e))
            continue
        except Exception as e:
            res.failed += 1
            emit(TAG_FAIL, pkg.name, str(e))
            continue
        if not still_there:
            pkg.installed = False
            res.skipped += 1
            emit(TAG_SKIP, pkg.name, "no longer installed")
            continue

        try:
            ok = bridge.uninstall(pkg.name, user_id)
        except Exception as e:
            res.failed += 1
            emit(TAG_FAIL, pkg.name, str(e))
            continue
        if ok:
            pkg.installed = False
            res.success += 1
            emit(TAG_SUCCESS, pkg.name)
        else:
            res.failed += 1
            emit(TAG_FAIL, pkg.name)

    return res

from __future__ import annotations

import os
import re

import pytest

from adbcleaner.catalog import Catalog, latest_backup, parse_manifest, parse_manifest_line

MANIFEST = """\
# header comment
com.foo.bar # Bloatware app | Bloat | SAFE

com.example.plain
com.example.desc # Just a description
com.example.two # Two fields | Media
com.vendor.risky # Vendor thing | Vendor | RISKY
  com.example.indented   #  spaced out  |  Tools  |  DANGER
"""


def _catalog() -> Catalog:
    return Catalog(parse_manifest(MANIFEST))


def test_full_metadata_line():
    pkg = parse_manifest_line("com.foo.bar # Bloatware app | Bloat | SAFE")
    assert pkg is not None
    assert (pkg.name, pkg.description, pkg.category, pkg.risk_level) == (
        "com.foo.bar", "Bloatware app", "Bloat", "SAFE",
    )
    assert pkg.installed is False
    assert pkg.selected is False


def test_blank_and_comment_lines_are_skipped():
    assert parse_manifest_line("") is None
    assert parse_manifest_line("   ") is None
    assert parse_manifest_line("# com.commented.out") is None


def test_plain_name_and_description_only():
    pkg = parse_manifest_line("com.example.plain")
    assert pkg.name == "com.example.plain"
    assert pkg.description == pkg.category == pkg.risk_level == ""

    pkg = parse_manifest_line("com.example.desc # Just a description")
    assert pkg.name == "com.example.desc"
    assert pkg.description == "Just a description"
    assert pkg.category == ""


def test_fewer_fields_leave_remainder_empty():
    pkg = parse_manifest_line("com.example.two # Two fields | Media")
    assert pkg.description == "Two fields"
    assert pkg.category == "Media"
    assert pkg.risk_level == ""


def test_name_splits_on_first_hash_only():
    pkg = parse_manifest_line("com.a # desc # more | Cat | SAFE")
    assert pkg.name == "com.a"
    assert pkg.description == "desc # more"
    assert pkg.risk_level == "SAFE"


def test_fields_are_trimmed():
    pkg = parse_manifest_line("  com.example.indented   #  spaced out  |  Tools  |  DANGER")
    assert (pkg.name, pkg.description, pkg.category, pkg.risk_level) == (
        "com.example.indented", "spaced out", "Tools", "DANGER",
    )


def test_load_keeps_manifest_order(tmp_path):
    path = tmp_path / "packs.txt"
    path.write_text(MANIFEST, encoding="utf-8")
    cat = Catalog()
    pkgs = cat.load(str(path))
    assert [p.name for p in pkgs] == [
        "com.foo.bar",
        "com.example.plain",
        "com.example.desc",
        "com.example.two",
        "com.vendor.risky",
        "com.example.indented",
    ]
    assert cat.count_total() == 6


def test_load_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        Catalog().load(str(tmp_path / "nope.txt"))


def test_load_tolerates_latin1_bytes(tmp_path):
    path = tmp_path / "packs.txt"
    path.write_bytes(b"com.foo.bar # Caf\xe9 app | Media | SAFE\ncom.example.plain\n")
    pkgs = Catalog().load(str(path))
    assert [p.name for p in pkgs] == ["com.foo.bar", "com.example.plain"]
    assert pkgs[0].description.startswith("Caf")
    assert (pkgs[0].category, pkgs[0].risk_level) == ("Media", "SAFE")


def test_duplicates_stay_separate_entries():
    cat = Catalog(parse_manifest("com.dup # first\ncom.dup # second\n"))
    assert cat.count_total() == 2
    assert cat.find("com.dup").description == "first"


def test_refresh_installed_overwrites():
    cat = _catalog()
    cat.refresh_installed({"com.foo.bar", "com.example.plain"})
    assert cat.count_installed() == 2
    cat.refresh_installed(["com.vendor.risky"])
    assert cat.count_installed() == 1
    assert cat.find("com.foo.bar").installed is False
    assert cat.find("com.vendor.risky").installed is True


def test_select_all_and_deselect_all():
    cat = _catalog()
    cat.select_all()
    assert cat.count_selected() == cat.count_total()
    cat.deselect_all()
    assert cat.count_selected() == 0
    assert cat.selected() == []


def test_select_installed_is_additive():
    cat = _catalog()
    cat.find("com.example.desc").selected = True
    cat.refresh_installed({"com.foo.bar"})
    cat.select_installed()
    assert {p.name for p in cat.selected()} == {"com.foo.bar", "com.example.desc"}


def test_select_by_risk_level_and_category_never_deselect():
    cat = _catalog()
    cat.find("com.example.plain").selected = True
    cat.select_by_risk_level("SAFE")
    assert {p.name for p in cat.selected()} == {"com.foo.bar", "com.example.plain"}
    cat.select_by_category("Vendor")
    assert {p.name for p in cat.selected()} == {"com.foo.bar", "com.example.plain", "com.vendor.risky"}
    cat.select_safe()
    assert cat.count_selected() == 3


def test_toggle_twice_is_identity():
    cat = _catalog()
    cat.find("com.vendor.risky").selected = True
    before = [p.selected for p in cat.packages]
    cat.toggle_at(0)
    assert cat[0].selected is True
    assert [p.selected for p in cat.packages][1:] == before[1:]
    cat.toggle_at(0)
    assert [p.selected for p in cat.packages] == before


def test_toggle_out_of_range_is_noop():
    cat = _catalog()
    cat.toggle_at(-1)
    cat.toggle_at(99)
    assert cat.count_selected() == 0


def test_search_matches_name_or_description_case_insensitive():
    cat = _catalog()
    assert [p.name for p in cat.search("BLOAT")] == ["com.foo.bar"]
    assert [p.name for p in cat.search("vendor")] == ["com.vendor.risky"]
    assert {p.name for p in cat.search("example")} == {
        "com.example.plain", "com.example.desc", "com.example.two", "com.example.indented",
    }


def test_search_is_idempotent_and_subset_preserving():
    cat = _catalog()
    for q in ("", "com", "Fields", "zzz"):
        first = cat.search(q)
        assert cat.search(q) == first
        for p in first:
            assert q.lower() in p.name.lower() or q.lower() in p.description.lower()
    assert cat.search("") == cat.packages


def test_filters_and_distinct_values():
    cat = _catalog()
    assert [p.name for p in cat.filter_by_risk_level("SAFE")] == ["com.foo.bar"]
    assert [p.name for p in cat.filter_by_category("Media")] == ["com.example.two"]
    assert set(cat.categories()) == {"Bloat", "Media", "Vendor", "Tools"}
    assert set(cat.risk_levels()) == {"SAFE", "RISKY", "DANGER"}
    assert "" not in cat.categories()


def test_save_backup_writes_selected_lines(tmp_path):
    cat = _catalog()
    cat.find("com.foo.bar").selected = True
    cat.find("com.example.plain").selected = True
    path = cat.save_backup(str(tmp_path / "backups"))
    assert re.fullmatch(r"backup_\d{8}_\d{6}\.txt", os.path.basename(path))
    lines = open(path, encoding="utf-8").read().splitlines()
    assert lines == ["com.foo.bar|Bloatware app|Bloat|SAFE", "com.example.plain|||"]
    assert latest_backup(str(tmp_path / "backups")) == path


def test_backup_round_trip_on_fresh_catalog(tmp_path):
    cat = _catalog()
    cat.select_by_risk_level("RISKY")
    cat.toggle_at(1)
    path = cat.save_backup(str(tmp_path))
    wanted = {p.name for p in cat.selected()}

    fresh = _catalog()
    assert fresh.load_backup(path) == len(wanted)
    assert {p.name for p in fresh.selected()} == wanted


def test_load_backup_marks_first_match_and_ignores_unknown(tmp_path):
    cat = Catalog(parse_manifest("com.dup # one\ncom.dup # two\ncom.other\n"))
    path = tmp_path / "b.txt"
    path.write_text("com.dup|x|y|z\n\ncom.unknown|||\n", encoding="utf-8")
    assert cat.load_backup(str(path)) == 1
    assert [p.selected for p in cat.packages] == [True, False, False]


def test_load_backup_failure_leaves_selection(tmp_path):
    cat = _catalog()
    cat.find("com.foo.bar").selected = True
    with pytest.raises(OSError):
        cat.load_backup(str(tmp_path / "missing.txt"))
    assert [p.name for p in cat.selected()] == ["com.foo.bar"]


def test_load_backup_with_undecodable_bytes(tmp_path):
    cat = _catalog()
    path = tmp_path / "b.txt"
    path.write_bytes(b"\xff\xfegarbage|||\ncom.foo.bar|||\n")
    assert cat.load_backup(str(path)) == 1
    assert [p.name for p in cat.selected()] == ["com.foo.bar"]


def test_latest_backup_without_directory(tmp_path):
    assert latest_backup(str(tmp_path / "none")) == ""

"""Tests for item resolution, exclusion filtering and copy planning.

Covers:
- Curated mode returns the manifest verbatim
- Full-tree mode derives top-level items from files on disk
- Extension exclusions (case-insensitive, regardless of mode)
- Destination layout: directories keep their name, files are flattened
- Missing items are reported, not fatal
"""

import os

import pytest

from enroute_backup.backup.backup_config import normalize_extensions
from enroute_backup.backup.copy_planner import CopyTask, plan
from enroute_backup.backup.exclusion_filter import is_excluded
from enroute_backup.backup.item_resolver import BackupMode, resolve, top_level_items

EXCLUDE = normalize_extensions([".exe", ".dll"])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def install(tmp_path):
    """A small installation tree."""
    root = tmp_path / "EnRoute9"
    (root / "Drivers" / "Router").mkdir(parents=True)
    (root / "Drivers" / "x.bin").write_bytes(b"\x00\x01")
    (root / "Drivers" / "Router" / "r.drv").write_text("router")
    (root / "Drivers" / "setup.EXE").write_bytes(b"MZ")
    (root / "Prefs.xml").write_text("<prefs/>")
    (root / "EnRoute.exe").write_bytes(b"MZ")
    (root / "Logs").mkdir()
    return root


def destinations(result):
    return sorted(t.destination for t in result.tasks)


# ---------------------------------------------------------------------------
# Item resolution
# ---------------------------------------------------------------------------

class TestItemResolver:
    def test_curated_returns_manifest_verbatim(self, install):
        manifest = ["A", "B.ini", "Drivers"]
        assert resolve(str(install), BackupMode.CURATED, manifest) == manifest

    def test_curated_returns_copy(self, install):
        manifest = ["A"]
        items = resolve(str(install), BackupMode.CURATED, manifest)
        items.append("B")
        assert manifest == ["A"]

    def test_full_tree_top_level_items(self, install):
        items = resolve(str(install), BackupMode.FULL_TREE, ["ignored"])
        assert items == ["Drivers", "EnRoute.exe", "Prefs.xml"]

    def test_full_tree_skips_empty_folders(self, install):
        (install / "Empty" / "Nested").mkdir(parents=True)
        assert "Logs" not in top_level_items(str(install))
        assert "Empty" not in top_level_items(str(install))

    def test_full_tree_folder_with_deep_file(self, install):
        deep = install / "Data" / "a" / "b"
        deep.mkdir(parents=True)
        (deep / "job.dat").write_text("x")
        assert "Data" in top_level_items(str(install))

    def test_full_tree_sorted(self, tmp_path):
        root = tmp_path / "inst"
        root.mkdir()
        for name in ["zeta.txt", "alpha.txt", "Mid.txt"]:
            (root / name).write_text(name)
        assert top_level_items(str(root)) == sorted(["zeta.txt", "alpha.txt", "Mid.txt"])

    def test_full_tree_empty_installation(self, tmp_path):
        root = tmp_path / "inst"
        root.mkdir()
        assert resolve(str(root), BackupMode.FULL_TREE, []) == []

    def test_unknown_mode(self, install):
        with pytest.raises(ValueError):
            resolve(str(install), "everything", [])


# ---------------------------------------------------------------------------
# Exclusion filter
# ---------------------------------------------------------------------------

class TestExclusionFilter:
    def test_excluded_extension(self):
        assert is_excluded("/x/EnRoute.exe", EXCLUDE)

    def test_case_insensitive(self):
        assert is_excluded("/x/Plugin.DLL", EXCLUDE)

    def test_not_excluded(self):
        assert not is_excluded("/x/Prefs.xml", EXCLUDE)

    def test_no_extension_never_excluded(self):
        assert not is_excluded("/x/README", EXCLUDE)
        assert not is_excluded("/x/.exe", EXCLUDE)

    def test_only_last_extension_counts(self):
        assert not is_excluded("/x/archive.exe.bak", EXCLUDE)

    def test_normalize_adds_dot_and_lowercases(self):
        assert normalize_extensions(["EXE", ".Dll", ""]) == {".exe", ".dll"}


# ---------------------------------------------------------------------------
# Copy planning
# ---------------------------------------------------------------------------

class TestCopyPlanner:
    def test_missing_item_reported(self, tmp_path):
        root = tmp_path / "inst"
        root.mkdir()
        (root / "B.ini").write_text("[b]")

        items = resolve(str(root), BackupMode.CURATED, ["A", "B.ini"])
        result = plan(str(root), items, EXCLUDE)

        assert items == ["A", "B.ini"]
        assert result.tasks == [CopyTask(source=str(root / "B.ini"), destination="B.ini")]
        assert result.missing == ["A"]

    def test_directory_items_keep_their_name(self, install):
        result = plan(str(install), ["Drivers"], EXCLUDE)
        assert destinations(result) == [
            os.path.join("Drivers", "Router", "r.drv"),
            os.path.join("Drivers", "x.bin"),
        ]

    def test_file_items_are_flattened(self, install):
        (install / "Config").mkdir()
        (install / "Config" / "machine.ini").write_text("m")

        result = plan(str(install), [os.path.join("Config", "machine.ini")], EXCLUDE)
        assert destinations(result) == ["machine.ini"]

    def test_excluded_files_never_planned(self, install):
        for mode in BackupMode:
            items = resolve(str(install), mode, ["Drivers", "EnRoute.exe", "Prefs.xml"])
            result = plan(str(install), items, EXCLUDE)
            for task in result.tasks:
                assert os.path.splitext(task.source)[1].lower() not in EXCLUDE
            assert result.excluded == 2

    def test_excluded_file_item_is_not_missing(self, install):
        result = plan(str(install), ["EnRoute.exe"], EXCLUDE)
        assert result.tasks == []
        assert result.missing == []

    def test_sources_are_absolute(self, install):
        result = plan(str(install), ["Drivers", "Prefs.xml"], EXCLUDE)
        assert all(os.path.isabs(t.source) for t in result.tasks)
        assert all(os.path.isfile(t.source) for t in result.tasks)

    def test_empty_directory_item(self, install):
        result = plan(str(install), ["Logs"], EXCLUDE)
        assert result.tasks == []
        assert result.missing == []

    def test_no_exclusions(self, install):
        result = plan(str(install), ["EnRoute.exe"], frozenset())
        assert destinations(result) == ["EnRoute.exe"]

    def test_total_bytes(self, install):
        result = plan(str(install), ["Prefs.xml"], EXCLUDE)
        assert result.total_bytes == len("<prefs/>")

    def test_full_tree_plan(self, install):
        items = resolve(str(install), BackupMode.FULL_TREE, [])
        result = plan(str(install), items, EXCLUDE)
        assert destinations(result) == [
            os.path.join("Drivers", "Router", "r.drv"),
            os.path.join("Drivers", "x.bin"),
            "Prefs.xml",
        ]


# ---------------------------------------------------------------------------
# Unreadable folders and flattened name clashes
# ---------------------------------------------------------------------------

@pytest.fixture
def locked_drivers(install, monkeypatch):
    """Make Drivers/Router unlistable."""
    real_scandir = os.scandir
    denied = str(install / "Drivers" / "Router")

    def fake_scandir(path):
        if str(path) == denied:
            raise PermissionError(13, "Permission denied", path)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)
    return denied


class TestUnreadableFolders:
    def test_planner_records_unreadable_folder(self, install, locked_drivers, caplog):
        with caplog.at_level("WARNING"):
            result = plan(str(install), ["Drivers"], EXCLUDE)

        assert destinations(result) == [os.path.join("Drivers", "x.bin")]
        assert result.unreadable == [locked_drivers]
        assert result.missing == []
        assert "Cannot list" in caplog.text

    def test_resolver_warns_on_unreadable_folder(self, install, locked_drivers, caplog):
        with caplog.at_level("WARNING"):
            items = top_level_items(str(install))

        assert "Drivers" in items
        assert locked_drivers in caplog.text


class TestFlattenedDuplicates:
    def test_same_basename_warns(self, tmp_path, caplog):
        root = tmp_path / "inst"
        (root / "A").mkdir(parents=True)
        (root / "B").mkdir()
        (root / "A" / "prefs.xml").write_text("a")
        (root / "B" / "prefs.xml").write_text("b")
        items = [os.path.join("A", "prefs.xml"), os.path.join("B", "prefs.xml")]

        with caplog.at_level("WARNING"):
            result = plan(str(root), items, EXCLUDE)

        assert destinations(result) == ["prefs.xml", "prefs.xml"]
        assert result.duplicates == [os.path.join("B", "prefs.xml")]
        assert "already planned" in caplog.text

    def test_distinct_basenames_not_flagged(self, install):
        result = plan(str(install), ["Drivers", "Prefs.xml"], EXCLUDE)
        assert result.duplicates == []

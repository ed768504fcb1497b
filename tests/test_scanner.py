"""Tests for disk scanner."""

import os
import threading
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from devstrip.categories import PROJECT_CATEGORY, PROJECT_REASON
from devstrip.cleaner import cleanup
from devstrip.models import UNBOUNDED_DEPTH, ScanConfig
from devstrip.scanner import (
    calculate_size,
    collect_keep_latest,
    collect_matching_dirs,
    collect_whole_directory,
    scan,
    scan_with_callback,
    scan_with_cancel,
)


class TestCalculateSize:
    def test_sums_nested_files(self, tmp_path, write_file):
        write_file(tmp_path / "a" / "one.bin", 10)
        write_file(tmp_path / "a" / "b" / "two.bin", 20)

        assert calculate_size(tmp_path / "a") == 30

    def test_single_file(self, tmp_path, write_file):
        target = write_file(tmp_path / "file.bin", 42)
        assert calculate_size(target) == 42

    def test_missing_path(self, tmp_path):
        assert calculate_size(tmp_path / "missing") == 0

    def test_empty_directory(self, tmp_path):
        (tmp_path / "empty").mkdir()
        assert calculate_size(tmp_path / "empty") == 0

    def test_symlinks_not_followed_or_counted(self, tmp_path, write_file):
        outside = tmp_path / "outside"
        write_file(outside / "big.bin", 1000)
        tree = tmp_path / "tree"
        write_file(tree / "small.bin", 10)
        (tree / "link-to-file").symlink_to(outside / "big.bin")
        (tree / "link-to-dir").symlink_to(outside, target_is_directory=True)

        assert calculate_size(tree) == 10

    def test_symlink_itself_is_zero(self, tmp_path, write_file):
        write_file(tmp_path / "real" / "f.bin", 50)
        (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)

        assert calculate_size(tmp_path / "link") == 0

    def test_symlink_cycle_terminates(self, tmp_path, write_file):
        write_file(tmp_path / "loop" / "f.bin", 5)
        (tmp_path / "loop" / "self").symlink_to(tmp_path / "loop", target_is_directory=True)

        assert calculate_size(tmp_path / "loop") == 5

    def test_unreadable_directory_is_skipped(self, tmp_path, write_file):
        write_file(tmp_path / "d" / "f.bin", 5)

        with patch("devstrip.scanner.os.scandir", side_effect=PermissionError("denied")):
            assert calculate_size(tmp_path / "d") == 0


class TestCollectKeepLatest:
    @pytest.fixture
    def cache_root(self, tmp_path, write_file, set_age):
        base = tmp_path / "cache"
        for name, days in (("A", 30), ("B", 20), ("C", 10)):
            write_file(base / name / "blob", 100)
            set_age(base / name, days)
        return base

    def test_flags_all_but_newest(self, cache_root):
        results = collect_keep_latest(cache_root, 1, "Homebrew", "Homebrew download cache")

        assert {r.path.name for r in results} == {"A", "B"}
        assert all(r.category == "Homebrew" for r in results)
        assert all(r.reason == "Homebrew download cache" for r in results)
        assert all(r.size_bytes == 100 for r in results)

    def test_keep_zero_flags_everything(self, cache_root):
        results = collect_keep_latest(cache_root, 0, "Homebrew", "cache")
        assert {r.path.name for r in results} == {"A", "B", "C"}

    def test_keep_more_than_available_flags_nothing(self, cache_root):
        assert collect_keep_latest(cache_root, 5, "Homebrew", "cache") == []

    @pytest.mark.parametrize("keep", [0, 1, 2])
    def test_flags_exactly_the_oldest(self, cache_root, keep):
        results = collect_keep_latest(cache_root, keep, "Homebrew", "cache")
        oldest_first = ["A", "B", "C"]

        assert len(results) == 3 - keep
        assert {r.path.name for r in results} == set(oldest_first[: 3 - keep])

    def test_last_used_is_child_mtime(self, cache_root):
        results = collect_keep_latest(cache_root, 2, "Homebrew", "cache")
        expected = datetime.fromtimestamp(os.stat(cache_root / "A").st_mtime, tz=timezone.utc)

        assert results[0].last_used == expected

    def test_files_are_ignored(self, cache_root, write_file, set_age):
        stray = write_file(cache_root / "stray.tar.gz", 500)
        set_age(stray, 100)

        results = collect_keep_latest(cache_root, 1, "Homebrew", "cache")
        assert stray not in {r.path for r in results}

    def test_empty_old_directory_dropped(self, cache_root, set_age):
        (cache_root / "Z").mkdir()
        set_age(cache_root / "Z", 90)

        results = collect_keep_latest(cache_root, 1, "Homebrew", "cache")
        assert "Z" not in {r.path.name for r in results}

    def test_excluded_child_skipped(self, cache_root):
        results = collect_keep_latest(
            cache_root, 1, "Homebrew", "cache", excludes=(cache_root.resolve() / "A",)
        )
        assert {r.path.name for r in results} == {"B"}

    def test_excluded_base(self, cache_root):
        assert collect_keep_latest(cache_root, 0, "Homebrew", "cache", excludes=(cache_root.resolve(),)) == []

    def test_missing_base(self, tmp_path):
        assert collect_keep_latest(tmp_path / "nope", 0, "Xcode", "old") == []

    def test_reports_base_and_children(self, cache_root):
        messages = []
        collect_keep_latest(cache_root, 1, "Homebrew", "cache", reporter=messages.append)

        assert messages[0] == f"Scanning: {cache_root}"
        assert f"Scanning: {cache_root / 'A'}" in messages


class TestCollectWholeDirectory:
    def test_flags_nonempty_directory(self, tmp_path, write_file, set_age):
        target = tmp_path / ".npm"
        write_file(target / "_cacache" / "index", 300)
        set_age(target, 3)

        results = collect_whole_directory(target, "Node", "npm cache")

        assert len(results) == 1
        assert results[0].path == target
        assert results[0].size_bytes == 300
        assert results[0].category == "Node"
        assert results[0].reason == "npm cache"
        expected = datetime.fromtimestamp(os.stat(target).st_mtime, tz=timezone.utc)
        assert results[0].last_used == expected

    def test_empty_directory_not_flagged(self, tmp_path):
        (tmp_path / "empty").mkdir()
        assert collect_whole_directory(tmp_path / "empty", "Node", "npm cache") == []

    def test_missing_directory(self, tmp_path):
        assert collect_whole_directory(tmp_path / "missing", "Node", "npm cache") == []

    def test_excluded_directory(self, tmp_path, write_file):
        write_file(tmp_path / "cache" / "f", 10)
        excludes = (tmp_path.resolve(),)
        assert collect_whole_directory(tmp_path / "cache", "Node", "npm cache", excludes) == []


class TestCollectMatchingDirs:
    @pytest.fixture
    def root(self, tmp_path):
        root = tmp_path.resolve() / "root"
        root.mkdir()
        return root

    def test_flags_old_build_only(self, root, write_file, set_age):
        write_file(root / "build" / "app.o", 500)
        write_file(root / "src" / "main.c", 50)
        set_age(root / "build", 30)
        set_age(root / "src", 1)

        results = collect_matching_dirs((root,), min_age_days=2, max_depth=5)

        assert [r.path for r in results] == [root / "build"]
        assert results[0].category == PROJECT_CATEGORY
        assert "build" in results[0].reason
        assert results[0].size_bytes == 500

    def test_recent_build_not_flagged(self, root, write_file, set_age):
        write_file(root / "dist" / "bundle.js", 10)
        set_age(root / "dist", 1)

        assert collect_matching_dirs((root,), min_age_days=2, max_depth=5) == []

    def test_zero_age_disables_filter(self, root, write_file):
        write_file(root / "dist" / "bundle.js", 10)

        results = collect_matching_dirs((root,), min_age_days=0, max_depth=5)
        assert [r.path.name for r in results] == ["dist"]

    def test_pycache_flagged_regardless_of_age(self, root, write_file):
        write_file(root / "pkg" / "__pycache__" / "mod.cpython-312.pyc", 20)

        results = collect_matching_dirs((root,), min_age_days=30, max_depth=5)

        assert [r.path.name for r in results] == ["__pycache__"]
        assert results[0].reason == PROJECT_REASON

    def test_egg_info_suffix(self, root, write_file, set_age):
        write_file(root / "mypkg.egg-info" / "PKG-INFO", 15)
        set_age(root / "mypkg.egg-info", 10)

        results = collect_matching_dirs((root,), min_age_days=2, max_depth=5)
        assert results[0].reason == f"{PROJECT_REASON} (mypkg.egg-info)"

    def test_matched_directory_not_descended(self, root, write_file):
        write_file(root / "node_modules" / "pkg" / "node_modules" / "dep" / "index.js", 10)

        results = collect_matching_dirs((root,), min_age_days=0, max_depth=10)
        assert [r.path for r in results] == [root / "node_modules"]

    def test_skip_list_pruned(self, root, write_file):
        write_file(root / ".git" / "build" / "obj", 10)
        write_file(root / ".idea" / "out" / "obj", 10)

        assert collect_matching_dirs((root,), min_age_days=0, max_depth=10) == []

    def test_symlinked_directories_not_followed(self, root, tmp_path, write_file):
        write_file(tmp_path / "elsewhere" / "target" / "big.bin", 100)
        (root / "linked").symlink_to(tmp_path / "elsewhere", target_is_directory=True)
        (root / "target").symlink_to(tmp_path / "elsewhere" / "target", target_is_directory=True)

        assert collect_matching_dirs((root,), min_age_days=0, max_depth=10) == []

    def test_excluded_subtree_pruned(self, root, write_file):
        write_file(root / "keep" / "build" / "a", 10)
        write_file(root / "skip" / "build" / "a", 10)

        results = collect_matching_dirs(
            (root,), min_age_days=0, max_depth=10, excludes=(root / "skip",)
        )
        assert [r.path for r in results] == [root / "keep" / "build"]

    def test_excluded_root_skipped(self, root, write_file):
        write_file(root / "build" / "a", 10)
        assert collect_matching_dirs((root,), 0, 10, excludes=(root,)) == []

    def test_excluded_match_itself(self, root, write_file):
        write_file(root / "build" / "a", 10)
        assert collect_matching_dirs((root,), 0, 10, excludes=(root / "build",)) == []

    def test_respects_max_depth(self, root, write_file):
        # build sits three levels below the root
        write_file(root / "a" / "b" / "build" / "obj", 10)

        assert collect_matching_dirs((root,), min_age_days=0, max_depth=2) == []
        results = collect_matching_dirs((root,), min_age_days=0, max_depth=3)
        assert [r.path for r in results] == [root / "a" / "b" / "build"]

    def test_no_candidate_deeper_than_max_depth(self, root, write_file):
        for depth in range(1, 7):
            parts = [f"level{i}" for i in range(depth - 1)]
            write_file(root.joinpath(*parts, "out", "obj"), 10)

        for max_depth in range(0, 7):
            results = collect_matching_dirs((root,), min_age_days=0, max_depth=max_depth)
            assert len(results) == max_depth
            for r in results:
                assert len(r.path.relative_to(root).parts) <= max_depth

    def test_unbounded_depth(self, root, write_file):
        deep = root.joinpath(*[f"d{i}" for i in range(30)])
        write_file(deep / "target" / "x", 10)

        results = collect_matching_dirs((root,), min_age_days=0, max_depth=UNBOUNDED_DEPTH)
        assert [r.path for r in results] == [deep / "target"]

    def test_empty_match_not_flagged(self, root):
        (root / "build").mkdir()
        assert collect_matching_dirs((root,), min_age_days=0, max_depth=5) == []

    def test_missing_root_ignored(self, root, write_file):
        write_file(root / "out" / "x", 10)

        results = collect_matching_dirs((root / "missing", root), min_age_days=0, max_depth=5)
        assert len(results) == 1

    def test_cancelled_walk_stops(self, root, write_file):
        write_file(root / "build" / "a", 10)
        cancel = threading.Event()
        cancel.set()

        assert collect_matching_dirs((root,), 0, 5, cancel=cancel) == []

    def test_reports_visited_directories(self, root, write_file):
        write_file(root / "src" / "main.c", 10)
        messages = []

        collect_matching_dirs((root,), 0, 5, reporter=messages.append)

        assert messages == [f"Scanning: {root}", f"Scanning: {root / 'src'}"]


class TestScan:
    @pytest.fixture
    def populated(self, home, tmp_path, write_file, set_age):
        write_file(home / ".npm" / "_cacache" / "index", 300)
        brew = home / "Library" / "Caches" / "Homebrew"
        write_file(brew / "old" / "pkg.tar.gz", 200)
        write_file(brew / "new" / "pkg.tar.gz", 250)
        set_age(brew / "old", 20)
        set_age(brew / "new", 1)

        root = tmp_path.resolve() / "projects"
        write_file(root / "app" / "build" / "app.o", 500)
        set_age(root / "app" / "build", 30)
        return root

    def test_results_sorted_by_size(self, populated):
        config = ScanConfig(roots=(populated,), min_age_days=2, max_depth=5)

        results = scan(config)

        assert [(r.category, r.size_bytes) for r in results] == [
            ("Project", 500),
            ("Node", 300),
            ("Homebrew", 200),
        ]

    def test_scan_is_deterministic(self, populated):
        config = ScanConfig(roots=(populated,), min_age_days=2)
        assert scan(config) == scan(config)

    def test_every_candidate_nonempty(self, populated):
        config = ScanConfig(roots=(populated,), min_age_days=0, keep_latest_cache=0)
        assert all(r.size_bytes > 0 for r in scan(config))

    def test_duplicate_roots_deduplicated(self, populated):
        config = ScanConfig(roots=(populated, populated), min_age_days=2)

        paths = [r.path for r in scan(config)]
        assert len(paths) == len(set(paths))

    def test_excludes_apply_to_every_strategy(self, populated, home):
        excludes = (home.resolve(), populated / "app")
        config = ScanConfig(roots=(populated,), exclude_paths=excludes, min_age_days=0)

        assert scan(config) == []

    def test_callback_receives_scanning_messages(self, populated):
        messages = []
        scan_with_callback(ScanConfig(roots=(populated,)), messages.append)

        assert messages
        assert all(m.startswith("Scanning: ") for m in messages)
        assert f"Scanning: {populated}" in messages

    def test_cancelled_before_start(self, populated):
        cancel = threading.Event()
        cancel.set()

        assert scan_with_cancel(ScanConfig(roots=(populated,)), cancel) == []

    def test_dry_run_cleanup_leaves_scan_unchanged(self, populated):
        config = ScanConfig(roots=(populated,), min_age_days=2)
        before = scan(config)

        cleanup(before, dry_run=True)

        assert scan(config) == before
        assert all(c.path.exists() for c in before)

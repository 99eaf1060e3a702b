"""Tests for temporary file tracking and the resolution context."""

from pathlib import Path

import pytest

from pluglint.core.config import Config
from pluglint.core.context import (
    ResolutionContext,
    canonical_key,
    default_context,
    reset_default_context,
)
from pluglint.core.tempfiles import TempFileTracker

pytestmark = pytest.mark.unit


class TestTempFileTracker:
    """Test TempFileTracker."""

    def test_no_directory_until_first_file(self):
        tracker = TempFileTracker()
        assert tracker.root is None
        assert tracker.files == []

    def test_new_file_keeps_entry_name(self):
        tracker = TempFileTracker(prefix="pluglint-test-")
        try:
            path = tracker.new_file("fhir/ActivityDefinition/a.xml")
            assert path.name == "a.xml"
            assert path.parent.name == "ActivityDefinition"
            assert path.parent.is_dir()
            assert tracker.root.name.startswith("pluglint-test-")
            assert tracker.root in path.parents
        finally:
            tracker.cleanup()

    def test_equal_names_do_not_collide(self):
        tracker = TempFileTracker()
        try:
            first = tracker.new_file("fhir/a.xml")
            second = tracker.new_file("fhir/a.xml")
            assert first != second
            assert len(tracker.files) == 2
        finally:
            tracker.cleanup()

    def test_parent_segments_are_ignored(self):
        tracker = TempFileTracker()
        try:
            path = tracker.new_file("../../escape.xml")
            assert tracker.root in path.parents
        finally:
            tracker.cleanup()

    def test_discard_removes_file_and_empty_dirs(self):
        tracker = TempFileTracker()
        path = tracker.new_file("deep/nested/a.xml")
        path.write_text("x")
        root = tracker.root
        tracker.discard(path)
        assert not path.exists()
        assert path not in tracker.files
        assert root.exists()
        assert list(root.iterdir()) == []
        tracker.cleanup()

    def test_cleanup_removes_directory(self):
        tracker = TempFileTracker()
        tracker.new_file("a.xml").write_text("x")
        root = tracker.root
        tracker.cleanup()
        assert not root.exists()
        assert tracker.root is None
        assert tracker.files == []

    def test_cleanup_twice_is_harmless(self):
        tracker = TempFileTracker()
        tracker.new_file("a.xml")
        tracker.cleanup()
        tracker.cleanup()


class TestResolutionContext:
    """Test ResolutionContext caches and lifecycle."""

    def test_canonical_key_resolves(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "p").mkdir()
        assert canonical_key("p") == canonical_key(tmp_path / "p" / ".." / "p")
        assert canonical_key("p") == str((tmp_path / "p").resolve())

    def test_temp_prefix_from_config(self):
        config = Config()
        config.resources.temp_prefix = "custom-"
        with ResolutionContext(config) as ctx:
            assert ctx.temp_files.prefix == "custom-"

    def test_cache_stats(self, context):
        context.roots.get_or_create("a", lambda k: k)
        context.record_registry_build()
        stats = context.cache_stats()
        assert stats["roots"] == 1
        assert stats["registry_builds"] == 1

    def test_close_clears_caches(self, context):
        path = context.temp_files.new_file("x.xml")
        path.write_text("x")
        context.roots.get_or_create("a", lambda k: k)
        context.close()
        assert len(context.roots) == 0
        assert not path.exists()

    def test_default_context_is_shared(self, monkeypatch):
        monkeypatch.setattr("pluglint.core.context.load_config", lambda: Config())
        reset_default_context()
        try:
            assert default_context() is default_context()
        finally:
            reset_default_context()

    def test_reset_creates_new_context(self, monkeypatch):
        monkeypatch.setattr("pluglint.core.context.load_config", lambda: Config())
        first = default_context()
        reset_default_context()
        try:
            assert default_context() is not first
        finally:
            reset_default_context()

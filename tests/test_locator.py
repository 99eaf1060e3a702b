"""Tests for resource location and classification."""

import os

import pytest

from pluglint.resources.archives import archive_index, visible_archives
from pluglint.resources.locator import (
    FoundInDependency,
    FoundInRoot,
    FoundOutsideRoot,
    NotFound,
    ResolutionSource,
    is_under_directory,
    locate,
    resolve_many,
)
from pluglint.resources.roots import ResourceRoot, RootStrategy

pytestmark = pytest.mark.unit

AD_REF = "fhir/ActivityDefinition/x.xml"


@pytest.fixture
def project(tmp_path):
    """Maven-shaped project whose resource root is src/main/resources."""
    project_dir = tmp_path / "project"
    (project_dir / "src" / "main" / "resources").mkdir(parents=True)
    return project_dir


@pytest.fixture
def root(project):
    return ResourceRoot(
        project / "src" / "main" / "resources", project, RootStrategy.SOURCE_RESOURCES
    )


def put(base, rel, content="<ActivityDefinition/>"):
    target = base / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    return target


class TestContainment:
    """Test is_under_directory."""

    def test_descendant(self, tmp_path):
        assert is_under_directory(tmp_path / "a" / "b.xml", tmp_path)

    def test_relative_segments_resolved(self, tmp_path):
        assert not is_under_directory(tmp_path / "a" / ".." / ".." / "b.xml", tmp_path)

    def test_sibling_with_common_prefix(self, tmp_path):
        assert not is_under_directory(tmp_path / "root-other" / "x", tmp_path / "root")


class TestLocateOnDisk:
    """Test disk lookups and classification."""

    def test_found_in_root(self, root, context):
        put(root.path, AD_REF)
        result = locate(AD_REF, root, context)
        assert isinstance(result, FoundInRoot)
        assert result.source is ResolutionSource.DISK_IN_ROOT
        assert result.found
        assert result.file == (root.path / AD_REF).resolve()
        assert result.expected_root == root.path

    def test_reference_is_normalized(self, root, context):
        put(root.path, AD_REF)
        for ref in ("/" + AD_REF, "classpath:" + AD_REF, "src/main/resources/" + AD_REF,
                    "  fhir\\ActivityDefinition\\x.xml  "):
            assert isinstance(locate(ref, root, context), FoundInRoot), ref

    def test_well_known_subfolder(self, root, context):
        put(root.path, "fhir/ActivityDefinition/x.xml")
        result = locate("ActivityDefinition/x.xml", root, context)
        assert isinstance(result, FoundInRoot)

    def test_direct_hit_beats_subfolder(self, root, context):
        put(root.path, "ping.bpmn", "direct")
        put(root.path, "bpmn/ping.bpmn", "subfolder")
        assert locate("ping.bpmn", root, context).file.read_text() == "direct"

    def test_project_file_outside_root(self, project, root, context):
        put(project, "other/x.xml")
        result = locate("other/x.xml", root, context)
        assert isinstance(result, FoundOutsideRoot)
        assert result.source is ResolutionSource.DISK_OUTSIDE_ROOT
        assert result.actual_location == (project / "other" / "x.xml").resolve()

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlink_escape_is_outside_root(self, tmp_path, root, context):
        outside = put(tmp_path / "elsewhere", "x.xml")
        link = root.path / "fhir" / "linked.xml"
        link.parent.mkdir(parents=True)
        link.symlink_to(outside)

        result = locate("fhir/linked.xml", root, context)
        assert isinstance(result, FoundOutsideRoot)
        assert result.path == link
        assert result.actual_location == outside.resolve()

    def test_absolute_reference(self, tmp_path, root, context):
        outside = put(tmp_path / "abs", "x.xml")
        result = locate(str(outside), root, context)
        assert isinstance(result, FoundOutsideRoot)

    def test_plain_directory_as_root(self, project, context):
        put(project, AD_REF)
        result = locate(AD_REF, project, context)
        assert isinstance(result, FoundInRoot)

    @pytest.mark.parametrize("ref", ["", "   ", None, "classpath:"])
    def test_blank_reference(self, root, context, ref):
        result = locate(ref, root, context)
        assert isinstance(result, NotFound)
        assert not result.found
        assert result.file is None

    def test_missing(self, root, context):
        assert isinstance(locate("fhir/nope.xml", root, context), NotFound)


class TestLocateInDependencies:
    """Test fallback to the project's dependency archives."""

    def test_found_in_dependency(self, project, root, write_jar, context):
        jar = write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "<from-jar/>"})

        result = locate(AD_REF, root, context)
        assert isinstance(result, FoundInDependency)
        assert result.source is ResolutionSource.DEPENDENCY
        assert result.file is not None and result.file.is_file()
        assert result.file.read_text() == "<from-jar/>"
        assert result.actual_location == jar
        assert result.archive_name == "shared.jar"
        assert result.entry == AD_REF
        assert result.file in context.temp_files.files

    def test_disk_wins_over_dependency(self, project, root, write_jar, context):
        write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "<from-jar/>"})
        put(root.path, AD_REF)
        assert isinstance(locate(AD_REF, root, context), FoundInRoot)

    def test_archive_priority(self, project, root, write_jar, context):
        write_jar(project / "target" / "dependencies" / "org" / "late.jar", {AD_REF: "late"})
        write_jar(project / "target" / "dependency" / "early.jar", {AD_REF: "early"})
        assert locate(AD_REF, root, context).file.read_text() == "early"

    def test_materialized_once_per_entry(self, project, root, write_jar, context):
        write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "x"})
        first = locate(AD_REF, root, context)
        second = locate("/" + AD_REF, root, context)
        assert first.file == second.file
        assert len(context.temp_files.files) == 1

    def test_temp_files_removed_on_close(self, project, root, write_jar, context):
        write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "x"})
        result = locate(AD_REF, root, context)
        assert result.file.exists()
        context.close()
        assert not result.file.exists()

    def test_unreadable_archive_is_skipped(self, project, root, write_jar, context):
        bad = project / "target" / "dependency" / "a-broken.jar"
        bad.parent.mkdir(parents=True)
        bad.write_bytes(b"garbage")
        write_jar(project / "target" / "dependency" / "b-good.jar", {AD_REF: "x"})

        assert isinstance(locate(AD_REF, root, context), FoundInDependency)
        assert bad in archive_index(project, context).skipped

    def test_corrupt_entry_is_not_found(self, project, root, corrupt_jar, context):
        """An entry that fails to inflate yields NotFound and leaves no temp file."""
        corrupt_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "<from-jar/>" * 50})
        assert isinstance(locate(AD_REF, root, context), NotFound)
        assert context.temp_files.files == []

    def test_archive_index_built_once(self, project, root, write_jar, context):
        write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "x"})
        locate(AD_REF, root, context)
        locate("fhir/other.xml", root, context)
        assert len(context.archives) == 1

    def test_nested_dependency_dir_not_scanned(self, project, write_jar):
        write_jar(project / "target" / "dependency" / "sub" / "hidden.jar", {AD_REF: "x"})
        assert visible_archives(project) == []


class TestResolveMany:
    """Test grouping of many references."""

    def test_grouping(self, project, root, write_jar, context):
        put(root.path, "bpe/ping.bpmn")
        put(project, "other/x.xml")
        write_jar(project / "target" / "dependency" / "shared.jar", {AD_REF: "x"})

        refs = ["bpe/ping.bpmn", "other/x.xml", AD_REF, "fhir/missing.xml", "bpe/ping.bpmn"]
        resolved = resolve_many(refs, root, context)

        assert list(resolved.results) == refs[:4]
        assert len(resolved.valid_files) == 2
        assert list(resolved.outside_root) == ["other/x.xml"]
        assert list(resolved.from_dependency) == [AD_REF]
        assert resolved.missing == ["fhir/missing.xml"]

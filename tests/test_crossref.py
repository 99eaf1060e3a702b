"""Tests for FHIR content cross-referencing."""

import json

import pytest

from pluglint.resources.crossref import (
    CrossReferenceKind,
    cross_reference,
    definition_exists,
    find_definition,
    json_to_element,
    load_resource,
    matches,
    parse_resource,
)
from pluglint.resources.locator import FoundInRoot, NotFound, locate

pytestmark = pytest.mark.unit

MESSAGE = "startPing"
AD_URL = "http://dsf.dev/bpe/Process/ping"
SD_URL = "http://dsf.dev/fhir/StructureDefinition/task-start-ping"
Q_URL = "http://dsf.dev/fhir/Questionnaire/user-task"


def put(base, rel, content):
    target = base / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    return target


class TestKind:
    """Test CrossReferenceKind parsing."""

    def test_by_value_and_name(self):
        assert CrossReferenceKind.parse("message-name") is CrossReferenceKind.MESSAGE_NAME
        assert CrossReferenceKind.parse("questionnaire_url") is CrossReferenceKind.QUESTIONNAIRE_URL

    def test_unknown(self):
        with pytest.raises(ValueError):
            CrossReferenceKind.parse("codesystem")


class TestMatchesXml:
    """Test matchers on FHIR XML."""

    def test_message_name(self, fhir_xml):
        root = parse_resource(fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL).encode(), "a.xml")
        assert matches(root, CrossReferenceKind.MESSAGE_NAME, MESSAGE)
        assert not matches(root, CrossReferenceKind.MESSAGE_NAME, "other")

    def test_activity_definition_url_ignores_version(self, fhir_xml):
        root = parse_resource(fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL).encode(), "a.xml")
        assert matches(root, CrossReferenceKind.ACTIVITY_DEFINITION_URL, AD_URL + "|#{version}")

    def test_structure_definition(self, fhir_xml):
        root = parse_resource(fhir_xml["StructureDefinition"].format(message=MESSAGE, url=SD_URL).encode(), "s.xml")
        assert matches(root, CrossReferenceKind.STRUCTURE_DEFINITION, SD_URL)
        assert matches(root, CrossReferenceKind.STRUCTURE_DEFINITION, MESSAGE)

    def test_wrong_resource_type(self, fhir_xml):
        root = parse_resource(fhir_xml["Questionnaire"].format(url=AD_URL).encode(), "q.xml")
        assert not matches(root, CrossReferenceKind.ACTIVITY_DEFINITION_URL, AD_URL)
        assert matches(root, CrossReferenceKind.QUESTIONNAIRE_URL, AD_URL)

    def test_none_and_blank(self):
        assert not matches(None, CrossReferenceKind.MESSAGE_NAME, MESSAGE)

    def test_malformed_xml(self):
        assert parse_resource(b"<ActivityDefinition><unclosed>", "bad.xml") is None


class TestJson:
    """Test the FHIR JSON element mapping."""

    def test_message_name_in_json(self):
        data = {
            "resourceType": "ActivityDefinition",
            "url": AD_URL,
            "extension": [{
                "url": "http://dsf.dev/fhir/StructureDefinition/extension-process-authorization",
                "extension": [{"url": "message-name", "valueString": MESSAGE}],
            }],
            "_url": {"id": "ignored"},
            "experimental": False,
        }
        root = parse_resource(json.dumps(data).encode(), "a.json")
        assert matches(root, CrossReferenceKind.MESSAGE_NAME, MESSAGE)
        assert matches(root, CrossReferenceKind.ACTIVITY_DEFINITION_URL, AD_URL)

    def test_primitives_become_value_attributes(self):
        element = json_to_element({"resourceType": "Questionnaire", "experimental": True, "status": "active"})
        assert element.tag == "Questionnaire"
        assert element.find("experimental").get("value") == "true"
        assert element.find("status").get("value") == "active"

    def test_element_id_attribute(self):
        element = json_to_element({
            "resourceType": "StructureDefinition",
            "differential": {"element": [{"id": "Task.input", "fixedString": MESSAGE}]},
        })
        assert element.find("differential/element").get("id") == "Task.input"

    def test_missing_resource_type(self):
        with pytest.raises(ValueError):
            json_to_element({"url": AD_URL})
        assert parse_resource(b'{"url": "x"}', "x.json") is None

    def test_invalid_json(self):
        assert parse_resource(b"{not json", "x.json") is None


class TestCrossReference:
    """Test cross_reference on located resources."""

    def test_found_in_root(self, tmp_path, fhir_xml, context):
        put(tmp_path, "fhir/ActivityDefinition/ping.xml",
            fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL))
        result = locate("fhir/ActivityDefinition/ping.xml", tmp_path, context)
        assert isinstance(result, FoundInRoot)
        assert cross_reference(result, "message-name", MESSAGE)
        assert not cross_reference(result, "message-name", "stopPing")

    def test_not_found_never_matches(self, tmp_path):
        assert not cross_reference(NotFound(expected_root=tmp_path), "message-name", MESSAGE)

    def test_load_missing_file(self, tmp_path):
        assert load_resource(tmp_path / "absent.xml") is None


class TestFindDefinition:
    """Test project-wide definition search."""

    def test_nested_layout_first(self, tmp_path, fhir_xml, context):
        nested = put(tmp_path, "src/main/resources/fhir/ActivityDefinition/a.xml",
                     fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL))
        put(tmp_path, "fhir/ActivityDefinition/a.xml",
            fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL))
        assert find_definition(tmp_path, "message-name", MESSAGE, context) == nested

    def test_flat_layout(self, tmp_path, fhir_xml, context):
        flat = put(tmp_path, "fhir/Questionnaire/q.json", json.dumps({"resourceType": "Questionnaire", "url": Q_URL}))
        assert find_definition(tmp_path, "questionnaire-url", Q_URL + "|1.0", context) == flat

    def test_malformed_files_skipped(self, tmp_path, fhir_xml, context):
        put(tmp_path, "fhir/StructureDefinition/a-broken.xml", "<StructureDefinition><oops>")
        good = put(tmp_path, "fhir/StructureDefinition/b-good.xml",
                   fhir_xml["StructureDefinition"].format(message=MESSAGE, url=SD_URL))
        assert find_definition(tmp_path, "structure-definition", SD_URL, context) == good

    def test_from_dependency_archive(self, tmp_path, fhir_xml, write_jar, context):
        write_jar(tmp_path / "target" / "dependency" / "api.jar", {
            "fhir/ActivityDefinition/ping.xml": fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL),
            "fhir/ActivityDefinition/nested/other.xml": "<ActivityDefinition/>",
        })
        found = find_definition(tmp_path, "activity-definition-url", AD_URL, context)
        assert found is not None
        assert found in context.temp_files.files
        assert not find_definition(tmp_path, "activity-definition-url", AD_URL, context,
                                   include_dependencies=False)

    def test_corrupt_archive_entry_alone(self, tmp_path, fhir_xml, corrupt_jar, context):
        content = fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL)
        corrupt_jar(tmp_path / "target" / "dependency" / "a.jar", {"fhir/ActivityDefinition/ping.xml": content})
        assert find_definition(tmp_path, "message-name", MESSAGE, context) is None

    def test_matching_archive_is_materialized(self, tmp_path, fhir_xml, write_jar, context):
        """The returned file comes from the archive whose entry matched."""
        entry = "fhir/ActivityDefinition/ping.xml"
        write_jar(tmp_path / "target" / "dependency" / "a.jar", {
            entry: fhir_xml["ActivityDefinition"].format(message="other", url="http://dsf.dev/bpe/Process/other"),
        })
        write_jar(tmp_path / "target" / "dependency" / "b.jar", {
            entry: fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL),
        })
        found = find_definition(tmp_path, "activity-definition-url", AD_URL, context)
        assert found is not None
        assert AD_URL in found.read_text()

    def test_corrupt_archive_entry_skipped(self, tmp_path, fhir_xml, corrupt_jar, write_jar, context):
        """An entry that fails to inflate is skipped, later archives are still searched."""
        content = fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL)
        corrupt_jar(tmp_path / "target" / "dependency" / "a.jar", {"fhir/ActivityDefinition/ping.xml": content})
        write_jar(tmp_path / "target" / "dependency" / "b.jar", {"fhir/ActivityDefinition/ping.xml": content})
        found = find_definition(tmp_path, "message-name", MESSAGE, context)
        assert found is not None
        assert MESSAGE in found.read_text()

    def test_blank_value(self, tmp_path, context):
        assert find_definition(tmp_path, "message-name", "  ", context) is None

    def test_definition_exists(self, tmp_path, fhir_xml, context):
        put(tmp_path, "fhir/ActivityDefinition/a.xml",
            fhir_xml["ActivityDefinition"].format(message=MESSAGE, url=AD_URL))
        assert definition_exists(tmp_path, "message-name", MESSAGE, context)
        assert not definition_exists(tmp_path, "message-name", "nope", context)

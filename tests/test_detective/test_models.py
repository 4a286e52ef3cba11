"""models.py 단위 테스트"""

import pytest

from detective.models import (
    REFERENCE_PAGE_SIZE,
    Breadcrumb,
    FileEntry,
    FunctionEntry,
    FunctionReference,
    JobLogSnapshot,
    LogCursor,
    TriggerInformation,
    escape_text,
    owner_project,
    parse_reference_entry,
    parse_reference_page,
)
from detective.rpc import MalformedResponseError


class TestOwnerProject:
    def test_strips_namespace_prefix(self):
        assert owner_project("github:acme/widgets") == "acme/widgets"

    def test_strips_only_first_prefix(self):
        assert owner_project("github:acme:odd/name") == "acme:odd/name"

    def test_without_prefix_unchanged(self):
        assert owner_project("acme/widgets") == "acme/widgets"


class TestJobLogSnapshot:
    def test_from_payload(self):
        snap = JobLogSnapshot.from_payload({"job_id": "j1", "logs": ["a", "b"]})
        assert snap.job_id == "j1"
        assert snap.logs == ("a", "b")

    def test_null_logs_is_empty(self):
        snap = JobLogSnapshot.from_payload({"job_id": "j1", "logs": None})
        assert snap.logs == ()

    def test_missing_field_raises(self):
        with pytest.raises(MalformedResponseError):
            JobLogSnapshot.from_payload({"logs": []})

    def test_non_dict_raises(self):
        with pytest.raises(MalformedResponseError):
            JobLogSnapshot.from_payload(["a"])

    def test_logs_not_list_raises(self):
        with pytest.raises(MalformedResponseError):
            JobLogSnapshot.from_payload({"job_id": "j1", "logs": "abc"})


class TestLogCursor:
    def test_defaults(self):
        cursor = LogCursor()
        assert cursor.job_id is None
        assert cursor.last_rendered_index == -1


class TestFunctionReference:
    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            FunctionReference(id="f", class_name="C", function_signature="m()",
                              external_reference_count=-1)


class TestReferenceEntries:
    def test_function_entry_from_payload(self):
        entry = parse_reference_entry({
            "isFunction": True,
            "shortClassName": "Widget",
            "shortFunctionSignature": "render(List<String>)",
            "projectName": "github:acme/widgets",
            "commitSha1": "abc123",
            "fileLocation": "src/Widget.java",
            "lineNumber": 42,
        })
        assert isinstance(entry, FunctionEntry)
        assert entry.owner_project == "acme/widgets"
        assert entry.code_location("https://github.com/") == (
            "https://github.com/acme/widgets/blob/abc123/src/Widget.java#L42"
        )

    def test_file_entry_from_payload(self):
        entry = parse_reference_entry({
            "isFunction": False,
            "shortClassName": "Widget",
            "projectName": "github:acme/widgets",
            "commitSha1": "abc123",
            "fileLocation": "src/Widget.java",
        })
        assert isinstance(entry, FileEntry)
        url = entry.code_location("https://github.com/")
        assert url == "https://github.com/acme/widgets/blob/abc123/src/Widget.java"
        assert "#L" not in url

    def test_file_entry_without_commit_links_project(self):
        entry = FileEntry(short_class_name="W", project_name="github:acme/widgets",
                          file_location="a.java")
        assert entry.code_location("https://github.com/") == "https://github.com/acme/widgets"

    def test_bad_line_number_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_reference_entry({
                "isFunction": True,
                "shortClassName": "W",
                "shortFunctionSignature": "m()",
                "projectName": "github:a/b",
                "commitSha1": "c",
                "fileLocation": "f",
                "lineNumber": "nope",
            })

    def test_page_must_be_list(self):
        with pytest.raises(MalformedResponseError):
            parse_reference_page({"entries": []})

    def test_page_preserves_order(self):
        page = parse_reference_page([
            {"shortClassName": "B", "projectName": "github:x/y", "fileLocation": "b"},
            {"shortClassName": "A", "projectName": "github:x/y", "fileLocation": "a"},
        ])
        assert [e.short_class_name for e in page] == ["B", "A"]


class TestMisc:
    def test_page_size(self):
        assert REFERENCE_PAGE_SIZE == 10

    def test_root_breadcrumb(self):
        assert Breadcrumb("root").is_root
        fr = FunctionReference(id="f", class_name="C", function_signature="m()")
        assert not Breadcrumb("f", scope=fr).is_root

    def test_escape_text(self):
        assert escape_text("get<T>()") == "get&lt;T&gt;()"

    def test_trigger_information(self):
        assert TriggerInformation.from_payload({"can_build": True}).can_build is True
        with pytest.raises(MalformedResponseError):
            TriggerInformation.from_payload({})


class TestFieldTypes:
    def _function_payload(self, **overrides):
        payload = {
            "isFunction": True,
            "shortClassName": "W",
            "shortFunctionSignature": "m()",
            "projectName": "github:a/b",
            "commitSha1": "c",
            "fileLocation": "f",
            "lineNumber": 1,
        }
        payload.update(overrides)
        return payload

    def test_null_signature_rejected(self):
        with pytest.raises(MalformedResponseError, match="shortFunctionSignature"):
            parse_reference_entry(self._function_payload(shortFunctionSignature=None))

    def test_non_string_project_rejected(self):
        with pytest.raises(MalformedResponseError, match="projectName"):
            parse_reference_entry(self._function_payload(projectName=42))

    def test_file_entry_null_location_rejected(self):
        with pytest.raises(MalformedResponseError, match="fileLocation"):
            parse_reference_entry({
                "shortClassName": "W", "projectName": "github:a/b", "fileLocation": None,
            })

    def test_file_entry_non_string_commit_rejected(self):
        with pytest.raises(MalformedResponseError, match="commitSha1"):
            parse_reference_entry({
                "shortClassName": "W", "projectName": "github:a/b",
                "fileLocation": "f", "commitSha1": 123,
            })

    def test_can_build_must_be_bool(self):
        with pytest.raises(MalformedResponseError):
            TriggerInformation.from_payload({"can_build": "false"})
        assert TriggerInformation.from_payload({"can_build": False}).can_build is False

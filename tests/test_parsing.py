"""Tests for specaudit/parsing.py — path, header and case micro-formats."""

import pytest

from specaudit.errors import FailureReason, FilenameNotValid, MetaInfoNotValid
from specaudit.parsing import (
    distinct_issues,
    parse_test_header,
    parse_test_path,
    split_issues,
    strip_meta_info,
)
from specaudit.spec_test_info import TestArea, TestCase, TestType


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------

def make_header(
    area="DIAGNOSTICS",
    test_type="POSITIVE",
    section="16.30",
    section_name="when-expression",
    paragraph=3,
    sentence=1,
    sentence_text="When expression has a subject",
    number=3,
    description="Simple when with else branch",
    extra="",
) -> str:
    """Build a header block; ``extra`` is appended right after the description."""
    return (
        "/*\n"
        f" KOTLIN {area} SPEC TEST ({test_type})\n"
        "\n"
        f" SECTION {section}: {section_name}\n"
        f" PARAGRAPH: {paragraph}\n"
        f" SENTENCE {sentence}: {sentence_text}\n"
        f" NUMBER: {number}\n"
        f" DESCRIPTION: {description}{extra}\n"
        " */\n"
        "\n"
    )


CASES_BODY = (
    "// CASE DESCRIPTION: when with Int subject\n"
    "fun case_1(x: Int) = when (x) { else -> 1 }\n"
    "\n"
    "/*\n"
    " CASE DESCRIPTION: nested when\n"
    " UNEXPECTED BEHAVIOUR\n"
    " ISSUES: KT-22996, KT-1\n"
    " */\n"
    "fun case_2() {}\n"
)


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------

class TestParseTestPath:
    """Path layout: <area>/s-<section>_<name>/p-<paragraph>/<pos|neg>/<sentence>.<number>.kt"""

    def test_valid_path_fields(self):
        info = parse_test_path("testData/diagnostics/s-16.30_when-expression/p-3/pos/1.3.kt")
        assert info.area is TestArea.DIAGNOSTICS
        assert info.test_type is TestType.POSITIVE
        assert info.section_number == "16.30"
        assert info.section_name == "when-expression"
        assert info.paragraph_number == 3
        assert info.sentence_number == 1
        assert info.test_number == 3

    def test_path_leaves_free_text_empty(self):
        info = parse_test_path("/repo/testData/psi/s-1_intro/p-2/neg/4.5.kt")
        assert info.sentence is None
        assert info.description is None
        assert info.cases is None
        assert info.issues == []
        assert info.unexpected_behavior is False

    def test_negative_and_psi(self):
        info = parse_test_path("/repo/testData/psi/s-1_intro/p-2/neg/4.5.kt")
        assert info.area is TestArea.PSI
        assert info.test_type is TestType.NEGATIVE

    def test_codegen_multi_level_section(self):
        info = parse_test_path("x/codegen/s-8.1.2_type_alias-decl/p-10/pos/12.7.kt")
        assert info.area is TestArea.CODEGEN
        assert info.section_number == "8.1.2"
        assert info.section_name == "type_alias-decl"
        assert info.paragraph_number == 10

    def test_windows_separators(self):
        info = parse_test_path(r"C:\kotlin\testData\diagnostics\s-16.30_when-expression\p-3\neg\2.1.kt")
        assert info.test_type is TestType.NEGATIVE
        assert info.sentence_number == 2

    def test_area_as_first_component(self):
        """A root of "." leaves the area directory at the start of the path."""
        info = parse_test_path("diagnostics/s-16.30_when-expression/p-3/pos/1.3.kt")
        assert info.area is TestArea.DIAGNOSTICS
        assert info.test_number == 3

    def test_other_extension(self):
        info = parse_test_path("testData/psi/s-1_intro/p-1/neg/2.4.kts", extension=".kts")
        assert info.area is TestArea.PSI
        assert info.sentence_number == 2
        assert info.test_number == 4

    def test_extension_must_match(self):
        with pytest.raises(FilenameNotValid):
            parse_test_path("testData/psi/s-1_intro/p-1/neg/2.4.kt", extension=".kts")
        with pytest.raises(FilenameNotValid):
            parse_test_path("testData/psi/s-1_intro/p-1/neg/2.4xkts", extension=".kts")

    @pytest.mark.parametrize("path", [
        "testData/diagnostics/s-16.30_when-expression/p-03/pos/1.3.kt",
        "testData/diagnostics/s-016.30_when-expression/p-3/pos/1.3.kt",
        "testData/diagnostic/s-16.30_when-expression/p-3/pos/1.3.kt",
        "testData/diagnostics/16.30_when-expression/p-3/pos/1.3.kt",
        "testData/diagnostics/s-16.30_when-expression/p-3/positive/1.3.kt",
        "testData/diagnostics/s-16.30_when-expression/p-3/pos/1_3.kt",
        "testData/diagnostics/s-16.30_when-expression/p-3/pos/1.3.kts",
        "testData/diagnostics/s-16.30_when-expression/p-3/pos/1.0.kt",
        "testData/diagnostics/s-16.30_when expression/p-3/pos/1.3.kt",
        "testData/xdiagnostics/s-16.30_when-expression/p-3/pos/1.3.kt",
        "xdiagnostics/s-16.30_when-expression/p-3/pos/1.3.kt",
    ])
    def test_invalid_paths_raise(self, path):
        with pytest.raises(FilenameNotValid) as exc_info:
            parse_test_path(path)
        assert exc_info.value.reason is FailureReason.FILENAME_NOT_VALID
        assert exc_info.value.path == path

    def test_failure_message_shows_shape_and_example(self):
        with pytest.raises(FilenameNotValid) as exc_info:
            parse_test_path("testData/diagnostics/readme.kt")
        message = str(exc_info.value)
        assert "s-<sectionNumber>_<sectionName>" in message
        assert "s-16.30_when-expression/p-3/pos/1.3.kt" in message


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

class TestParseTestHeader:
    """Header block comment parsing."""

    def test_header_fields(self):
        info = parse_test_header(make_header() + "fun box() {}\n")
        assert info.area is TestArea.DIAGNOSTICS
        assert info.test_type is TestType.POSITIVE
        assert info.section_number == "16.30"
        assert info.section_name == "when-expression"
        assert info.paragraph_number == 3
        assert info.sentence_number == 1
        assert info.sentence == "When expression has a subject"
        assert info.test_number == 3
        assert info.description == "Simple when with else branch"
        assert info.unexpected_behavior is False
        assert info.issues == []

    def test_type_token_is_enum_name(self):
        info = parse_test_header(make_header(test_type="NEGATIVE", area="CODEGEN"))
        assert info.test_type is TestType.NEGATIVE
        assert info.area is TestArea.CODEGEN

    def test_abbreviated_type_is_rejected(self):
        with pytest.raises(MetaInfoNotValid):
            parse_test_header(make_header(test_type="pos"))

    def test_lower_case_area_is_rejected(self):
        with pytest.raises(MetaInfoNotValid):
            parse_test_header(make_header(area="diagnostics"))

    def test_missing_header(self):
        with pytest.raises(MetaInfoNotValid) as exc_info:
            parse_test_header("fun box() {}\n", path="a/b.kt")
        assert exc_info.value.reason is FailureReason.METAINFO_NOT_VALID
        assert str(exc_info.value).startswith("a/b.kt: ")

    def test_missing_field(self):
        text = make_header().replace(" NUMBER: 3\n", "")
        with pytest.raises(MetaInfoNotValid):
            parse_test_header(text)

    def test_fields_out_of_order(self):
        text = make_header().replace(" PARAGRAPH: 3\n SENTENCE 1:", " SENTENCE 1:").replace(
            " NUMBER: 3\n", " NUMBER: 3\n PARAGRAPH: 3\n")
        with pytest.raises(MetaInfoNotValid):
            parse_test_header(text)

    def test_unexpected_behaviour_marker(self):
        info = parse_test_header(make_header(extra="\n UNEXPECTED BEHAVIOUR"))
        assert info.unexpected_behavior is True
        assert info.description == "Simple when with else branch"

    def test_header_issues(self):
        info = parse_test_header(make_header(extra="\n UNEXPECTED BEHAVIOUR\n ISSUES: KT-100, KT-200"))
        assert info.unexpected_behavior is True
        assert info.issues == ["KT-100", "KT-200"]

    def test_malformed_issue_is_rejected(self):
        with pytest.raises(MetaInfoNotValid):
            parse_test_header(make_header(extra="\n ISSUES: KT-0100"))


# ---------------------------------------------------------------------------
# Cases
# ---------------------------------------------------------------------------

class TestCases:
    """Case annotations and the synthetic single case."""

    def test_no_cases_gives_single_synthetic_case(self):
        info = parse_test_header(make_header(extra="\n ISSUES: KT-5") + "fun box() {}\n")
        assert info.cases == [
            TestCase(number=1, description="Simple when with else branch",
                     unexpected_behavior=False, issues=["KT-5"]),
        ]

    def test_synthetic_case_carries_header_flag(self):
        info = parse_test_header(make_header(extra="\n UNEXPECTED BEHAVIOUR"))
        assert len(info.cases) == 1
        assert info.cases[0].unexpected_behavior is True
        assert info.cases[0].issues is None

    def test_line_and_block_cases_in_order(self):
        info = parse_test_header(make_header() + CASES_BODY)
        assert [c.number for c in info.cases] == [1, 2]
        assert info.cases[0].description == "when with Int subject"
        assert info.cases[0].unexpected_behavior is False
        assert info.cases[0].issues is None
        assert info.cases[1].description == "nested when"
        assert info.cases[1].unexpected_behavior is True
        assert info.cases[1].issues == ["KT-22996", "KT-1"]

    def test_case_flag_marks_whole_file(self):
        info = parse_test_header(make_header() + CASES_BODY)
        assert info.unexpected_behavior is True

    def test_no_flags_anywhere(self):
        body = "// CASE DESCRIPTION: first\nfun case_1() {}\n"
        info = parse_test_header(make_header() + body)
        assert info.unexpected_behavior is False

    def test_case_on_last_line_needs_newline(self):
        """A case annotation must end with a newline to be recognised."""
        unterminated = parse_test_header(make_header() + "// CASE DESCRIPTION: last")
        assert [c.description for c in unterminated.cases] == ["Simple when with else branch"]
        terminated = parse_test_header(make_header() + "// CASE DESCRIPTION: last\n")
        assert [c.description for c in terminated.cases] == ["last"]

    def test_issues_are_distinct_union(self):
        text = make_header(extra="\n ISSUES: KT-1, KT-22996, KT-1") + CASES_BODY
        info = parse_test_header(text)
        assert sorted(info.issues) == ["KT-1", "KT-22996"]
        assert len(info.issues) == len(set(info.issues))

    def test_header_issues_not_added_as_case_when_cases_exist(self):
        text = make_header(extra="\n ISSUES: KT-7") + CASES_BODY
        info = parse_test_header(text)
        assert len(info.cases) == 2
        assert "KT-7" in info.issues
        assert all("KT-7" not in (c.issues or []) for c in info.cases)


# ---------------------------------------------------------------------------
# Issue helpers
# ---------------------------------------------------------------------------

class TestIssueHelpers:

    def test_split_issues(self):
        assert split_issues("KT-1,KT-2,   KT-3") == ["KT-1", "KT-2", "KT-3"]
        assert split_issues(None) is None

    def test_distinct_issues_order(self):
        cases = [
            TestCase(1, "a", issues=["KT-2", "KT-3"]),
            TestCase(2, "b", issues=None),
            TestCase(3, "c", issues=["KT-3", "KT-1"]),
        ]
        assert distinct_issues(cases, ["KT-1", "KT-4"]) == ["KT-2", "KT-3", "KT-1", "KT-4"]

    def test_distinct_issues_empty(self):
        assert distinct_issues([TestCase(1, "a")], None) == []


# ---------------------------------------------------------------------------
# strip_meta_info
# ---------------------------------------------------------------------------

class TestStripMetaInfo:

    def test_removes_header_and_cases(self):
        code = strip_meta_info(make_header() + CASES_BODY)
        assert "KOTLIN DIAGNOSTICS SPEC TEST" not in code
        assert "CASE DESCRIPTION" not in code
        assert "UNEXPECTED BEHAVIOUR" not in code
        assert "fun case_1(x: Int) = when (x) { else -> 1 }" in code
        assert "fun case_2() {}" in code

    def test_plain_code_unchanged(self):
        code = "fun box(): String = \"OK\"\n"
        assert strip_meta_info(code) == code

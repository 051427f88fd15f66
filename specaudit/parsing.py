"""Parsers for the spec test micro-formats.

Three fixed, line-oriented formats are recognised:

  - the test file path:
      [<root>/]<area>/s-<section>_<name>/p-<paragraph>/<pos|neg>/<sentence>.<number>.kt
  - the header block comment at the top of a test file:
      /* KOTLIN <AREA> SPEC TEST (<POSITIVE|NEGATIVE>)
         SECTION <section>: <name>
         PARAGRAPH: <paragraph>
         SENTENCE <sentence>: <text>
         NUMBER: <number>
         DESCRIPTION: <text>
         [UNEXPECTED BEHAVIOUR]
         [ISSUES: KT-<n>[, KT-<n>...]]
      */
  - case annotations in the test body (line or block comments):
      // CASE DESCRIPTION: <text>
      [UNEXPECTED BEHAVIOUR]
      [ISSUES: KT-<n>[, KT-<n>...]]

All functions here are pure: text in, ``TestInfo`` / ``TestCase`` out, or a
``SpecTestValidationError`` subclass raised.
"""

from __future__ import annotations

import re

from specaudit.errors import FilenameNotValid, MetaInfoNotValid
from specaudit.spec_test_info import TestArea, TestCase, TestInfo, TestType


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

INTEGER_RE = r"[1-9]\d*"
SECTION_NUMBER_RE = rf"{INTEGER_RE}(?:\.{INTEGER_RE})*"
UNEXPECTED_BEHAVIOUR_RE = r"(?:\n\s*(?P<unexpected_behaviour>UNEXPECTED BEHAVIOUR))"
ISSUES_RE = rf"(?:\n\s*ISSUES:\s*(?P<issues>KT-{INTEGER_RE}(?:,\s*KT-{INTEGER_RE})*))"

_AREA_NAMES = "|".join(a.name for a in TestArea)
_AREA_DIRS = "|".join(a.value for a in TestArea)
_TYPE_NAMES = "|".join(t.name for t in TestType)
_TYPE_ABBREVIATIONS = "|".join(t.value for t in TestType)

DEFAULT_TEST_EXTENSION = ".kt"


_PATH_PATTERNS: dict[str, re.Pattern] = {}


def path_pattern_for(extension: str = DEFAULT_TEST_EXTENSION) -> re.Pattern:
    """Path pattern for test files ending in ``extension`` (".kt", ".kts", ...).

    The area directory is either the first path component or follows a "/".
    """
    pattern = _PATH_PATTERNS.get(extension)
    if pattern is None:
        pattern = re.compile(
            rf"^(?:.*?/)?(?P<area>{_AREA_DIRS})"
            rf"/s-(?P<section_number>{SECTION_NUMBER_RE})_(?P<section_name>[\w-]+)"
            rf"/p-(?P<paragraph_number>{INTEGER_RE})"
            rf"/(?P<test_type>{_TYPE_ABBREVIATIONS})"
            rf"/(?P<sentence_number>{INTEGER_RE})\.(?P<test_number>{INTEGER_RE})"
            rf"{re.escape(extension)}$"
        )
        _PATH_PATTERNS[extension] = pattern
    return pattern


TEST_PATH_PATTERN = path_pattern_for(DEFAULT_TEST_EXTENSION)

TEST_HEADER_PATTERN = re.compile(
    rf"/\*\s+KOTLIN (?P<area>{_AREA_NAMES}) SPEC TEST \((?P<test_type>{_TYPE_NAMES})\)"
    rf"\s+SECTION (?P<section_number>{SECTION_NUMBER_RE}):\s*(?P<section_name>.*?)"
    rf"\s+PARAGRAPH:\s*(?P<paragraph_number>{INTEGER_RE})"
    rf"\s+SENTENCE\s*(?P<sentence_number>{INTEGER_RE}):\s*(?P<sentence>.*?)"
    rf"\s+NUMBER:\s*(?P<test_number>{INTEGER_RE})"
    rf"\s+DESCRIPTION:\s*(?P<description>.*?)"
    rf"{UNEXPECTED_BEHAVIOUR_RE}?{ISSUES_RE}?"
    r"\s+\*/\s*"
)

TEST_CASE_PATTERN = re.compile(
    r"(?:(?:/\*\n\s*)|(?://\s*))CASE DESCRIPTION:\s*(?P<description>.*?)"
    rf"{UNEXPECTED_BEHAVIOUR_RE}?{ISSUES_RE}?"
    r"\n(?:\s\*/)?"
)

_ISSUE_SEPARATOR = re.compile(r",\s*")


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------

def split_issues(raw: str | None) -> list[str] | None:
    """Split an ``ISSUES:`` value ("KT-1, KT-2") into identifiers."""
    if raw is None:
        return None
    return [issue for issue in _ISSUE_SEPARATOR.split(raw.strip()) if issue]


def distinct_issues(cases: list[TestCase], header_issues: list[str] | None) -> list[str]:
    """Order-preserving union of every case's issues and the header's issues."""
    seen: dict[str, None] = {}
    for case in cases:
        for issue in case.issues or []:
            seen.setdefault(issue)
    for issue in header_issues or []:
        seen.setdefault(issue)
    return list(seen)


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------

def parse_test_path(path: str, extension: str = DEFAULT_TEST_EXTENSION) -> TestInfo:
    """Extract test metadata from a test file path.

    Raises FilenameNotValid when the path does not follow the layout.
    """
    normalized = str(path).replace("\\", "/")
    m = path_pattern_for(extension).match(normalized)
    if not m:
        raise FilenameNotValid(str(path))

    return TestInfo(
        area=TestArea.from_dir_name(m.group("area")),
        test_type=TestType.from_abbreviation(m.group("test_type")),
        section_number=m.group("section_number"),
        section_name=m.group("section_name"),
        paragraph_number=int(m.group("paragraph_number")),
        sentence_number=int(m.group("sentence_number")),
        sentence=None,
        test_number=int(m.group("test_number")),
    )


# ---------------------------------------------------------------------------
# Header and cases
# ---------------------------------------------------------------------------

def _single_case(header_match: re.Match) -> TestCase:
    return TestCase(
        number=1,
        description=header_match.group("description"),
        unexpected_behavior=header_match.group("unexpected_behaviour") is not None,
        issues=split_issues(header_match.group("issues")),
    )


def parse_test_cases(text: str, header_match: re.Match) -> list[TestCase]:
    """Collect case annotations in order of appearance.

    A file without any case annotation is a single case described by the
    header itself.
    """
    cases = [
        TestCase(
            number=i,
            description=m.group("description"),
            unexpected_behavior=m.group("unexpected_behaviour") is not None,
            issues=split_issues(m.group("issues")),
        )
        for i, m in enumerate(TEST_CASE_PATTERN.finditer(text), start=1)
    ]
    if not cases:
        cases.append(_single_case(header_match))
    return cases


def parse_test_header(text: str, path: str | None = None) -> TestInfo:
    """Extract test metadata from the header comment of a test file.

    Raises MetaInfoNotValid when no well-formed header is present.
    """
    m = TEST_HEADER_PATTERN.search(text)
    if not m:
        raise MetaInfoNotValid(path)

    cases = parse_test_cases(text, m)
    header_issues = split_issues(m.group("issues"))
    unexpected = (
        m.group("unexpected_behaviour") is not None
        or any(case.unexpected_behavior for case in cases)
    )

    return TestInfo(
        area=TestArea[m.group("area")],
        test_type=TestType[m.group("test_type")],
        section_number=m.group("section_number"),
        section_name=m.group("section_name"),
        paragraph_number=int(m.group("paragraph_number")),
        sentence_number=int(m.group("sentence_number")),
        sentence=m.group("sentence"),
        test_number=int(m.group("test_number")),
        description=m.group("description"),
        cases=cases,
        unexpected_behavior=unexpected,
        issues=distinct_issues(cases, header_issues),
    )


def strip_meta_info(text: str) -> str:
    """Return the test code with the header and all case annotations removed."""
    without_header = TEST_HEADER_PATTERN.sub("", text)
    return TEST_CASE_PATTERN.sub("", without_header)

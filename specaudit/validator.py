#!/usr/bin/env python3
"""Validate spec test files: path vs. header metadata, and declared test type.

Checks (per file, fail fast):
  1. The path follows the spec test layout
  2. The header comment is present and well formed
  3. Path and header agree on area, type, section, paragraph, sentence, number
  4. Optionally, the declared type matches the verdict of a compiler run

Usage:
  python -m specaudit.validator [PATH ...] \\
    [--config spec_tests.yaml] \\
    [--verdicts output/verdicts.yaml] \\
    [--print-info] [--report output/validation_report.json] [--verbose]

PATH may be a test file or a directory; with no PATH every configured area
under the configured test data root is checked.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml

from specaudit.config import ConfigError, SpecTestsConfig, load_config
from specaudit.errors import (
    FailureReason,
    FilenameAndMetaInfoNotConsistent,
    SpecTestValidationError,
    TestIsNotNegative,
    TestIsNotPositive,
    UnknownValidationError,
)
from specaudit.parsing import (
    DEFAULT_TEST_EXTENSION,
    parse_test_header,
    parse_test_path,
    strip_meta_info,
)
from specaudit.spec_test_info import TestInfo, TestType


SEPARATOR = "-" * 50


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def check_consistency(by_path: TestInfo, by_content: TestInfo, path: str | None = None) -> TestInfo:
    """Return the header-derived info if it agrees with the path-derived one."""
    if not by_path.is_consistent_with(by_content):
        raise FilenameAndMetaInfoNotConsistent(path)
    return by_content


def validate_test_type(declared: TestType, actual: TestType, path: str | None = None) -> None:
    if actual == declared:
        return
    if declared == TestType.POSITIVE and actual == TestType.NEGATIVE:
        raise TestIsNotPositive(path)
    if declared == TestType.NEGATIVE and actual == TestType.POSITIVE:
        raise TestIsNotNegative(path)
    raise UnknownValidationError(path)


def verdict_to_test_type(has_errors: bool) -> TestType:
    """Map a compiler run verdict (any error-severity finding?) to a test type."""
    return TestType.NEGATIVE if has_errors else TestType.POSITIVE


def format_test_info(by_path: TestInfo, by_content: TestInfo) -> str:
    lines = [SEPARATOR]
    if by_content.unexpected_behavior:
        lines.append("(!!!) HAS UNEXPECTED BEHAVIOUR (!!!)")
    lines.append(f"{by_path.area.name} {by_path.test_type.name} SPEC TEST")
    lines.append(
        f"SECTION: {by_path.section_number} {by_content.section_name} "
        f"(paragraph: {by_path.paragraph_number})"
    )
    lines.append(f"SENTENCE {by_content.sentence_number}: {by_content.sentence}")
    lines.append(f"TEST NUMBER: {by_content.test_number}")
    lines.append(f"NUMBER OF TEST CASES: {len(by_content.cases or [])}")
    lines.append(f"DESCRIPTION: {by_content.description}")
    if by_content.issues:
        lines.append(f"LINKED ISSUES: {', '.join(by_content.issues)}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Per-file validator
# ---------------------------------------------------------------------------

class SpecTestValidator:
    """Validates one spec test file.

    ``parse_test_info`` must run first; the other methods work on the
    validated metadata it stores.
    """

    def __init__(self, test_file: str | Path, extension: str = DEFAULT_TEST_EXTENSION):
        self.test_file = Path(test_file)
        self.extension = extension
        self.info_by_path: TestInfo | None = None
        self.info_by_content: TestInfo | None = None
        self._text: str | None = None

    @property
    def path(self) -> str:
        return self.test_file.as_posix()

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self.test_file.read_text(encoding="utf-8")
        return self._text

    @property
    def test_info(self) -> TestInfo:
        if self.info_by_content is None:
            raise RuntimeError(f"parse_test_info() has not been run for {self.path}")
        return self.info_by_content

    def parse_test_info(self) -> TestInfo:
        by_path = parse_test_path(self.path, self.extension)
        by_content = parse_test_header(self.text, self.path)
        self.info_by_path = by_path
        self.info_by_content = check_consistency(by_path, by_content, self.path)
        return self.info_by_content

    def validate_test_type(self, computed: TestType) -> None:
        validate_test_type(self.test_info.test_type, computed, self.path)

    def format_test_info(self) -> str:
        return format_test_info(self.info_by_path, self.test_info)

    def code_without_meta_info(self) -> str:
        return strip_meta_info(self.text)


# ---------------------------------------------------------------------------
# Batch validation
# ---------------------------------------------------------------------------

class ValidationResult:
    """Outcome of a batch run: one failure per failed test file, plus warnings."""

    def __init__(self):
        self.checked: list[str] = []
        self.failures: dict[str, FailureReason | None] = {}
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def check(self, path: str):
        self.checked.append(path)

    def fail(self, path: str, msg: str, reason: FailureReason | None = None):
        """Record the failure that stopped ``path``; None means it could not be read."""
        self.failures[path] = reason
        self.errors.append(msg)

    def warn(self, msg: str):
        self.warnings.append(msg)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failure_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for reason in self.failures.values():
            name = reason.name if reason is not None else "UNREADABLE"
            counts[name] = counts.get(name, 0) + 1
        return dict(sorted(counts.items()))

    def summary(self) -> str:
        passed = len(self.checked) - len(self.failures)
        lines = [f"Checked {len(self.checked)} test files: {passed} valid, {len(self.failures)} failed"]
        if self.failures:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
            for name, count in self.failure_counts().items():
                lines.append(f"  {name}: {count}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if self.ok:
            lines.append("✓ All test files valid")
        return "\n".join(lines)


def load_verdicts(path: str | Path) -> dict[Path, TestType]:
    """Load compiler verdicts: a YAML mapping of test path -> POSITIVE|NEGATIVE.

    Keys are resolved against the verdicts file's directory.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Verdicts file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: verdicts must be a mapping of test path to test type")

    base = path.resolve().parent
    verdicts: dict[Path, TestType] = {}
    for key, value in data.items():
        try:
            test_type = TestType[str(value).upper()]
        except KeyError:
            raise ConfigError(f"{path}: unknown test type '{value}' for {key}") from None
        verdicts[(base / str(key)).resolve()] = test_type
    return verdicts


def collect_test_files(paths: list[str], config: SpecTestsConfig) -> list[Path]:
    """Expand files and directories into a sorted list of test files."""
    if not paths:
        roots = [config.area_dir(area) for area in config.test_areas]
    else:
        roots = [Path(p) for p in paths]

    files: list[Path] = []
    for root in roots:
        if root.is_file():
            files.append(root)
        elif root.is_dir():
            files.extend(p for p in sorted(root.rglob(f"*{config.test_extension}")) if p.is_file())
        else:
            print(f"WARNING: {root} does not exist, skipping", file=sys.stderr)
    return files


def validate_files(
    files: list[Path],
    verdicts: dict[Path, TestType] | None = None,
    print_info: bool = False,
    verbose: bool = False,
    extension: str = DEFAULT_TEST_EXTENSION,
) -> ValidationResult:
    result = ValidationResult()
    verdicts = verdicts or {}

    for test_file in files:
        if verbose:
            print(f"[validate] {test_file.as_posix()}")
        validator = SpecTestValidator(test_file, extension)
        result.check(validator.path)
        try:
            info = validator.parse_test_info()
            computed = verdicts.get(test_file.resolve())
            if computed is not None:
                validator.validate_test_type(computed)
        except SpecTestValidationError as e:
            result.fail(validator.path, str(e), e.reason)
            continue
        except (OSError, UnicodeDecodeError) as e:
            result.fail(validator.path, f"{validator.path}: cannot read test file: {e}")
            continue

        if print_info:
            print(validator.format_test_info())
        if info.unexpected_behavior:
            result.warn(f"{validator.path}: has unexpected behaviour")

    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate spec test file metadata.")
    parser.add_argument("paths", nargs="*", help="Test files or directories (default: configured areas)")
    parser.add_argument("--config", help="Path to spec_tests.yaml")
    parser.add_argument("--verdicts", help="YAML mapping of test path to computed POSITIVE|NEGATIVE")
    parser.add_argument("--print-info", action="store_true", help="Print metadata of every valid test")
    parser.add_argument("--report", help="Write validation report JSON to this path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print each file as it is checked")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        verdicts = load_verdicts(args.verdicts) if args.verdicts else {}
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    files = collect_test_files(args.paths, config)
    print(f"Validating: {len(files)} test files")

    result = validate_files(
        files, verdicts,
        print_info=args.print_info, verbose=args.verbose, extension=config.test_extension,
    )

    print()
    print(result.summary())

    if args.report:
        report = {
            "valid": result.ok,
            "errors": result.errors,
            "warnings": result.warnings,
            "file_count": len(result.checked),
            "failure_counts": result.failure_counts(),
        }
        with open(args.report, "w", encoding="utf-8") as f:
            json.dump(report, f, ensure_ascii=False, indent=2)
        print(f"\nReport written to {args.report}")

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())

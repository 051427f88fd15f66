"""Validation failures raised while checking spec test files.

Every failure is terminal for the file being checked: callers either report
it and move on to the next file, or let it propagate.
"""

from __future__ import annotations

from enum import Enum


PATH_EXAMPLE = "testData/diagnostics/s-16.30_when-expression/p-3/pos/1.3.kt"


class FailureReason(Enum):
    FILENAME_NOT_VALID = (
        "Incorrect test filename or folder name.\n"
        "It must match the following path pattern: "
        "testData/<diagnostics|psi|codegen>/s-<sectionNumber>_<sectionName>/p-<paragraph>/<pos|neg>/<sentence>.<testNumber>.kt "
        f"(example: {PATH_EXAMPLE})"
    )
    METAINFO_NOT_VALID = "Incorrect meta info in test file."
    FILENAME_AND_METAINFO_NOT_CONSISTENT = "Test info from filename and file content is not consistent."
    TEST_IS_NOT_POSITIVE = (
        "Test is not positive because it contains error elements "
        "(PsiErrorElement or diagnostic with error severity)."
    )
    TEST_IS_NOT_NEGATIVE = (
        "Test is not negative because it does not contain error elements "
        "(PsiErrorElement or diagnostic with error severity)."
    )
    UNKNOWN = "Unknown validation error."

    @property
    def description(self) -> str:
        return self.value


class SpecTestValidationError(Exception):
    reason = FailureReason.UNKNOWN

    def __init__(self, path: str | None = None):
        self.path = path
        super().__init__(self.reason.description)

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.reason.description}"
        return self.reason.description


class FilenameNotValid(SpecTestValidationError):
    reason = FailureReason.FILENAME_NOT_VALID


class MetaInfoNotValid(SpecTestValidationError):
    reason = FailureReason.METAINFO_NOT_VALID


class FilenameAndMetaInfoNotConsistent(SpecTestValidationError):
    reason = FailureReason.FILENAME_AND_METAINFO_NOT_CONSISTENT


class TestIsNotPositive(SpecTestValidationError):
    __test__ = False
    reason = FailureReason.TEST_IS_NOT_POSITIVE


class TestIsNotNegative(SpecTestValidationError):
    __test__ = False
    reason = FailureReason.TEST_IS_NOT_NEGATIVE


class UnknownValidationError(SpecTestValidationError):
    reason = FailureReason.UNKNOWN


_ERRORS_BY_REASON = {
    cls.reason: cls
    for cls in (
        FilenameNotValid,
        MetaInfoNotValid,
        FilenameAndMetaInfoNotConsistent,
        TestIsNotPositive,
        TestIsNotNegative,
        UnknownValidationError,
    )
}


def error_for_reason(reason: FailureReason) -> type[SpecTestValidationError]:
    return _ERRORS_BY_REASON[reason]

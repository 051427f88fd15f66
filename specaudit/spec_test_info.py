"""Data model for spec test metadata.

A spec test file describes itself twice: once through its path
(area / section / paragraph / type / sentence.number) and once through the
block comment at the top of the file. Both encodings are parsed into the
same ``TestInfo`` shape so they can be compared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TestArea(Enum):
    __test__ = False

    PSI = "psi"
    DIAGNOSTICS = "diagnostics"
    CODEGEN = "codegen"

    @classmethod
    def from_dir_name(cls, name: str) -> "TestArea":
        return cls(name.lower())


class TestType(Enum):
    """Declared test type. The value is the abbreviation used in test paths."""
    __test__ = False

    POSITIVE = "pos"
    NEGATIVE = "neg"

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "TestType":
        return cls(abbreviation)


@dataclass
class TestCase:
    __test__ = False

    number: int
    description: str
    unexpected_behavior: bool = False
    issues: list[str] | None = None


@dataclass
class TestInfo:
    """Structured metadata of a single spec test file.

    Path-derived instances leave ``sentence``, ``description`` and ``cases``
    as None; header-derived instances fill everything.
    """
    __test__ = False

    area: TestArea
    test_type: TestType
    section_number: str
    section_name: str
    paragraph_number: int
    sentence_number: int
    sentence: str | None
    test_number: int
    description: str | None = None
    cases: list[TestCase] | None = None
    unexpected_behavior: bool = False
    issues: list[str] = field(default_factory=list)

    @property
    def consistency_key(self) -> tuple:
        """Fields that must agree between the path and the header of one file."""
        return (
            self.area,
            self.test_type,
            self.section_number,
            self.test_number,
            self.paragraph_number,
            self.sentence_number,
        )

    def is_consistent_with(self, other: "TestInfo") -> bool:
        return self.consistency_key == other.consistency_key

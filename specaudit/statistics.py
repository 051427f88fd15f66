#!/usr/bin/env python3
"""Spec test statistics: count test files per area, section, paragraph and type.

Only the file path is inspected. Files whose path does not follow the spec
test layout are skipped silently, since test data directories also hold
auxiliary files.

Usage:
  python -m specaudit.statistics \\
    [--config spec_tests.yaml] \\
    [--test-data-dir ./testData] \\
    [--areas diagnostics psi codegen] \\
    [--verbose]
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from specaudit.config import ConfigError, load_config
from specaudit.errors import FilenameNotValid
from specaudit.parsing import DEFAULT_TEST_EXTENSION, parse_test_path


SEPARATOR = "-" * 50

# Tree levels, root first.
LEVELS = ("area", "section", "paragraph", "test_type")


# ---------------------------------------------------------------------------
# Counter tree
# ---------------------------------------------------------------------------

@dataclass
class StatNode:
    """One counter in the area -> section -> paragraph -> test type tree.

    ``counter`` of every node equals the sum of its children's counters;
    ``increment`` is the only place counters change.
    """
    level: str
    counter: int = 0
    children: dict = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return self.level == LEVELS[-1]

    def child_level(self) -> str:
        return LEVELS[LEVELS.index(self.level) + 1]

    def children_sorted(self) -> list[tuple[object, "StatNode"]]:
        return sorted(self.children.items())


def increment(root: StatNode, keys: tuple) -> None:
    """Count one test under ``root`` along the path given by ``keys``.

    ``keys`` holds one key per level below the root, e.g.
    ("16.30 when-expression", 3, "pos") for an area root. Missing nodes are
    created on the way down and every node on the path gains one.
    """
    if len(keys) != len(LEVELS) - LEVELS.index(root.level) - 1:
        raise ValueError(f"Expected a key per level below '{root.level}', got {keys!r}")

    node = root
    node.counter += 1
    for key in keys:
        child = node.children.get(key)
        if child is None:
            child = StatNode(level=node.child_level())
            node.children[key] = child
        child.counter += 1
        node = child


def iter_leaf_counts(root: StatNode):
    if root.is_leaf:
        yield root.counter
        return
    for _, child in root.children_sorted():
        yield from iter_leaf_counts(child)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def section_key(section_number: str, section_name: str) -> str:
    return f"{section_number} {section_name}"


def collect_statistics(
    test_data_dir: str | Path,
    areas: list[str],
    extension: str = DEFAULT_TEST_EXTENSION,
    verbose: bool = False,
) -> dict[str, StatNode]:
    """Walk every area directory under ``test_data_dir`` and count its tests."""
    statistic: dict[str, StatNode] = {}

    for area in areas:
        area_stat = StatNode(level="area")
        statistic[area] = area_stat

        area_dir = Path(test_data_dir) / area
        if not area_dir.is_dir():
            if verbose:
                print(f"[stats] {area_dir.as_posix()} not found, area has no tests")
            continue
        if verbose:
            print(f"[stats] scanning {area_dir.as_posix()}")

        skipped = 0
        for path in sorted(area_dir.rglob(f"*{extension}")):
            if not path.is_file():
                continue
            try:
                info = parse_test_path(path.as_posix(), extension)
            except FilenameNotValid:
                skipped += 1
                continue

            increment(area_stat, (
                section_key(info.section_number, info.section_name),
                info.paragraph_number,
                info.test_type.value,
            ))

        if verbose:
            print(f"[stats] {area}: {area_stat.counter} tests, {skipped} files skipped")

    return statistic


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def format_statistics(statistic: dict[str, StatNode]) -> str:
    lines = [SEPARATOR, "SPEC TESTS STATISTIC", SEPARATOR]

    for area, area_stat in statistic.items():
        lines.append(f"{area.upper()}: {area_stat.counter} tests")

        for section, section_stat in area_stat.children_sorted():
            lines.append(f"  {section.upper()}: {section_stat.counter} tests")

            for paragraph, paragraph_stat in section_stat.children_sorted():
                test_types = ", ".join(
                    f"{test_type}: {type_stat.counter}"
                    for test_type, type_stat in paragraph_stat.children_sorted()
                )
                lines.append(f"    PARAGRAPH {paragraph}: {paragraph_stat.counter} tests ({test_types})")

    lines.append(SEPARATOR)
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print spec test statistics.")
    parser.add_argument("--config", help="Path to spec_tests.yaml")
    parser.add_argument("--test-data-dir", help="Override the test data root from the config")
    parser.add_argument("--areas", nargs="+", help="Override the test areas from the config")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print scan progress")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    test_data_dir = Path(args.test_data_dir) if args.test_data_dir else config.test_data_dir
    areas = args.areas or config.test_areas

    statistic = collect_statistics(test_data_dir, areas, config.test_extension, verbose=args.verbose)
    print(format_statistics(statistic))
    return 0


if __name__ == "__main__":
    sys.exit(main())

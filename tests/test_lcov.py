# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for LCOV coverage import."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tsbridge.coverage import import_lcov, parse_lcov
from tsbridge.models import DiagnosticKind, SourceFile, source_index
from tsbridge.projection import InMemoryHost

REPORT = """TN:
SF:src/a.ts
DA:1,4
DA:2,0
BRDA:2,0,0,1
BRDA:2,0,1,-
BRDA:2,0,2,0
end_of_record
SF:/elsewhere/b.ts
DA:7,1
end_of_record
"""


def test_parse_lcov_resolves_relative_sources(tmp_path: Path) -> None:
    coverage = parse_lcov(REPORT, tmp_path)

    a = coverage[(tmp_path / "src" / "a.ts").resolve().as_posix()]
    assert a.hits == {1: 4, 2: 0}
    assert a.conditions == {2: (3, 1)}
    assert a.lines_to_cover == 2
    assert a.uncovered_lines == 1
    assert coverage[Path("/elsewhere/b.ts").resolve().as_posix()].hits == {7: 1}


def test_malformed_records_are_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="tsbridge.coverage.lcov")

    coverage = parse_lcov("DA:9,9\nSF:a.ts\nDA:x,1\nDA:3\nBRDA:1,0\nDA:4,2\n", tmp_path)

    assert coverage[(tmp_path / "a.ts").resolve().as_posix()].hits == {4: 2}
    assert "malformed DA" in caplog.text
    assert "malformed BRDA" in caplog.text


def test_reports_merge_and_unknown_files_are_diagnosed(tmp_path: Path) -> None:
    source = SourceFile(path=tmp_path / "src" / "a.ts")
    first = tmp_path / "first.info"
    second = tmp_path / "second.info"
    first.write_text(REPORT, encoding="utf-8")
    second.write_text("SF:src/a.ts\nDA:1,1\nDA:5,0\nend_of_record\n", encoding="utf-8")
    host = InMemoryHost()

    diagnostics = import_lcov([first, Path("second.info")], tmp_path, source_index([source]), host)

    coverage = host.record(source).coverage
    assert coverage is not None
    assert coverage.hits == {1: 5, 2: 0, 5: 0}
    assert [diagnostic.kind for diagnostic in diagnostics] == [DiagnosticKind.DANGLING_RESULT_REFERENCE]


def test_missing_report_is_recoverable(tmp_path: Path) -> None:
    host = InMemoryHost()

    (diagnostic,) = import_lcov([tmp_path / "nope.info"], tmp_path, {}, host)

    assert diagnostic.kind is DiagnosticKind.COVERAGE_REPORT_MISSING
    assert diagnostic.path == (tmp_path / "nope.info").as_posix()


def test_undecodable_report_is_recoverable(tmp_path: Path) -> None:
    source = SourceFile(path=tmp_path / "a.ts")
    broken = tmp_path / "broken.info"
    broken.write_bytes(b"SF:a.ts\nDA:1,\xff\nend_of_record\n")
    healthy = tmp_path / "healthy.info"
    healthy.write_text("SF:a.ts\nDA:3,2\nend_of_record\n", encoding="utf-8")
    host = InMemoryHost()

    diagnostics = import_lcov([broken, healthy], tmp_path, source_index([source]), host)

    assert [diagnostic.kind for diagnostic in diagnostics] == [DiagnosticKind.COVERAGE_REPORT_MISSING]
    assert "broken.info" in diagnostics[0].message
    coverage = host.record(source).coverage
    assert coverage is not None
    assert coverage.hits == {3: 2}

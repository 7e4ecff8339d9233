# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures: fake engines run as Python scripts."""

from __future__ import annotations

import json
import sys
import textwrap
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tsbridge.models import Command, SourceFile
from tsbridge.protocol import MetricsProtocol, RuleCheckScope

METRICS_FIXTURE: dict[str, object] = {
    "highlights": [
        {"startLine": 2, "startCol": 0, "endLine": 2, "endCol": 8, "textType": "keyword"},
        {"startLine": 3, "startCol": 4, "endLine": 3, "endCol": 4, "textType": "string"},
    ],
    "cpdTokens": [
        {"startLine": 0, "startCol": 0, "endLine": 0, "endCol": 5, "image": "const"},
    ],
    "ncloc": [55, 77, 99],
    "commentLines": [24, 42],
    "executableLines": [55],
    "nosonarLines": [24],
    "statements": 100,
    "functions": 10,
    "classes": 1,
}

METRICS_ENGINE = """
import json
import sys

FIXTURE = json.loads({fixture!r})

request = json.loads(sys.stdin.read())
if "filepaths" in request:
    entries = []
    for path in request["filepaths"]:
        with open(path, encoding="utf-8") as handle:
            if "FAIL_METRICS" in handle.read():
                sys.stderr.write("metrics exploded on " + path + "\\n")
                sys.exit(1)
        entries.append(dict(FIXTURE, filepath=path))
    sys.stdout.write(json.dumps(entries))
else:
    content = request.get("fileContent", request.get("file_content", ""))
    if "FAIL_METRICS" in content:
        sys.stderr.write("metrics exploded\\n")
        sys.exit(1)
    sys.stdout.write(json.dumps(FIXTURE))
"""

RULE_CHECK_ENGINE = """
import pathlib
import sys

sys.stdin.read()
sys.stdout.write(pathlib.Path(sys.argv[1]).read_text(encoding="utf-8"))
sys.exit(2)
"""


@dataclass
class FakeBundle:
    """In-test bundle handing out Python-script commands."""

    rule_check: Command
    metrics: Command
    metrics_protocol: MetricsProtocol = MetricsProtocol.FILE_WITH_PATH
    rule_check_scope: RuleCheckScope = RuleCheckScope.PROJECT
    targets: list[Path] = field(default_factory=list)

    def rule_check_command(self, target: Path, sources: Sequence[SourceFile]) -> Command:
        self.targets.append(target)
        return self.rule_check

    def metrics_command(self) -> Command:
        return self.metrics


@pytest.fixture
def python_script(tmp_path: Path) -> Callable[..., Command]:
    """Return a factory writing a Python script and returning its command."""

    counter = iter(range(1_000_000))
    scripts = tmp_path / "engines"
    scripts.mkdir()

    def factory(body: str, *arguments: str) -> Command:
        script = scripts / f"engine_{next(counter)}.py"
        script.write_text(textwrap.dedent(body), encoding="utf-8")
        return Command.of(sys.executable, script, *arguments)

    return factory


@pytest.fixture
def metrics_engine(python_script: Callable[..., Command]) -> Command:
    """Return the metrics command answering every request with the fixture."""

    return python_script(METRICS_ENGINE.format(fixture=json.dumps(METRICS_FIXTURE)))


@pytest.fixture
def rule_check_engine(tmp_path: Path, python_script: Callable[..., Command]) -> Callable[[list[dict[str, object]]], Command]:
    """Return a factory for rule-check commands printing ``failures`` and exiting non-zero."""

    def factory(failures: list[dict[str, object]]) -> Command:
        payload = tmp_path / f"failures_{len(list(tmp_path.glob('failures_*.json')))}.json"
        payload.write_text(json.dumps(failures), encoding="utf-8")
        return python_script(RULE_CHECK_ENGINE, str(payload))

    return factory


@pytest.fixture
def project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a factory materialising ``{relative path: content}`` under a project root."""

    root = tmp_path / "project"
    root.mkdir()

    def factory(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root.resolve()

    return factory


def failure(path: Path | str, rule: str, line: int, character: int, message: str | None = None) -> dict[str, object]:
    """Return one rule-check failure in the engine's wire shape."""

    entry: dict[str, object] = {
        "startPosition": {"line": line, "character": character},
        "endPosition": {"line": line, "character": character + 1},
        "name": str(path),
        "ruleName": rule,
    }
    if message is not None:
        entry["failure"] = message
    return entry


@pytest.fixture
def make_failure() -> Callable[..., dict[str, object]]:
    """Expose :func:`failure` to tests."""

    return failure


@pytest.fixture
def fake_bundle() -> type[FakeBundle]:
    """Expose :class:`FakeBundle` to tests."""

    return FakeBundle

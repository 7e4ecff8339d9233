# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the engine wire protocol codecs."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tsbridge.errors import ResponseDecodeError
from tsbridge.models import SourceFile
from tsbridge.protocol import (
    MetricsProtocol,
    build_batch_request,
    build_file_request,
    decode_failures,
    decode_metrics,
    decode_metrics_batch,
)


def test_file_requests_follow_protocol_variant(tmp_path: Path) -> None:
    path = tmp_path / "a.ts"
    path.write_text("let a = 1;\n", encoding="utf-8")
    source = SourceFile(path=path)

    assert json.loads(build_file_request(source, MetricsProtocol.FILE)) == {"file_content": "let a = 1;\n"}
    assert json.loads(build_file_request(source, MetricsProtocol.FILE_WITH_PATH)) == {
        "fileContent": "let a = 1;\n",
        "filepath": source.key,
    }
    with pytest.raises(ValueError):
        build_file_request(source, MetricsProtocol.BATCH)


def test_batch_request_lists_absolute_paths(tmp_path: Path) -> None:
    sources = [SourceFile(path=tmp_path / "a.ts"), SourceFile(path=tmp_path / "b.ts")]

    assert json.loads(build_batch_request(sources)) == {"filepaths": [source.key for source in sources]}


def test_decode_failures() -> None:
    text = json.dumps(
        [
            {
                "startPosition": {"line": 1, "character": 5},
                "endPosition": {"line": 1, "character": 6},
                "name": "/p/a.ts",
                "ruleName": "no-unconditional-jump",
                "failure": "Remove this jump",
                "ruleSeverity": "ERROR",
            },
        ],
    )

    (failure,) = decode_failures(text)

    assert failure.start_position.line == 1
    assert failure.start_position.character == 5
    assert failure.rule_name == "no-unconditional-jump"
    assert failure.failure == "Remove this jump"


def test_empty_rule_check_output_has_no_failures() -> None:
    assert decode_failures("") == []
    assert decode_failures("  \n") == []


@pytest.mark.parametrize("text", ["not json", "{}", '[{"name": "/p/a.ts"}]'])
def test_malformed_rule_check_output_is_rejected(text: str) -> None:
    with pytest.raises(ResponseDecodeError):
        decode_failures(text)


def test_decode_metrics_defaults_missing_sections() -> None:
    response = decode_metrics('{"ncloc": [1, 2], "functions": 3}')

    assert response.ncloc == (1, 2)
    assert response.functions == 3
    assert response.highlights == ()
    assert response.statements is None


def test_empty_metrics_output_is_a_decode_error() -> None:
    with pytest.raises(ResponseDecodeError, match="empty"):
        decode_metrics("")
    with pytest.raises(ResponseDecodeError):
        decode_metrics("[]")


def test_decode_batch_accepts_array_and_object_layouts(tmp_path: Path) -> None:
    first = (tmp_path / "a.ts").as_posix()
    second = (tmp_path / "b.ts").as_posix()

    from_array = decode_metrics_batch(json.dumps([{"filepath": first, "ncloc": [1]}, {"filepath": second}]))
    from_object = decode_metrics_batch(json.dumps({first: {"ncloc": [1]}, second: {}}))

    key = SourceFile(path=first).key
    assert set(from_array) == set(from_object) == {key, SourceFile(path=second).key}
    assert from_array[key].ncloc == from_object[key].ncloc == (1,)


def test_decode_batch_requires_filepath() -> None:
    with pytest.raises(ResponseDecodeError, match="filepath"):
        decode_metrics_batch('[{"ncloc": []}]')
    assert decode_metrics_batch("") == {}

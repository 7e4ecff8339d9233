# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Wire models and codecs for the external engine's request/response protocol.

Responses use the engine's camelCase field names; the models expose
snake_case attributes through an alias generator. Positions are kept exactly
as the engine reports them; translation into host coordinates happens in
:mod:`tsbridge.projection.projector`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Final, cast

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ResponseDecodeError
from .filesystem.paths import absolute_key
from .models import JsonValue, SourceFile


class MetricsProtocol(str, Enum):
    """Enumerate the request shapes understood by the metrics command."""

    FILE = "file"
    FILE_WITH_PATH = "file-with-path"
    BATCH = "batch"

    @property
    def is_batch(self) -> bool:
        """Return ``True`` when one invocation covers many files."""

        return self is MetricsProtocol.BATCH


class RuleCheckScope(str, Enum):
    """Enumerate how the rule-check command addresses the project."""

    PROJECT = "project"
    UNIT = "unit"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class Position(_WireModel):
    """Zero-based line and character offset reported by the rule checker."""

    line: int
    character: int


class Failure(_WireModel):
    """One rule violation reported by the rule-check pass."""

    start_position: Position
    end_position: Position
    name: str
    rule_name: str
    failure: str | None = None


class HighlightSpan(_WireModel):
    """Highlight span with zero-based lines, as emitted by the metrics command."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text_type: str


class CpdToken(_WireModel):
    """Duplication token with zero-based lines, as emitted by the metrics command."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    image: str


class AnalysisResponse(_WireModel):
    """Metrics, highlighting and duplication data for one file."""

    filepath: str | None = None
    highlights: tuple[HighlightSpan, ...] = Field(default_factory=tuple)
    cpd_tokens: tuple[CpdToken, ...] = Field(default_factory=tuple)
    ncloc: tuple[int, ...] = Field(default_factory=tuple)
    comment_lines: tuple[int, ...] = Field(default_factory=tuple)
    executable_lines: tuple[int, ...] = Field(default_factory=tuple)
    nosonar_lines: tuple[int, ...] = Field(default_factory=tuple)
    functions: int | None = None
    statements: int | None = None
    classes: int | None = None


_FAILURES_ADAPTER: Final[TypeAdapter[list[Failure]]] = TypeAdapter(list[Failure])
_RESPONSES_ADAPTER: Final[TypeAdapter[list[AnalysisResponse]]] = TypeAdapter(list[AnalysisResponse])


def build_file_request(source: SourceFile, protocol: MetricsProtocol) -> str:
    """Return the single-file metrics request body for ``source``.

    Args:
        source: File whose contents are sent to the engine.
        protocol: Per-file protocol variant selected by the bundle.

    Returns:
        str: JSON request body.

    Raises:
        ValueError: If ``protocol`` is the batch variant.
    """

    if protocol is MetricsProtocol.FILE:
        payload: dict[str, JsonValue] = {"file_content": source.contents()}
    elif protocol is MetricsProtocol.FILE_WITH_PATH:
        payload = {"fileContent": source.contents(), "filepath": source.key}
    else:
        raise ValueError("batch protocol requests are built with build_batch_request")
    return json.dumps(payload)


def build_batch_request(files: Sequence[SourceFile]) -> str:
    """Return the batch metrics request body naming every file in ``files``."""

    return json.dumps({"filepaths": [source.key for source in files]})


def _load_json(text: str, *, what: str) -> JsonValue:
    """Parse ``text`` as JSON raising :class:`ResponseDecodeError` on failure."""

    try:
        return cast(JsonValue, json.loads(text))
    except json.JSONDecodeError as exc:
        raise ResponseDecodeError(f"Invalid {what} response: {exc}") from exc


def decode_failures(text: str) -> list[Failure]:
    """Decode the rule-check response.

    Args:
        text: Standard output captured from the rule-check command.

    Returns:
        list[Failure]: Reported failures; empty when the command printed nothing.

    Raises:
        ResponseDecodeError: If the output is not a JSON array of failures.
    """

    if not text.strip():
        return []
    payload = _load_json(text, what="rule-check")
    if not isinstance(payload, list):
        raise ResponseDecodeError("Rule-check response must be a JSON array")
    try:
        return _FAILURES_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ResponseDecodeError(f"Malformed rule-check failure: {exc}") from exc


def decode_metrics(text: str) -> AnalysisResponse:
    """Decode a single-file metrics response.

    Args:
        text: Standard output captured from the metrics command.

    Returns:
        AnalysisResponse: Decoded response.

    Raises:
        ResponseDecodeError: If the output is empty or not a metrics object.
    """

    if not text.strip():
        raise ResponseDecodeError("Metrics response is empty")
    payload = _load_json(text, what="metrics")
    if not isinstance(payload, Mapping):
        raise ResponseDecodeError("Metrics response must be a JSON object")
    try:
        return AnalysisResponse.model_validate(payload)
    except ValidationError as exc:
        raise ResponseDecodeError(f"Malformed metrics response: {exc}") from exc


def decode_metrics_batch(text: str) -> dict[str, AnalysisResponse]:
    """Decode a batch metrics response keyed by absolute file path.

    Two layouts are accepted: an array of responses each carrying ``filepath``,
    or an object mapping each file path to its response.

    Args:
        text: Standard output captured from the batch metrics command.

    Returns:
        dict[str, AnalysisResponse]: Responses keyed by :func:`absolute_key`.

    Raises:
        ResponseDecodeError: If the output matches neither layout.
    """

    if not text.strip():
        return {}
    payload = _load_json(text, what="batch metrics")
    try:
        if isinstance(payload, list):
            responses = _RESPONSES_ADAPTER.validate_python(payload)
        elif isinstance(payload, Mapping):
            responses = [
                AnalysisResponse.model_validate({**_as_mapping(entry), "filepath": path})
                for path, entry in payload.items()
            ]
        else:
            raise ResponseDecodeError("Batch metrics response must be a JSON array or object")
    except ValidationError as exc:
        raise ResponseDecodeError(f"Malformed batch metrics response: {exc}") from exc
    keyed: dict[str, AnalysisResponse] = {}
    for response in responses:
        if response.filepath is None:
            raise ResponseDecodeError("Batch metrics entry is missing 'filepath'")
        keyed[absolute_key(response.filepath)] = response
    return keyed


def _as_mapping(entry: JsonValue) -> Mapping[str, JsonValue]:
    if not isinstance(entry, Mapping):
        raise ResponseDecodeError("Batch metrics entries must be JSON objects")
    return entry


__all__ = [
    "AnalysisResponse",
    "CpdToken",
    "Failure",
    "HighlightSpan",
    "MetricsProtocol",
    "Position",
    "RuleCheckScope",
    "build_batch_request",
    "build_file_request",
    "decode_failures",
    "decode_metrics",
    "decode_metrics_batch",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Catalog of engine rules known to the bridge and the default quality profile."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from ..models import JsonScalar


@dataclass(frozen=True, slots=True)
class RuleParam:
    """Configurable parameter of a rule with its default value."""

    key: str
    default: JsonScalar
    description: str = ""
    multi_value: bool = False


@dataclass(frozen=True, slots=True)
class RuleDefinition:
    """Static description of a rule implemented by the external engine."""

    external_key: str
    host_key: str
    name: str
    params: tuple[RuleParam, ...] = field(default_factory=tuple)

    @property
    def is_configurable(self) -> bool:
        """Return ``True`` when the rule accepts parameters."""

        return bool(self.params)


_DEFINITIONS: Final[tuple[RuleDefinition, ...]] = (
    # tslint core rules
    RuleDefinition(
        "max-line-length",
        "S103",
        "Lines should not be too long",
        (RuleParam("maximumLineLength", 180, "The maximum authorized line length."),),
    ),
    RuleDefinition(
        "max-file-line-count",
        "S104",
        "Files should not have too many lines of code",
        (RuleParam("maximum", 1000, "Maximum authorized lines in a file."),),
    ),
    RuleDefinition(
        "no-magic-numbers",
        "S109",
        "Magic numbers should not be used",
        (RuleParam("allowed", "-1,0,1", "Comma separated list of allowed values.", multi_value=True),),
    ),
    # tslint-sonarts rules
    RuleDefinition("no-all-duplicated-branches", "S3923", "All branches in a conditional structure should not have exactly the same implementation"),
    RuleDefinition("no-collection-size-mischeck", "S3981", "Collection sizes and array length comparisons should make sense"),
    RuleDefinition("no-empty-destructuring", "S3799", "Destructuring patterns should not be empty"),
    RuleDefinition("no-identical-conditions", "S1862", "Related \"if/else if\" statements should not have the same condition"),
    RuleDefinition("no-identical-expressions", "S1764", "Identical expressions should not be used on both sides of a binary operator"),
    RuleDefinition("no-ignored-return", "S2201", "Return values from functions without side effects should not be ignored"),
    RuleDefinition("no-inconsistent-return", "S3801", "Functions should use \"return\" consistently"),
    RuleDefinition("no-misspelled-operator", "S2757", "Non-existent operators '=+', '=-' and '=!' should not be used"),
    RuleDefinition("no-self-assignment", "S1656", "Variables should not be self-assigned"),
    RuleDefinition("no-unconditional-jump", "S1751", "Jump statements should not be used unconditionally"),
    RuleDefinition("no-useless-increment", "S2123", "Values should not be uselessly incremented"),
    RuleDefinition("no-use-of-empty-return-value", "S3699", "The output of functions that don't return anything should not be used"),
    RuleDefinition("no-variable-usage-before-declaration", "S1526", "Variables should be declared before they are used"),
)

RULE_CATALOG: Final[Mapping[str, RuleDefinition]] = MappingProxyType(
    {definition.host_key: definition for definition in _DEFINITIONS},
)
"""Known rules keyed by host rule key."""

SONAR_WAY_PROFILE: Final[tuple[str, ...]] = ("S1751", "S1764", "S2201")
"""Host keys activated by the default quality profile."""

__all__ = [
    "RULE_CATALOG",
    "SONAR_WAY_PROFILE",
    "RuleDefinition",
    "RuleParam",
]

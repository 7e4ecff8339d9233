# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule catalog, activation and key mapping."""

from __future__ import annotations

from .activation import ActiveRule, RuleActivation, parse_active_rules
from .catalog import RULE_CATALOG, SONAR_WAY_PROFILE, RuleDefinition, RuleParam
from .mapping import RuleKeyMapper

__all__ = [
    "RULE_CATALOG",
    "SONAR_WAY_PROFILE",
    "ActiveRule",
    "RuleActivation",
    "RuleDefinition",
    "RuleKeyMapper",
    "RuleParam",
    "parse_active_rules",
]

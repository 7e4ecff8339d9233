# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn the host's activated rules into the engine's rule configuration."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from ..constants import REPOSITORY_KEY
from ..errors import ConfigError, UnmappedRuleKeyError
from ..models import JsonScalar, JsonValue, RuleKey
from .catalog import RULE_CATALOG, SONAR_WAY_PROFILE, RuleDefinition, RuleParam
from .mapping import RuleKeyMapper

ENGINE_RULESET: Final[str] = "tslint-sonarts"


@dataclass(frozen=True, slots=True)
class ActiveRule:
    """Rule activated by the host together with its parameter overrides."""

    host_key: str
    params: Mapping[str, JsonScalar] = field(default_factory=dict)


def _param_value(param: RuleParam, value: JsonScalar) -> list[JsonValue]:
    """Return the configuration entries contributed by ``param``."""

    if not param.multi_value:
        return [value]
    entries: list[JsonValue] = []
    for token in str(value).split(","):
        stripped = token.strip()
        if not stripped:
            continue
        try:
            entries.append(int(stripped))
        except ValueError:
            entries.append(stripped)
    return entries


def rule_configuration(definition: RuleDefinition, params: Mapping[str, JsonScalar]) -> JsonValue:
    """Return the tslint configuration value for ``definition``.

    Parameterless rules are enabled with ``true``; configurable rules receive
    ``[true, *values]`` with values in declaration order.

    Args:
        definition: Rule being configured.
        params: Host-provided parameter overrides.

    Returns:
        JsonValue: Configuration entry for the ``rules`` table.

    Raises:
        ConfigError: If ``params`` names a parameter the rule does not declare.
    """

    declared = {param.key for param in definition.params}
    unknown = sorted(set(params) - declared)
    if unknown:
        raise ConfigError(
            f"Rule {definition.host_key} ({definition.external_key}) has no parameter(s): {', '.join(unknown)}",
        )
    if not definition.params:
        return True
    configuration: list[JsonValue] = [True]
    for param in definition.params:
        configuration.extend(_param_value(param, params.get(param.key, param.default)))
    return configuration


@dataclass(frozen=True, slots=True)
class RuleActivation:
    """Resolved set of active rules for one analysis run."""

    rules: tuple[tuple[RuleDefinition, Mapping[str, JsonScalar]], ...]

    @classmethod
    def resolve(
        cls,
        active: Iterable[ActiveRule],
        catalog: Mapping[str, RuleDefinition] = RULE_CATALOG,
    ) -> RuleActivation:
        """Resolve host activations against ``catalog``.

        Args:
            active: Rules activated by the host.
            catalog: Rule catalog keyed by host key.

        Returns:
            RuleActivation: Resolved activation.

        Raises:
            UnmappedRuleKeyError: If an activated rule is unknown to the catalog.
            ConfigError: If a rule is activated twice.
        """

        resolved: list[tuple[RuleDefinition, Mapping[str, JsonScalar]]] = []
        seen: set[str] = set()
        for rule in active:
            definition = catalog.get(rule.host_key)
            if definition is None:
                raise UnmappedRuleKeyError(str(RuleKey(REPOSITORY_KEY, rule.host_key)), direction="host")
            if rule.host_key in seen:
                raise ConfigError(f"Rule {rule.host_key} is activated more than once")
            seen.add(rule.host_key)
            resolved.append((definition, dict(rule.params)))
        return cls(rules=tuple(resolved))

    @classmethod
    def default_profile(cls) -> RuleActivation:
        """Return the activation matching the default quality profile."""

        return cls.resolve(ActiveRule(host_key) for host_key in SONAR_WAY_PROFILE)

    def mapper(self) -> RuleKeyMapper:
        """Return the rule key mapper covering exactly the active rules."""

        return RuleKeyMapper((definition.external_key, definition.host_key) for definition, _ in self.rules)

    def render(self) -> dict[str, JsonValue]:
        """Return the tslint configuration document for the active rules."""

        rules: dict[str, JsonValue] = {
            definition.external_key: rule_configuration(definition, params) for definition, params in self.rules
        }
        return {"extends": [ENGINE_RULESET], "rules": rules}

    def write(self, path: Path) -> Path:
        """Write the configuration document to ``path`` and return it."""

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.render(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
        return path


def parse_active_rules(entries: Sequence[str | Mapping[str, JsonValue]]) -> list[ActiveRule]:
    """Parse configuration entries into :class:`ActiveRule` objects.

    Entries are either bare host keys (``"S1751"``) or tables with a ``key`` and
    an optional ``params`` table.

    Args:
        entries: Raw entries from the ``active_rules`` configuration field.

    Returns:
        list[ActiveRule]: Parsed activations.

    Raises:
        ConfigError: If an entry is malformed.
    """

    parsed: list[ActiveRule] = []
    for entry in entries:
        if isinstance(entry, str):
            parsed.append(ActiveRule(entry))
            continue
        key = entry.get("key")
        params = entry.get("params", {})
        if not isinstance(key, str) or not isinstance(params, Mapping):
            raise ConfigError(f"Invalid active rule entry: {entry!r}")
        scalars: dict[str, JsonScalar] = {}
        for name, value in params.items():
            if isinstance(value, (list, dict)):
                raise ConfigError(f"Parameter '{name}' of rule {key} must be a scalar")
            scalars[name] = value
        parsed.append(ActiveRule(key, scalars))
    return parsed


__all__ = [
    "ENGINE_RULESET",
    "ActiveRule",
    "RuleActivation",
    "parse_active_rules",
    "rule_configuration",
]

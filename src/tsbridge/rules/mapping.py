# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bidirectional translation between engine rule keys and host rule keys."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from ..constants import REPOSITORY_KEY
from ..errors import UnmappedRuleKeyError
from ..models import RuleKey
from .catalog import RULE_CATALOG, RuleDefinition


class RuleKeyMapper:
    """Immutable bijection between tslint rule keys and host rule keys.

    The table is fixed when the mapper is constructed and only read afterwards,
    so one instance can be shared between worker threads.
    """

    __slots__ = ("_repository", "_to_host", "_to_external")

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]], *, repository: str = REPOSITORY_KEY) -> None:
        """Build the mapping from ``(external_key, host_key)`` pairs.

        Args:
            pairs: Mapping or iterable of ``(external_key, host_key)`` pairs.
            repository: Host repository owning every mapped rule.

        Raises:
            ValueError: If a key appears twice on either side.
        """

        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        to_host: dict[str, str] = {}
        to_external: dict[str, str] = {}
        for external_key, host_key in items:
            if external_key in to_host:
                raise ValueError(f"Duplicate tslint rule key '{external_key}'")
            if host_key in to_external:
                raise ValueError(f"Duplicate host rule key '{host_key}'")
            to_host[external_key] = host_key
            to_external[host_key] = external_key
        self._repository = repository
        self._to_host = MappingProxyType(to_host)
        self._to_external = MappingProxyType(to_external)

    @classmethod
    def from_catalog(cls, catalog: Mapping[str, RuleDefinition] = RULE_CATALOG) -> RuleKeyMapper:
        """Return a mapper covering every rule in ``catalog``."""

        return cls((definition.external_key, definition.host_key) for definition in catalog.values())

    @classmethod
    def for_active_rules(
        cls,
        host_keys: Iterable[str],
        catalog: Mapping[str, RuleDefinition] = RULE_CATALOG,
    ) -> RuleKeyMapper:
        """Return a mapper restricted to the host's activated rules.

        Args:
            host_keys: Host rule keys activated for the run.
            catalog: Rule catalog keyed by host key.

        Returns:
            RuleKeyMapper: Mapper covering exactly ``host_keys``.

        Raises:
            UnmappedRuleKeyError: If an activated key is absent from ``catalog``.
        """

        pairs: list[tuple[str, str]] = []
        for host_key in dict.fromkeys(host_keys):
            definition = catalog.get(host_key)
            if definition is None:
                raise UnmappedRuleKeyError(str(RuleKey(REPOSITORY_KEY, host_key)), direction="host")
            pairs.append((definition.external_key, definition.host_key))
        return cls(pairs)

    @property
    def repository(self) -> str:
        """Return the host repository key."""

        return self._repository

    def to_host_key(self, external_key: str) -> RuleKey:
        """Translate a tslint rule key into the host rule key.

        Args:
            external_key: Rule key reported by the engine.

        Returns:
            RuleKey: Host rule key within :attr:`repository`.

        Raises:
            UnmappedRuleKeyError: If ``external_key`` is not mapped.
        """

        host_key = self._to_host.get(external_key)
        if host_key is None:
            raise UnmappedRuleKeyError(external_key, direction="external")
        return RuleKey(self._repository, host_key)

    def to_external_key(self, host_key: RuleKey) -> str:
        """Translate a host rule key into the tslint rule key.

        Args:
            host_key: Host rule key.

        Returns:
            str: Engine rule key.

        Raises:
            UnmappedRuleKeyError: If ``host_key`` is not mapped or belongs to another repository.
        """

        external_key = self._to_external.get(host_key.rule) if host_key.repository == self._repository else None
        if external_key is None:
            raise UnmappedRuleKeyError(str(host_key), direction="host")
        return external_key

    def host_keys(self) -> list[RuleKey]:
        """Return every mapped host key, sorted."""

        return [RuleKey(self._repository, key) for key in sorted(self._to_external)]

    def __contains__(self, external_key: object) -> bool:
        return external_key in self._to_host

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(sorted(self._to_host.items()))

    def __len__(self) -> int:
        return len(self._to_host)


__all__ = ["RuleKeyMapper"]

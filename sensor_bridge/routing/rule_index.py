"""Routing table: configured topic rules and topic resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .topic_matcher import MULTI_LEVEL, SEPARATOR, has_wildcards, matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicRule:
    """A configured routing rule.

    A rule without ``sensor_id_from_payload`` is accepted and subscribed to,
    but every message it resolves is rejected.
    """

    pattern: str
    sensor_id_from_payload: bool = False
    description: str = ""

    @property
    def is_well_formed(self) -> bool:
        parts = self.pattern.split(SEPARATOR)
        return bool(self.pattern) and MULTI_LEVEL not in parts[:-1]


class RuleIndex:
    """Two-tier lookup: exact pattern first, then ordered wildcard scan.

    A pattern configured twice resolves to its first entry; later
    duplicates never overwrite it (unlike a plain map assignment).
    Read-only after construction, safe to share between threads.
    """

    def __init__(self, rules: Iterable[TopicRule]):
        ordered = tuple(rules)
        exact: dict[str, TopicRule] = {}
        for rule in ordered:
            if not rule.is_well_formed:
                logger.warning(
                    "[ROUTER] Malformed topic pattern %r accepted as-is", rule.pattern
                )
            # First configured rule wins for duplicated patterns
            exact.setdefault(rule.pattern, rule)

        self._rules = ordered
        # Literal patterns only ever match through the exact tier
        self._wildcard_rules = tuple(r for r in ordered if has_wildcards(r.pattern))
        self._exact: Mapping[str, TopicRule] = MappingProxyType(exact)

    def resolve(self, topic: str) -> Optional[TopicRule]:
        """Return the rule routing ``topic``, or None if nothing matches."""
        rule = self._exact.get(topic)
        if rule is not None:
            return rule

        for rule in self._wildcard_rules:
            if matches(rule.pattern, topic):
                return rule
        return None

    @property
    def rules(self) -> tuple[TopicRule, ...]:
        return self._rules

    @property
    def patterns(self) -> list[str]:
        return [r.pattern for r in self._rules]

    def __len__(self) -> int:
        return len(self._rules)

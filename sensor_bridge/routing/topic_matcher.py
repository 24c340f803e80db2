"""MQTT topic filter matching.

Segments are produced by a plain ``str.split("/")``, so empty topics and
leading, trailing or doubled slashes yield empty-string segments:
``"a//b"`` is ``["a", "", "b"]`` and ``""`` is ``[""]``.
"""

from __future__ import annotations

SEPARATOR = "/"
SINGLE_LEVEL = "+"
MULTI_LEVEL = "#"


def matches(pattern: str, topic: str) -> bool:
    """Return True if ``topic`` matches the subscription ``pattern``.

    ``+`` matches exactly one segment. ``#`` matches its own level and
    everything after it, including nothing, so ``"a/#"`` matches ``"a"``.
    Literal segments compare case-sensitively.
    """
    pattern_parts = pattern.split(SEPARATOR)
    topic_parts = topic.split(SEPARATOR)

    for i, part in enumerate(pattern_parts):
        if part == MULTI_LEVEL:
            return True
        if i >= len(topic_parts):
            return False
        if part == SINGLE_LEVEL:
            continue
        if part != topic_parts[i]:
            return False

    return len(pattern_parts) == len(topic_parts)


def has_wildcards(pattern: str) -> bool:
    """True if any segment of ``pattern`` is a wildcard."""
    return any(p in (SINGLE_LEVEL, MULTI_LEVEL) for p in pattern.split(SEPARATOR))

"""Tests del matching de topics MQTT."""

import pytest

from sensor_bridge.routing.topic_matcher import has_wildcards, matches


class TestLiteralPatterns:
    """Sin wildcards: match si y solo si son iguales."""

    @pytest.mark.parametrize("pattern", [
        "sensors/A1/temp",
        "a",
        "a/b/c/d",
        "",
        "/leading",
        "trailing/",
        "a//b",
    ])
    def test_equal_strings_match(self, pattern):
        assert matches(pattern, pattern) is True

    @pytest.mark.parametrize("pattern,topic", [
        ("sensors/A1/temp", "sensors/A1/hum"),
        ("sensors/A1/temp", "sensors/a1/temp"),
        ("sensors/A1", "sensors/A1/temp"),
        ("sensors/A1/temp", "sensors/A1"),
        ("a/b", "a/b/"),
        ("a/b", "/a/b"),
        ("a//b", "a/b"),
    ])
    def test_different_strings_do_not_match(self, pattern, topic):
        assert matches(pattern, topic) is False


class TestSingleLevelWildcard:
    def test_plus_matches_one_segment(self):
        assert matches("sensors/+/temp", "sensors/A1/temp") is True

    def test_plus_does_not_span_segments(self):
        assert matches("sensors/+/temp", "sensors/A1/B2/temp") is False

    def test_plus_requires_a_segment(self):
        assert matches("a/+", "a") is False

    def test_plus_matches_empty_segment(self):
        assert matches("a/+/b", "a//b") is True
        assert matches("a/+", "a/") is True

    def test_multiple_plus(self):
        assert matches("+/+/reading", "home/kitchen/reading") is True
        assert matches("+/+/reading", "home/reading") is False

    def test_plus_alone(self):
        assert matches("+", "anything") is True
        assert matches("+", "a/b") is False


class TestMultiLevelWildcard:
    def test_hash_matches_remaining_levels(self):
        assert matches("sensors/#", "sensors/A1/temp") is True

    def test_hash_matches_zero_remaining_levels(self):
        assert matches("sensors/#", "sensors") is True

    def test_hash_alone_matches_everything(self):
        assert matches("#", "a/b/c") is True
        assert matches("#", "") is True

    def test_hash_prefix_must_match(self):
        assert matches("sensors/#", "actuators/A1") is False

    def test_plus_then_hash(self):
        assert matches("+/status/#", "dev1/status/online/now") is True
        assert matches("+/status/#", "dev1/config/x") is False

    def test_hash_not_last_matches_too_much(self):
        # Pattern inválido según MQTT: el '#' corta la comparación
        assert matches("a/#/c", "a/x/y") is True


class TestHasWildcards:
    def test_detects_wildcards(self):
        assert has_wildcards("a/+/b") is True
        assert has_wildcards("a/#") is True
        assert has_wildcards("a/b") is False

    def test_plus_inside_segment_is_literal(self):
        assert has_wildcards("a/b+c") is False
        assert matches("a/b+c", "a/bxc") is False

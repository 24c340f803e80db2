"""Routing layer - Resolución topic → regla."""

from .topic_matcher import matches
from .rule_index import RuleIndex, TopicRule

__all__ = ["matches", "RuleIndex", "TopicRule"]

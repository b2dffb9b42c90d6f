from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Callable, Iterable, List, Optional

from billing_graph.app.core.errors import InvalidPatternError
from billing_graph.app.models.graph import NodeRef, NodeValue
from billing_graph.app.models.registry import EntityMetadata, PatternMatch
from billing_graph.app.services.registry.registry import TypeRegistry

PARENT_PLACEHOLDER = "{parent}"
DYNAMIC_PLACEHOLDER = "{*}"
DYNAMIC_GROUP = "dynamic"

# one bounded character class, no nesting
_DYNAMIC_REGEX = f"(?P<{DYNAMIC_GROUP}>[^_]+)"
_PLACEHOLDER_RE = re.compile(r"(\{parent\}|\{\*\})")


def validate_pattern(pattern: str) -> bool:
    """
    A pattern must reference the parent column at least once, carry exactly
    one dynamic segment and have balanced braces, e.g. "{parent}_{*}".
    """
    if PARENT_PLACEHOLDER not in pattern:
        return False
    if pattern.count(DYNAMIC_PLACEHOLDER) != 1:
        return False
    return pattern.count("{") == pattern.count("}")


def _explain(pattern: str) -> str:
    if PARENT_PLACEHOLDER not in pattern:
        return f"missing {PARENT_PLACEHOLDER} placeholder"
    if pattern.count(DYNAMIC_PLACEHOLDER) != 1:
        return f"expected exactly one {DYNAMIC_PLACEHOLDER} placeholder"
    return "unbalanced braces"


def _build(pattern: str, parent_prefix: str) -> re.Pattern[str]:
    if not validate_pattern(pattern):
        raise InvalidPatternError(pattern, _explain(pattern))
    parts: List[str] = []
    for chunk in _PLACEHOLDER_RE.split(pattern):
        if chunk == PARENT_PLACEHOLDER:
            parts.append(re.escape(parent_prefix))
        elif chunk == DYNAMIC_PLACEHOLDER:
            parts.append(_DYNAMIC_REGEX)
        elif chunk:
            parts.append(re.escape(chunk))
    return re.compile("^" + "".join(parts) + "$")


def make_compiler(cache_size: int = 256) -> Callable[[str, str], re.Pattern[str]]:
    return lru_cache(maxsize=cache_size)(_build)


compile_pattern = make_compiler()


class PatternResolver:
    """Matches dynamic child patterns against the columns of a row."""

    def __init__(self, registry: TypeRegistry, cache_size: Optional[int] = None):
        self.registry = registry
        self._compile = compile_pattern if cache_size is None else make_compiler(cache_size)

    def compile(self, pattern: str, parent_prefix: str) -> re.Pattern[str]:
        return self._compile(pattern, parent_prefix)

    def resolve(self, pattern: str, parent_prefix: str, available_columns: Iterable[str]) -> List[PatternMatch]:
        matcher = self.compile(pattern, parent_prefix)
        matches: List[PatternMatch] = []
        for column in available_columns:
            m = matcher.match(column)
            if not m:
                continue
            segment = m.group(DYNAMIC_GROUP)
            matches.append(PatternMatch(column=column, segment=segment, metadata=self.registry.resolve_by_token(segment)))
        return matches

    def resolve_by_labels(self, value: Any) -> Optional[EntityMetadata]:
        """Label fallback for nodes (and relationship endpoints) whose token is unknown."""
        if not isinstance(value, (NodeValue, NodeRef)):
            return None
        for label in sorted(value.labels):
            meta = self.registry.resolve_by_label(label)
            if meta is not None:
                return meta
        return None

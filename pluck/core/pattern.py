"""Tokenized path pattern matching for artifact include/exclude specs.

Pattern conventions:

- paths and patterns are split on ``/`` and ``\\`` into segments;
- ``*`` matches zero or more characters inside one segment, ``?`` exactly one;
- ``**`` as a whole segment matches zero or more segments;
- a pattern ending with a separator matches everything below it (``dir/`` is
  ``dir/**``);
- tokens without wildcards are literals, compared by segment equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re
from typing import Iterable, Optional

_SEPARATORS = re.compile(r"[\\/]+")
GLOBSTAR = "**"


def tokenize(path: str) -> tuple[str, ...]:
    """Split a path into its non-empty segments."""
    return tuple(token for token in _SEPARATORS.split(path) if token)


def has_wildcards(text: str) -> bool:
    return "*" in text or "?" in text


@lru_cache(maxsize=1024)
def _segment_regex(segment: str, case_sensitive: bool) -> re.Pattern[str]:
    body = re.escape(segment).replace(r"\*", ".*").replace(r"\?", ".")
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(body, flags | re.DOTALL)


class PathPattern:
    """A single compiled include/exclude token."""

    def __init__(self, pattern: str, case_sensitive: bool = False) -> None:
        text = pattern.strip()
        if text.endswith(("/", "\\")):
            text += GLOBSTAR
        self.pattern = pattern
        self.case_sensitive = case_sensitive
        self.tokens = tokenize(text)
        self.is_literal = not has_wildcards(text)
        self._matchers: tuple[Optional[re.Pattern[str]], ...] = tuple(
            None if token == GLOBSTAR else _segment_regex(token, case_sensitive)
            for token in self.tokens
        )

    def __repr__(self) -> str:
        return f"PathPattern({self.pattern!r})"

    def matches(self, path: tuple[str, ...]) -> bool:
        """Full match of the whole path."""
        if self.is_literal:
            return _fold(path, self.case_sensitive) == _fold(self.tokens, self.case_sensitive)
        states = self._advance(path)
        return len(self.tokens) in states

    def matches_start(self, path: tuple[str, ...]) -> bool:
        """True if some path strictly below ``path`` could match."""
        if self.is_literal:
            if len(path) >= len(self.tokens):
                return False
            prefix = self.tokens[: len(path)]
            return _fold(prefix, self.case_sensitive) == _fold(path, self.case_sensitive)
        states = self._advance(path)
        return any(state < len(self.tokens) for state in states)

    def covers_subtree(self, path: tuple[str, ...]) -> bool:
        """True if every path strictly below ``path`` matches."""
        if self.is_literal:
            return False
        states = self._advance(path)
        return any(self._only_globstars_from(state) and state < len(self.tokens) for state in states)

    def _only_globstars_from(self, index: int) -> bool:
        return all(token == GLOBSTAR for token in self.tokens[index:])

    def _closure(self, states: set[int]) -> set[int]:
        closed = set(states)
        pending = list(states)
        while pending:
            index = pending.pop()
            if index < len(self.tokens) and self.tokens[index] == GLOBSTAR and index + 1 not in closed:
                closed.add(index + 1)
                pending.append(index + 1)
        return closed

    def _advance(self, path: tuple[str, ...]) -> set[int]:
        """Run the segment automaton over ``path``; return reachable positions."""
        states = self._closure({0})
        for segment in path:
            following: set[int] = set()
            for index in states:
                if index >= len(self.tokens):
                    continue
                matcher = self._matchers[index]
                if matcher is None:
                    following.add(index)
                elif matcher.fullmatch(segment):
                    following.add(index + 1)
            if not following:
                return set()
            states = self._closure(following)
        return states


def _fold(tokens: Iterable[str], case_sensitive: bool) -> tuple[str, ...]:
    if case_sensitive:
        return tuple(tokens)
    return tuple(token.casefold() for token in tokens)


@dataclass(frozen=True)
class PatternSet:
    """A comma-separated include or exclude spec, split into literals and patterns."""

    literals: frozenset[tuple[str, ...]]
    literal_patterns: tuple[PathPattern, ...]
    patterns: tuple[PathPattern, ...]
    case_sensitive: bool = False

    @classmethod
    def parse(cls, spec: Optional[str], case_sensitive: bool = False) -> PatternSet:
        """Parse a spec; blank tokens are skipped and nothing here raises."""
        literals: list[PathPattern] = []
        patterns: list[PathPattern] = []
        for raw in (spec or "").split(","):
            token = raw.strip()
            if not token:
                continue
            compiled = PathPattern(token, case_sensitive)
            if not compiled.tokens:
                continue
            (literals if compiled.is_literal else patterns).append(compiled)
        return cls(
            literals=frozenset(_fold(item.tokens, case_sensitive) for item in literals),
            literal_patterns=tuple(literals),
            patterns=tuple(patterns),
            case_sensitive=case_sensitive,
        )

    @property
    def is_empty(self) -> bool:
        return not self.literals and not self.patterns

    def matches(self, path: tuple[str, ...]) -> bool:
        if _fold(path, self.case_sensitive) in self.literals:
            return True
        return any(pattern.matches(path) for pattern in self.patterns)

    def could_match_below(self, path: tuple[str, ...]) -> bool:
        if any(literal.matches_start(path) for literal in self.literal_patterns):
            return True
        return any(pattern.matches_start(path) for pattern in self.patterns)

    def covers_subtree(self, path: tuple[str, ...]) -> bool:
        return any(pattern.covers_subtree(path) for pattern in self.patterns)

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator


class PatternSyntaxError(ValueError):
    def __init__(self, source: str, index: int, detail: str):
        super().__init__(f"invalid pattern #{index} {source!r}: {detail}")
        self.source = source
        self.index = index


@dataclass(frozen=True, slots=True)
class Pattern:
    source: str
    compiled: re.Pattern

    @classmethod
    def compile(cls, source: str, index: int = 0) -> "Pattern":
        if not isinstance(source, str):
            raise PatternSyntaxError(repr(source), index, "pattern must be a string")
        try:
            return cls(source=source, compiled=re.compile(source))
        except re.error as exc:
            raise PatternSyntaxError(source, index, str(exc)) from exc

    def search(self, text: str) -> bool:
        # Unanchored: a pattern matches anywhere in the type name.
        return self.compiled.search(text) is not None

    def __str__(self) -> str:
        return self.source


class PatternSet:
    """Ordered, immutable sequence of compiled patterns.

    Every source is compiled up front; one bad entry fails the whole set.
    """

    __slots__ = ("_patterns",)

    def __init__(self, sources: Iterable[str] = ()):
        self._patterns: tuple[Pattern, ...] = tuple(
            Pattern.compile(source, idx) for idx, source in enumerate(sources)
        )

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __getitem__(self, index: int) -> Pattern:
        return self._patterns[index]

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self.sources == other.sources

    def __hash__(self) -> int:
        return hash(self.sources)

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(p.source for p in self._patterns)

    def first_match(self, text: str) -> Pattern | None:
        for pattern in self._patterns:
            if pattern.search(text):
                return pattern
        return None

    def matches(self, text: str) -> bool:
        return self.first_match(text) is not None

    def __str__(self) -> str:
        return "[" + ", ".join(self.sources) + "]"

    def __repr__(self) -> str:
        return f"PatternSet({list(self.sources)!r})"

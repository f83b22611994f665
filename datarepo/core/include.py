"""
Include directives: declarative eager-load specifications.

An Include names the related entities to materialize together with the
queried entity, as dotted navigation paths over relationship attributes:

    Include("books")                    # author + author.books
    Include("books", "books.chapters")  # ... + each book's chapters
    Include("books.chapters")           # same: prefixes are implied

Includes are plain immutable values. They validate path syntax and
compose, but know nothing about the store; the store adapter translates
them into its own loading strategy.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Tuple

_SEGMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class LoadStrategy(str, Enum):
    """How the store should fetch included relationships"""
    SELECT = "select"  # one extra SELECT ... IN per relationship level
    JOINED = "joined"  # LEFT OUTER JOIN in the main query


def _normalize_path(path: str) -> str:
    if not isinstance(path, str):
        raise ValueError(f"Include path must be a string, got {type(path).__name__}")
    segments = path.strip().split(".")
    for segment in segments:
        if not _SEGMENT.match(segment):
            raise ValueError(f"Invalid include path: {path!r}")
    return ".".join(segments)


@dataclass(frozen=True)
class Include:
    """
    Ordered, de-duplicated set of navigation paths to load eagerly.

    Attributes:
        paths: Dotted relationship paths, in first-seen order
        strategy: Load strategy hint for the store

    Example:
        >>> include = Include("books") + Include("books.chapters")
        >>> include.paths
        ('books', 'books.chapters')
        >>> include.then("reviews").paths
        ('books', 'books.chapters', 'reviews')
    """

    paths: Tuple[str, ...] = field(default_factory=tuple)
    strategy: LoadStrategy = LoadStrategy.SELECT

    def __init__(self, *paths: str, strategy: LoadStrategy = LoadStrategy.SELECT):
        seen = []
        for path in paths:
            normalized = _normalize_path(path)
            if normalized not in seen:
                seen.append(normalized)
        object.__setattr__(self, "paths", tuple(seen))
        object.__setattr__(self, "strategy", LoadStrategy(strategy))

    @classmethod
    def of(cls, paths: Iterable[str], strategy: LoadStrategy = LoadStrategy.SELECT) -> "Include":
        """Build an Include from any iterable of paths."""
        return cls(*paths, strategy=strategy)

    def then(self, *paths: str) -> "Include":
        """Return a new Include with extra paths appended."""
        return Include(*self.paths, *paths, strategy=self.strategy)

    def joined(self) -> "Include":
        """Return the same paths loaded with JOINED strategy."""
        return Include(*self.paths, strategy=LoadStrategy.JOINED)

    def __add__(self, other: "Include") -> "Include":
        if not isinstance(other, Include):
            return NotImplemented
        # Left operand decides the strategy
        return Include(*self.paths, *other.paths, strategy=self.strategy)

    def __bool__(self) -> bool:
        return bool(self.paths)

    def __iter__(self):
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def segments(self) -> Tuple[Tuple[str, ...], ...]:
        """Paths split into their relationship segments."""
        return tuple(tuple(path.split(".")) for path in self.paths)

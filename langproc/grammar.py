"""
Grammar: the immutable input to a run.

A Grammar bundles the word length bound, the terminal alphabet and the
ordered rule list. It never parses anything itself; the loader (or a caller
building one in code) hands it already-validated fields.

Usage:
    grammar = Grammar(
        max_length=5,
        terminals=frozenset("ab"),
        rules=(RewriteRule("S", "aSb"), RewriteRule("S", "ab")),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from langproc.rule import RewriteRule


DEFAULT_MAX_LENGTH = 5
DEFAULT_START = "S"


@dataclass(frozen=True)
class Grammar:
    """Length bound, terminal alphabet and ordered rewrite rules.

    Rules are applied in declaration order. Any character outside
    `terminals` is a non-terminal.
    """
    max_length: int = DEFAULT_MAX_LENGTH
    terminals: frozenset[str] = frozenset()
    rules: tuple[RewriteRule, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.max_length <= 0:
            raise ValueError(f"max_length must be positive, got {self.max_length}")
        # Accept any iterable from callers; store the frozen forms
        object.__setattr__(self, "terminals", frozenset(self.terminals))
        object.__setattr__(self, "rules", tuple(self.rules))

    @classmethod
    def build(
        cls,
        max_length: int,
        terminals: Iterable[str],
        rules: Iterable[tuple[str, str]],
    ) -> Grammar:
        """Convenience constructor from `(left, right)` pairs."""
        return cls(
            max_length=max_length,
            terminals=frozenset(terminals),
            rules=tuple(RewriteRule(left, right) for left, right in rules),
        )

    def is_terminal(self, ch: str) -> bool:
        return ch in self.terminals

    def is_word(self, text: str) -> bool:
        """True when every character of `text` is a terminal."""
        return all(ch in self.terminals for ch in text)

    def rules_for(self, left: str) -> list[RewriteRule]:
        """All alternatives sharing the same left side, in declaration order."""
        return [r for r in self.rules if r.left == left]

    def summary(self) -> str:
        alphabet = ", ".join(sorted(self.terminals)) or "-"
        lines = [
            f"Grammar: n={self.max_length}, L={{{alphabet}}}, {len(self.rules)} rules",
        ]
        for rule in self.rules:
            lines.append(f"  {rule}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"<Grammar n={self.max_length} "
            f"terminals={''.join(sorted(self.terminals))!r} "
            f"rules={len(self.rules)}>"
        )

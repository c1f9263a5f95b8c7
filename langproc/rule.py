"""
Rewrite Rules

A RewriteRule is one `left -> right` substitution. Application is whole-string
and simultaneous: every non-overlapping occurrence of `left` is replaced in a
single left-to-right pass, so one application may rewrite several occurrences
of the same non-terminal at once.

    >>> RewriteRule("S", "aSb").apply("SS")
    'aSbaSb'
    >>> RewriteRule("A", "").apply("AaAbA")
    'ab'
"""

from __future__ import annotations

from dataclasses import dataclass


# Rendered in place of an empty right-hand side
EPSILON_MARKER = "<empty>"

# Right-hand side spellings that mean "empty string" in grammar files
EPSILON_TOKENS = ("{empty}", "ε")


@dataclass(frozen=True)
class RewriteRule:
    """One substitution rule: every `left` becomes `right`.

    Attributes:
        left: Pattern to replace. Never empty.
        right: Replacement. Empty for an epsilon production.
    """
    left: str
    right: str = ""

    def __post_init__(self) -> None:
        if not self.left:
            raise ValueError("Rewrite rule needs a non-empty left side")

    @classmethod
    def parse_right(cls, left: str, right: str) -> RewriteRule:
        """Build a rule from a raw right-hand side, normalising epsilon tokens."""
        for token in EPSILON_TOKENS:
            right = right.replace(token, "")
        return cls(left, right)

    @property
    def is_epsilon(self) -> bool:
        return self.right == ""

    def apply(self, text: str) -> str:
        """Replace every occurrence of `left` in `text`.

        Returns `text` unchanged when `left` does not occur; callers treat
        that as a no-op rather than a new derivation.
        """
        return text.replace(self.left, self.right)

    def display(self) -> str:
        return f"{self.left} -> {self.right or EPSILON_MARKER}"

    def __str__(self) -> str:
        return self.display()

    def __repr__(self) -> str:
        return f"<Rule {self.display()}>"

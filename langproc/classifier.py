"""
Classifier: decides what happens to a freshly rewritten string.

Both explorers route every `(input, output)` pair through `classify()`:

    NOOP      output == input, the rule did not match
    DISCARD   too long to matter (past max_length + margin), or all
              terminal but longer than max_length
    WORD      all terminal and within max_length -> emitted
    CONTINUE  still holds a non-terminal -> expanded further if first-seen

The margin lets strings grow a little past the bound before later rules
shrink them again. Strings that shrink and regrow past it within one
application are not explored; that limitation is accepted.
"""

from __future__ import annotations

from enum import Enum

from langproc.grammar import Grammar


DEFAULT_MARGIN = 3


class Verdict(Enum):
    """Outcome of classifying one rule application."""
    NOOP = "noop"
    DISCARD = "discard"
    WORD = "word"
    CONTINUE = "continue"


def classify(
    grammar: Grammar,
    source: str,
    output: str,
    margin: int = DEFAULT_MARGIN,
) -> Verdict:
    """Classify `output`, produced by applying some rule to `source`."""
    if output == source:
        return Verdict.NOOP

    length = len(output)
    if length > grammar.max_length + margin:
        return Verdict.DISCARD

    terminal_only = grammar.is_word(output)
    if terminal_only and length <= grammar.max_length:
        return Verdict.WORD
    if not terminal_only:
        return Verdict.CONTINUE
    # All terminal but too long: nothing left to rewrite
    return Verdict.DISCARD

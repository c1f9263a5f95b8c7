"""
Grammar File Loader

Reads the line-oriented grammar format into a Grammar.

Example grammar file:
    # a^k b^k
    n = 5          # maximum word length
    L = {a, b}     # terminal alphabet
    S -> aSb | ab

Line handling:
1. `#` starts a comment that runs to the end of the line
2. Blank lines are skipped
3. Lines containing `->` or `=>` are rules; `|` separates alternatives that
   share the left side; `{empty}` or `ε` spells the empty string
4. Other lines with `=` set a variable: `n` (word length bound) or `L`
   (terminal alphabet, every letter in the value)

Problems never abort loading. Each one becomes a Diagnostic, is logged as a
warning, and the line is skipped with the previous/default value kept.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from langproc.grammar import DEFAULT_MAX_LENGTH, Grammar
from langproc.rule import RewriteRule

_logger = logging.getLogger(__name__)

RULE_ARROW = re.compile(r"->|=>")


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while loading a grammar."""
    line: Optional[int]
    message: str
    text: str = ""

    def __str__(self) -> str:
        where = f"Line {self.line}: " if self.line is not None else ""
        if self.text:
            return f'{where}{self.message}: "{self.text}". Ignoring.'
        return f"{where}{self.message}."


@dataclass
class LoadResult:
    """A loaded grammar and everything that was skipped on the way."""
    grammar: Grammar
    origin: str = "<string>"
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def summary(self) -> str:
        lines = [f"Loaded {self.origin}: {self.grammar!r}"]
        if self.diagnostics:
            lines.append(f"  {len(self.diagnostics)} warning(s):")
            for diag in self.diagnostics:
                lines.append(f"    {diag}")
        return "\n".join(lines)


class _Reader:
    """Accumulates settings, rules and diagnostics line by line."""

    def __init__(self, origin: str) -> None:
        self.origin = origin
        self.max_length = DEFAULT_MAX_LENGTH
        self.terminals: Optional[frozenset[str]] = None
        self.rules: list[RewriteRule] = []
        self.diagnostics: list[Diagnostic] = []

    def warn(self, line: Optional[int], message: str, text: str = "") -> None:
        diag = Diagnostic(line, message, text)
        _logger.warning("%s: %s", self.origin, diag)
        self.diagnostics.append(diag)

    def feed(self, line_num: int, raw: str) -> None:
        line = raw.split("#", 1)[0].strip()
        if not line:
            return

        # Rules first: "S => aSb" also contains '='
        if RULE_ARROW.search(line):
            self._rule(line_num, line)
        elif "=" in line:
            self._variable(line_num, line)
        else:
            self.warn(line_num, "Syntax error in line, neither a rule nor a setting", line)

    def _rule(self, line_num: int, line: str) -> None:
        parts = [p.strip() for p in RULE_ARROW.split(line)]
        if len(parts) != 2 or not parts[0]:
            self.warn(line_num, 'Syntax error in rule, needs to be in format "Left -> Right"', line)
            return

        left, right = parts
        for alternative in right.split("|"):
            rule = RewriteRule.parse_right(left, alternative.strip())
            self.rules.append(rule)
            _logger.debug("Added rule: %s", rule)

    def _variable(self, line_num: int, line: str) -> None:
        name, _, value = line.partition("=")
        name = name.strip()
        value = value.strip()

        if name == "n":
            try:
                max_length = int(value)
            except ValueError:
                self.warn(line_num, "Maximum length n is not an integer", line)
                return
            if max_length <= 0:
                self.warn(line_num, "Maximum length n must be positive", line)
                return
            self.max_length = max_length
        elif name == "L":
            # "{a,b, c,   d   }" -> {'a', 'b', 'c', 'd'}
            letters = frozenset(ch for ch in value if ch.isalpha())
            if not letters:
                self.warn(line_num, "Terminal alphabet L contains no letters", line)
                return
            self.terminals = letters
        else:
            self.warn(line_num, f'Unknown variable "{name}" in grammar file', line)

    def finish(self) -> LoadResult:
        if self.terminals is None:
            self.warn(None, "No terminal alphabet L given, no word can be derived")
        if not self.rules:
            self.warn(None, "No rules given, no word can be derived")
        grammar = Grammar(
            max_length=self.max_length,
            terminals=self.terminals or frozenset(),
            rules=tuple(self.rules),
        )
        return LoadResult(grammar=grammar, origin=self.origin, diagnostics=self.diagnostics)


def parse_grammar(source: str, origin: str = "<string>") -> LoadResult:
    """Parse grammar text.

    Args:
        source: Grammar file contents
        origin: Name used in log messages

    Returns:
        LoadResult with the Grammar and any diagnostics
    """
    reader = _Reader(origin)
    for line_num, raw in enumerate(source.splitlines(), 1):
        reader.feed(line_num, raw)
    return reader.finish()


def load_grammar(path: Union[str, Path]) -> LoadResult:
    """Read and parse a grammar file. Raises FileNotFoundError if it is missing."""
    path = Path(path)
    return parse_grammar(path.read_text(encoding="utf-8"), origin=str(path))

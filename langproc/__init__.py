"""
langproc - Language Processing
Enumerates the words of a string-rewriting grammar.

Rules: whole-string substitution rules and the Grammar bundle
Classifier: WORD / CONTINUE / DISCARD decision shared by every strategy
Explorers: sequential staged traversal and concurrent fan-out traversal
Collaborators: grammar-file loader, word sinks, derivation graph, CLI
"""

__version__ = "0.4.0"

from langproc.rule import RewriteRule, EPSILON_MARKER
from langproc.grammar import Grammar, DEFAULT_START, DEFAULT_MAX_LENGTH
from langproc.classifier import Verdict, classify, DEFAULT_MARGIN
from langproc.seen import SeenSet
from langproc.trace import DerivationGraph, DerivationStep
from langproc.explorer import (
    Explorer,
    SequentialExplorer,
    ConcurrentExplorer,
    ExplorationResult,
    ExplorationError,
    WorkItemError,
    Strategy,
    make_explorer,
    run,
    collect_words,
)
from langproc.loader import load_grammar, parse_grammar, LoadResult, Diagnostic

__all__ = [
    "RewriteRule",
    "EPSILON_MARKER",
    "Grammar",
    "DEFAULT_START",
    "DEFAULT_MAX_LENGTH",
    "Verdict",
    "classify",
    "DEFAULT_MARGIN",
    "SeenSet",
    "DerivationGraph",
    "DerivationStep",
    "Explorer",
    "SequentialExplorer",
    "ConcurrentExplorer",
    "ExplorationResult",
    "ExplorationError",
    "WorkItemError",
    "Strategy",
    "make_explorer",
    "run",
    "collect_words",
    "load_grammar",
    "parse_grammar",
    "LoadResult",
    "Diagnostic",
]

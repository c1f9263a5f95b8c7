"""
Derivation Graph

Optional recorder attached to an explorer. Every productive rule application
becomes an edge `source -> output` in a NetworkX digraph, labelled with the
rule that produced it. Nodes carry the verdict they were classified with, so
after a run the graph answers "how was this word derived?" with a shortest
path from the start string.

NOOP and DISCARD applications are only counted; they never reach the graph.
Recording is lock-guarded so a concurrent run can share one recorder.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

import networkx as nx

from langproc.classifier import Verdict
from langproc.rule import RewriteRule


@dataclass(frozen=True)
class DerivationStep:
    """One rule application along a derivation."""
    source: str
    rule: RewriteRule
    output: str

    def __repr__(self) -> str:
        return f"<Step {self.source!r} =[{self.rule}]=> {self.output!r}>"


class DerivationGraph:
    """Directed graph of derivation strings.

    Usage:
        recorder = DerivationGraph()
        SequentialExplorer(grammar, recorder=recorder).run(words.append)
        for step in recorder.derivation("aabb"):
            print(step)
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()
        self._lock = threading.Lock()
        self._root: Optional[str] = None
        self._skipped: dict[Verdict, int] = {Verdict.NOOP: 0, Verdict.DISCARD: 0}

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start(self, root: str) -> None:
        """Reset the graph and mark `root` as the start string."""
        with self._lock:
            self._graph.clear()
            self._skipped = {Verdict.NOOP: 0, Verdict.DISCARD: 0}
            self._root = root
            self._graph.add_node(root, verdict=Verdict.CONTINUE)

    def record(
        self,
        source: str,
        rule: RewriteRule,
        output: str,
        verdict: Verdict,
    ) -> None:
        with self._lock:
            if verdict in self._skipped:
                self._skipped[verdict] += 1
                return
            if output not in self._graph:
                self._graph.add_node(output, verdict=verdict)
            # First rule to produce an edge keeps it
            if not self._graph.has_edge(source, output):
                self._graph.add_edge(source, output, rule=rule)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def root(self) -> Optional[str]:
        return self._root

    @property
    def graph(self) -> nx.DiGraph:
        """The underlying NetworkX graph."""
        return self._graph

    @property
    def words(self) -> list[str]:
        return sorted(
            n for n, v in self._graph.nodes(data="verdict") if v == Verdict.WORD
        )

    @property
    def intermediates(self) -> list[str]:
        return sorted(
            n for n, v in self._graph.nodes(data="verdict") if v == Verdict.CONTINUE
        )

    def skipped(self, verdict: Verdict) -> int:
        return self._skipped.get(verdict, 0)

    def derivation(self, target: str) -> list[DerivationStep]:
        """Shortest chain of rule applications from the root to `target`."""
        if self._root is None:
            raise ValueError("Nothing recorded yet; call start() or run an explorer first")
        if target not in self._graph:
            raise KeyError(f"'{target}' was never derived from '{self._root}'")

        path = nx.shortest_path(self._graph, self._root, target)
        return [
            DerivationStep(src, self._graph.edges[src, dst]["rule"], dst)
            for src, dst in zip(path, path[1:])
        ]

    def format_derivation(self, target: str) -> str:
        """Render a derivation as `S => aSb => aabb`."""
        steps = self.derivation(target)
        if not steps:
            return target
        return " => ".join([steps[0].source] + [s.output for s in steps])

    def summary(self) -> str:
        return (
            f"Derivation graph from {self._root!r}: "
            f"{len(self.intermediates)} intermediates, {len(self.words)} words, "
            f"{self._graph.number_of_edges()} edges "
            f"({self._skipped[Verdict.NOOP]} no-ops, "
            f"{self._skipped[Verdict.DISCARD]} discarded)"
        )

    def __repr__(self) -> str:
        return (
            f"<DerivationGraph: {self._graph.number_of_nodes()} nodes, "
            f"{self._graph.number_of_edges()} edges>"
        )

"""Dependency graph between learned circuits.

An edge ``A -> B`` means circuit B uses instruction A, so A had to be
learned before B. Instructions that have no circuit of their own (base
instructions, pseudo-ops, helper calls) are not part of the graph.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from .exceptions import CyclicDependencyError
from .models import Instruction


class DependencyGraph:
    """Owned, read-only view over a ``networkx.DiGraph`` of instructions."""

    def __init__(self, graph: Optional[nx.DiGraph] = None):
        self._graph = graph if graph is not None else nx.DiGraph()

    @property
    def nodes(self) -> List[Instruction]:
        return sorted(self._graph.nodes)

    @property
    def edges(self) -> List[Tuple[Instruction, Instruction]]:
        return sorted(self._graph.edges)

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, instruction: object) -> bool:
        return instruction in self._graph

    def predecessors(self, instruction: Instruction) -> List[Instruction]:
        return sorted(self._graph.predecessors(instruction))

    def successors(self, instruction: Instruction) -> List[Instruction]:
        return sorted(self._graph.successors(instruction))

    def in_degree(self, instruction: Instruction) -> int:
        return self._graph.in_degree(instruction)

    def topological_order(self) -> List[Instruction]:
        """Lexicographic topological order; raises CyclicDependencyError on a cycle."""
        try:
            return list(nx.lexicographical_topological_sort(self._graph, key=str))
        except nx.NetworkXUnfeasible:
            cycle = nx.find_cycle(self._graph)
            raise CyclicDependencyError([source for source, _ in cycle]) from None

    def restrict(self, subjects: Iterable[Instruction]) -> "DependencyGraph":
        """Induced subgraph on the subjects that are nodes of this graph."""
        keep = [subject for subject in subjects if subject in self._graph]
        return DependencyGraph(self._graph.subgraph(keep).copy())

    def to_dict(self) -> Dict[str, object]:
        return {
            "nodes": [str(node) for node in self.nodes],
            "edges": [{"from": str(source), "to": str(target)} for source, target in self.edges],
            "dependencies": {
                str(node): [str(pred) for pred in self.predecessors(node)] for node in self.nodes
            },
        }


def build_dependency_graph(catalog: Mapping[Instruction, Iterable[Instruction]]) -> DependencyGraph:
    """Build the graph from a mapping of circuit instruction to referenced instructions."""
    graph = nx.DiGraph()
    graph.add_nodes_from(catalog)
    for subject, references in catalog.items():
        # only depend on instructions we learned a circuit for
        for reference in references:
            if reference in catalog:
                graph.add_edge(reference, subject)
    return DependencyGraph(graph)

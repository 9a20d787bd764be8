"""Weighted directed graph used for every probability table.

The graph is a nested mapping: each node maps to a dict of its children,
and each child maps to the weight of the single edge leading to it.

Representation invariant:
- nodes and weights are never None
- every child in an adjacency dict is itself a node of the graph
- at most one edge per ordered (src, dst) pair

While a model is being trained the weights are occurrence counts; after
normalize() they are conditional probabilities.
"""

from typing import Dict, Generic, Iterator, KeysView, Optional, Tuple, TypeVar

import numpy as np

from .errors import InvalidInputError, InvalidStateError, MalformedModelError

V = TypeVar('V')
W = TypeVar('W')


class WeightedDirectedGraph(Generic[V, W]):
    """Directed graph with one weighted edge per ordered node pair."""

    def __init__(self):
        """Initialize an empty graph."""
        self._adjacency: Dict[V, Dict[V, W]] = {}

    def add_node(self, value: V) -> bool:
        """Add a node with no outgoing edges.

        Args:
            value: Node value

        Returns:
            True if the node was added, False if it was already present

        Raises:
            InvalidInputError: If value is None
        """
        if value is None:
            raise InvalidInputError("Graph nodes cannot be None")
        if value in self._adjacency:
            return False
        self._adjacency[value] = {}
        return True

    def add_edge(self, src: V, dst: V, weight: W) -> None:
        """Add an edge from src to dst, replacing any existing weight.

        Args:
            src: Source node
            dst: Destination node
            weight: Edge weight

        Raises:
            InvalidInputError: If weight is None
            InvalidStateError: If src or dst is not a node of the graph
        """
        if weight is None:
            raise InvalidInputError("Edge weights cannot be None")
        if src not in self._adjacency or dst not in self._adjacency:
            raise InvalidStateError(
                f"Cannot add edge {src!r} -> {dst!r}: both nodes must be in the graph"
            )
        self._adjacency[src][dst] = weight

    def contains_node(self, value: V) -> bool:
        return value in self._adjacency

    def __contains__(self, value) -> bool:
        return self.contains_node(value)

    def __len__(self) -> int:
        return len(self._adjacency)

    def get_edge_weight(self, src: V, dst: V) -> Optional[W]:
        """Get the weight of the edge src -> dst.

        Returns:
            The weight, or None if either node or the edge is missing
        """
        if src not in self._adjacency or dst not in self._adjacency:
            return None
        return self._adjacency[src].get(dst)

    def children_of(self, src: V) -> Optional[KeysView]:
        """Get the destinations reachable from src by one edge.

        Returns:
            Read-only view of the children, or None if src is not a node
        """
        children = self._adjacency.get(src)
        if children is None:
            return None
        return children.keys()

    def nodes(self) -> KeysView:
        """Get a read-only view of all nodes."""
        return self._adjacency.keys()

    def edges(self) -> Iterator[Tuple[V, V, W]]:
        """Iterate over (src, dst, weight) triples."""
        for src, children in self._adjacency.items():
            for dst, weight in children.items():
                yield src, dst, weight

    def num_edges(self) -> int:
        return sum(len(children) for children in self._adjacency.values())

    def increment_edge(self, src: V, dst: V, amount: float = 1.0) -> float:
        """Add amount to the weight of src -> dst, creating the edge at amount.

        Both nodes must already be in the graph.

        Returns:
            The new edge weight
        """
        current = self.get_edge_weight(src, dst)
        count = amount if current is None else current + amount
        self.add_edge(src, dst, count)
        return count

    def normalize(self) -> None:
        """Turn outgoing edge weights into a probability distribution per node.

        Each node's outgoing weights are divided by their sum. Nodes without
        outgoing edges are left untouched.

        Raises:
            MalformedModelError: If a node's outgoing weights sum to zero or less
        """
        for src, children in self._adjacency.items():
            if not children:
                continue
            weights = np.fromiter(children.values(), dtype=float, count=len(children))
            total = weights.sum()
            if not total > 0:
                raise MalformedModelError(
                    f"Node {src!r} has non-positive total outgoing weight {total}"
                )
            for dst, probability in zip(list(children), weights / total):
                children[dst] = float(probability)

    def check_rep(self) -> None:
        """Assert the representation invariant."""
        for src, children in self._adjacency.items():
            assert src is not None
            for dst, weight in children.items():
                assert dst is not None
                assert dst in self._adjacency
                assert weight is not None

    def to_dict(self) -> Dict[V, Dict[V, W]]:
        """Copy the graph into a plain nested dict."""
        return {src: dict(children) for src, children in self._adjacency.items()}

    @classmethod
    def from_dict(cls, data: Dict[V, Dict[V, W]]) -> 'WeightedDirectedGraph':
        """Build a graph from a nested dict produced by to_dict().

        Raises:
            InvalidStateError: If a child is not also a top-level node
        """
        graph = cls()
        for src in data:
            graph.add_node(src)
        for src, children in data.items():
            for dst, weight in children.items():
                graph.add_edge(src, dst, weight)
        graph.check_rep()
        return graph

    def __repr__(self) -> str:
        return f"WeightedDirectedGraph(nodes={len(self)}, edges={self.num_edges()})"

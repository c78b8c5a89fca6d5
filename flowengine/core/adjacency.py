"""Adjacency map construction from flat node and edge lists."""

from typing import Dict, Iterable, List

from ..models.core import Edge, Node

AdjacencyMap = Dict[str, List[str]]


def build_adjacency_map(nodes: Iterable[Node], edges: Iterable[Edge]) -> AdjacencyMap:
    """
    Map every node ID to the IDs reachable through one outgoing edge.

    Successors keep the order the edges were supplied in. Nodes without
    outgoing edges map to an empty list. An edge whose endpoints are not in
    ``nodes`` is kept as is; the walker skips targets it cannot resolve.
    """
    adjacency: AdjacencyMap = {node.id: [] for node in nodes}

    for edge in edges:
        adjacency.setdefault(edge.source_node_id, []).append(edge.target_node_id)

    return adjacency

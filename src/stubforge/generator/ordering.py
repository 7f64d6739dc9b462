import logging
from typing import Callable, List, Optional, Sequence, TypeVar

import networkx as nx

log = logging.getLogger(__name__)

T = TypeVar("T")


def order_by_superclass(
    items: Sequence[T],
    key: Callable[[T], str],
    parent_key: Callable[[T], Optional[str]],
) -> List[T]:
    """
    Stable ordering of sibling namespaces so that a class follows its
    superclass whenever that superclass is one of the siblings.

    Siblings whose superclass is outside the set keep their relative order.
    Each sibling keys to exactly one parent, so the graph is a forest and the
    preorder walk visits every item exactly once.
    """
    by_key = {key(item): item for item in items}
    graph = nx.DiGraph()
    graph.add_nodes_from(by_key)

    # Edges are added in sibling order, so children are walked in that order.
    for item in items:
        parent = parent_key(item)
        if parent is not None and parent in by_key and parent != key(item):
            graph.add_edge(parent, key(item))

    ordered: List[T] = []
    for node in by_key:
        if graph.in_degree(node) == 0:
            ordered.extend(by_key[n] for n in nx.dfs_preorder_nodes(graph, node))

    if len(ordered) != len(by_key):
        # Only reachable through a superclass cycle, which a sane model never has.
        seen = {key(item) for item in ordered}
        ordered.extend(item for item in items if key(item) not in seen)

    log.debug(f"Nested order: {[key(item) for item in ordered]}")
    return ordered

"""
Topological scheduler for code export.

The emission order is built by walking backwards from every sink (a node with
no outgoing connection): each node's predecessors are visited before the node
itself is appended, giving a post-order in which producers precede consumers.
``sort_nodes_topologically`` then reverses that sequence, so sinks come first.
The reversal is kept as-is for parity with existing exports; callers that need
producers before consumers ask for the un-reversed order.

The scheduler trusts the graph to be acyclic; that is enforced when edges are
created.
"""

import logging
from typing import Dict, Iterable, List, Sequence


logger = logging.getLogger(__name__)


def _post_order_from_sinks(nodes: Sequence, connections: Sequence) -> List:
    by_id = {node.id: node for node in nodes}

    predecessors: Dict[str, List[str]] = {}
    has_outgoing = set()
    for conn in connections:
        predecessors.setdefault(conn.to_node, []).append(conn.from_node)
        has_outgoing.add(conn.from_node)

    visited = set()
    ordered: List = []

    def visit(start_id: str):
        # Explicit-stack post-order; predecessors are entered in connection order.
        if start_id in visited:
            return
        visited.add(start_id)
        stack = [(start_id, iter(predecessors.get(start_id, [])))]
        while stack:
            node_id, deps = stack[-1]
            for dep in deps:
                if dep not in visited:
                    visited.add(dep)
                    stack.append((dep, iter(predecessors.get(dep, []))))
                    break
            else:
                stack.pop()
                node = by_id.get(node_id)
                if node is not None:
                    ordered.append(node)

    start_nodes = [node for node in nodes if node.id not in has_outgoing]
    for node in start_nodes:
        visit(node.id)
    return ordered


def sort_nodes_topologically(nodes: Sequence, connections: Sequence) -> List:
    """Post-order from sinks, then reversed."""
    ordered = _post_order_from_sinks(nodes, connections)
    ordered.reverse()
    return ordered


class TopologicalScheduler:
    """Orders nodes for emission.

    With ``reverse_output`` (the default) this is exactly
    ``sort_nodes_topologically``; without it the post-order is returned
    unreversed, so every node follows the nodes that flow into it.
    """

    def __init__(self, reverse_output: bool = True):
        self.reverse_output = reverse_output

    def order(self, nodes: Iterable, connections: Iterable) -> List:
        nodes = list(nodes)
        connections = list(connections)
        if self.reverse_output:
            ordered = sort_nodes_topologically(nodes, connections)
        else:
            ordered = _post_order_from_sinks(nodes, connections)
        logger.debug("Scheduled %d of %d node(s)", len(ordered), len(nodes))
        return ordered

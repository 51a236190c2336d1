"""
Cycle guard for proposed connections.

Connections read as a "flows-into" relation. A new edge ``from -> to`` closes a
cycle exactly when ``to`` already flows into ``from``, so the check walks the
predecessors of ``from`` looking for ``to``.
"""

from typing import Dict, Iterable, List


def would_create_cycle(from_id: str, to_id: str, connections: Iterable) -> bool:
    """Return True if adding an edge ``from_id -> to_id`` would create a cycle.

    ``connections`` is any iterable of objects with ``from_node`` and
    ``to_node`` attributes. A self-loop is always a cycle. Each call uses its
    own visited set and runs in O(V + E).
    """
    if from_id == to_id:
        return True

    predecessors: Dict[str, List[str]] = {}
    for conn in connections:
        predecessors.setdefault(conn.to_node, []).append(conn.from_node)

    visited = set()
    stack = [from_id]
    while stack:
        current = stack.pop()
        if current == to_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(predecessors.get(current, []))
    return False

"""
Unit tests for the topological scheduler.
"""

from hypothesis import given, strategies as st
from visual_codegen_core.models import VisualModel
from visual_codegen_core.scheduler import TopologicalScheduler, sort_nodes_topologically


def _ids(nodes):
    return [node.id for node in nodes]


def _chain(length):
    model = VisualModel()
    nodes = [model.add_node("let_declaration") for _ in range(length)]
    for upstream, downstream in zip(nodes, nodes[1:]):
        model.add_connection(upstream.id, "exec_out", downstream.id, "exec_in")
    return model, nodes


class TestSortNodesTopologically:
    """Test cases for sort_nodes_topologically."""

    def test_empty_graph(self):
        """Test scheduling nothing."""
        assert sort_nodes_topologically([], []) == []

    def test_chain_is_reversed_post_order(self):
        """Test that a -> b -> c comes out sink first."""
        model, (a, b, c) = _chain(3)
        ordered = sort_nodes_topologically(list(model.nodes.values()), model.connections)
        assert _ids(ordered) == [c.id, b.id, a.id]

    def test_disconnected_nodes_included(self):
        """Test that isolated nodes are start nodes and are all emitted."""
        model = VisualModel()
        x = model.add_node("loop")
        y = model.add_node("loop")
        ordered = sort_nodes_topologically(list(model.nodes.values()), model.connections)
        assert _ids(ordered) == [y.id, x.id]

    def test_shared_predecessor_visited_once(self):
        """Test that a node feeding two sinks appears once."""
        model = VisualModel()
        src = model.add_node("arithmetic")
        left = model.add_node("arithmetic")
        right = model.add_node("arithmetic")
        model.add_connection(src.id, "result", left.id, "left")
        model.add_connection(src.id, "result", right.id, "left")

        ordered = sort_nodes_topologically(list(model.nodes.values()), model.connections)

        assert _ids(ordered) == [right.id, left.id, src.id]

    def test_removed_node_not_scheduled(self):
        """Test that a deleted node no longer appears."""
        model, (a, b, c) = _chain(3)
        model.remove_node(b.id)
        ordered = sort_nodes_topologically(list(model.nodes.values()), model.connections)
        assert b.id not in _ids(ordered)
        assert set(_ids(ordered)) == {a.id, c.id}


class TestTopologicalScheduler:
    """Test cases for TopologicalScheduler."""

    def test_default_matches_function(self):
        """Test that the default scheduler keeps the reversal."""
        model, nodes = _chain(4)
        scheduler = TopologicalScheduler()
        assert scheduler.order(model.nodes.values(), model.connections) == \
            sort_nodes_topologically(list(model.nodes.values()), model.connections)

    def test_unreversed_order_puts_producers_first(self):
        """Test that without the reversal every node follows its predecessors."""
        model, (a, b, c) = _chain(3)
        scheduler = TopologicalScheduler(reverse_output=False)
        assert _ids(scheduler.order(model.nodes.values(), model.connections)) == [a.id, b.id, c.id]

    def test_deterministic(self):
        """Test that two calls on the same graph agree."""
        model = VisualModel()
        nodes = [model.add_node("arithmetic") for _ in range(5)]
        model.add_connection(nodes[0].id, "result", nodes[2].id, "left")
        model.add_connection(nodes[1].id, "result", nodes[2].id, "right")
        model.add_connection(nodes[2].id, "result", nodes[4].id, "left")

        scheduler = TopologicalScheduler()
        first = scheduler.order(model.nodes.values(), model.connections)
        second = scheduler.order(model.nodes.values(), model.connections)

        assert _ids(first) == _ids(second)
        assert len(first) == 5

    def test_long_chain_does_not_recurse(self):
        """Test a chain deeper than the interpreter recursion limit."""
        model, nodes = _chain(1500)
        ordered = TopologicalScheduler(reverse_output=False).order(model.nodes.values(), model.connections)
        assert _ids(ordered) == _ids(nodes)
        assert _ids(sort_nodes_topologically(list(model.nodes.values()), model.connections)) == \
            _ids(nodes)[::-1]

    def test_predecessors_visited_in_connection_order(self):
        """Test that a node's inputs are finished in the order they were connected."""
        model = VisualModel()
        sink = model.add_node("arithmetic")
        second = model.add_node("arithmetic")
        first = model.add_node("arithmetic")
        model.add_connection(first.id, "result", sink.id, "left")
        model.add_connection(second.id, "result", sink.id, "right")

        ordered = TopologicalScheduler(reverse_output=False).order(model.nodes.values(), model.connections)

        assert _ids(ordered) == [first.id, second.id, sink.id]


@given(st.lists(st.tuples(st.integers(0, 7), st.integers(0, 7)), max_size=25))
def test_scheduler_properties(proposals):
    """Property test: every node is scheduled once, repeatably, and the
    un-reversed order respects every connection."""
    model = VisualModel()
    nodes = [model.add_node("arithmetic") for _ in range(8)]
    for src, dst in proposals:
        model.add_connection(nodes[src].id, "result", nodes[dst].id, "left")

    node_list = list(model.nodes.values())
    ordered = sort_nodes_topologically(node_list, model.connections)
    assert sorted(_ids(ordered)) == sorted(model.nodes)
    assert _ids(ordered) == _ids(sort_nodes_topologically(node_list, model.connections))

    forward = TopologicalScheduler(reverse_output=False).order(node_list, model.connections)
    position = {node_id: index for index, node_id in enumerate(_ids(forward))}
    for conn in model.connections:
        assert position[conn.from_node] < position[conn.to_node]

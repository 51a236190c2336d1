"""
Unit tests for Canvas class.
"""

import pytest
from hypothesis import given, strategies as st
from visual_codegen_core.canvas import (
    Canvas, ViewportState, get_connection_point, MIN_ZOOM, MAX_ZOOM
)
from visual_codegen_core.config import CodegenConfig
from visual_codegen_core.models import ConnectionType, VisualNode


class TestViewportState:
    """Test cases for ViewportState class."""

    def test_viewport_creation(self):
        """Test basic viewport creation."""
        viewport = ViewportState()
        assert viewport.zoom == 1.0
        assert viewport.pan_x == 0.0
        assert viewport.pan_y == 0.0

    def test_world_to_screen_conversion(self):
        """Test world to screen coordinate conversion."""
        viewport = ViewportState(zoom=2.0, pan_x=10.0, pan_y=20.0)

        screen_x, screen_y = viewport.world_to_screen(100.0, 200.0)

        # 100 * 2 + 10 = 210, 200 * 2 + 20 = 420
        assert screen_x == 210.0
        assert screen_y == 420.0

    def test_screen_to_world_conversion(self):
        """Test screen to world coordinate conversion."""
        viewport = ViewportState(zoom=2.0, pan_x=10.0, pan_y=20.0)

        world_x, world_y = viewport.screen_to_world(210.0, 420.0)

        assert world_x == 100.0
        assert world_y == 200.0

    def test_center(self):
        """Test the world point under the middle of the screen."""
        assert ViewportState().center() == (960.0, 540.0)
        assert ViewportState(zoom=2.0, pan_x=60.0, pan_y=40.0).center() == (450.0, 250.0)


class TestConnectionPoints:
    """Test cases for pin anchor points."""

    def _node(self):
        canvas = Canvas()
        return canvas.add_node("let_declaration", position=(100.0, 200.0))

    def test_input_pin_on_left_edge(self):
        assert get_connection_point(self._node(), "exec_in") == (100.0, 240.0)

    def test_output_pin_on_right_edge(self):
        assert get_connection_point(self._node(), "var_out") == (260.0, 240.0)

    def test_declared_input_name(self):
        assert get_connection_point(self._node(), "execution") == (100.0, 240.0)

    def test_parent_and_other_refs(self):
        node = self._node()
        assert get_connection_point(node, "parent") == (180.0, 200.0)
        assert get_connection_point(node, "whatever") == (180.0, 280.0)

    def test_bare_node(self):
        """Test a node without pins or declared slots."""
        node = VisualNode(position=(0.0, 0.0))
        assert get_connection_point(node, "child") == (80.0, 80.0)


class TestCanvas:
    """Test cases for Canvas class."""

    def test_canvas_creation(self):
        """Test basic canvas creation."""
        canvas = Canvas()
        assert canvas.viewport.width == 1920.0
        assert canvas.viewport.height == 1080.0
        assert canvas.selected_node is None
        assert canvas.export_filename == "generated_code.rs"

    def test_canvas_size_from_config(self):
        canvas = Canvas(config=CodegenConfig(canvas_width=800, canvas_height=600))
        assert canvas.viewport.center() == (400.0, 300.0)

    def test_add_node_defaults(self):
        """Test naming and placement of a new node."""
        canvas = Canvas()
        node = canvas.add_node("let_declaration", {"name": "x", "type": "i32"})

        assert node.name == "Let Declaration-1"
        assert node.position == (960.0, 540.0)
        assert node.properties["name"] == "x"
        assert canvas.add_node("loop").name == "Loop-2"

    def test_add_node_at_position(self):
        canvas = Canvas()
        node = canvas.add_node("loop", position=(5.0, 7.0))
        assert node.position == (5.0, 7.0)

    def test_add_unknown_node(self):
        """Test that an unknown kind is accepted and named after the kind."""
        canvas = Canvas()
        node = canvas.add_node("teleport")
        assert node.name == "teleport-1"
        assert node.pins == []

    def test_update_node(self):
        canvas = Canvas()
        node = canvas.add_node("if_statement")
        assert canvas.update_node(node.id, properties={"condition": "ok"}) is True
        assert node.properties == {"condition": "ok"}
        assert canvas.update_node("node_missing", name="x") is False

    def test_moving_node_refreshes_anchor_points(self):
        canvas = Canvas()
        a = canvas.add_node("let_declaration", position=(0.0, 0.0))
        b = canvas.add_node("let_declaration", position=(300.0, 0.0))
        conn = canvas.connect(a.id, "exec_out", b.id, "exec_in")
        assert conn.from_point == (160.0, 40.0)
        assert conn.to_point == (300.0, 40.0)

        canvas.update_node(b.id, position=(500.0, 100.0))

        assert conn.to_point == (500.0, 140.0)

    def test_remove_node_clears_selection(self):
        canvas = Canvas()
        node = canvas.add_node("loop")
        canvas.select_node(node.id)

        assert canvas.remove_node(node.id) is True
        assert canvas.selected_node is None
        assert canvas.remove_node(node.id) is False

    def test_select_node(self):
        canvas = Canvas()
        node = canvas.add_node("loop")
        selected = []
        canvas.on_node_selected = selected.append

        assert canvas.select_node(node.id) is True
        assert canvas.select_node("node_missing") is False
        assert canvas.select_node(None) is True

        assert selected == [node.id]
        assert canvas.selected_node is None

    def test_connect_and_callbacks(self):
        canvas = Canvas()
        first = canvas.add_node("arithmetic")
        second = canvas.add_node("arithmetic")
        created = []
        changes = []
        canvas.on_connection_created = created.append
        canvas.on_model_changed = lambda: changes.append(True)

        conn = canvas.connect(first.id, "result", second.id, "left")

        assert conn.type == ConnectionType.DATA
        assert created == [conn]
        assert changes == [True]

    def test_connect_rejects_cycle(self):
        canvas = Canvas()
        a = canvas.add_node("arithmetic")
        b = canvas.add_node("arithmetic")
        canvas.connect(a.id, "result", b.id, "left")

        assert canvas.can_connect(b.id, a.id) is False
        assert canvas.connect(b.id, "result", a.id, "left") is None
        assert len(canvas.model.connections) == 1

    def test_connect_missing_node(self):
        canvas = Canvas()
        a = canvas.add_node("arithmetic")
        assert canvas.can_connect(a.id, "node_missing") is False
        assert canvas.connect(a.id, "result", "node_missing", "left") is None

    def test_remove_connection(self):
        canvas = Canvas()
        a = canvas.add_node("arithmetic")
        b = canvas.add_node("arithmetic")
        conn = canvas.connect(a.id, "result", b.id, "left")

        assert canvas.remove_connection(conn.id) is True
        assert canvas.remove_connection(conn.id) is False
        assert b.inputs == ["left", "right"]

    def test_zoom_is_clamped(self):
        canvas = Canvas()
        canvas.set_zoom(100.0)
        assert canvas.viewport.zoom == MAX_ZOOM
        canvas.set_zoom(0.0)
        assert canvas.viewport.zoom == MIN_ZOOM
        canvas.set_zoom(2.5)
        assert canvas.viewport.zoom == 2.5

    def test_pan_viewport(self):
        canvas = Canvas()
        canvas.pan_viewport(10.0, -5.0)
        canvas.pan_viewport(1.0, 1.0)
        assert (canvas.viewport.pan_x, canvas.viewport.pan_y) == (11.0, -4.0)

    def test_export_code(self):
        canvas = Canvas()
        canvas.add_node("let_declaration", {"name": "x", "type": "i32"})
        assert canvas.export_code() == "// Generated Rust Code\nuse std::io;\n\nlet x: i32 = 0;"

    def test_clear(self):
        canvas = Canvas()
        a = canvas.add_node("loop")
        b = canvas.add_node("loop")
        canvas.connect(a.id, "completed", b.id, "exec_in")
        canvas.select_node(a.id)

        canvas.clear()

        assert canvas.model.nodes == {}
        assert canvas.model.connections == []
        assert canvas.selected_node is None

    def test_get_canvas_state(self):
        canvas = Canvas()
        canvas.add_node("loop")
        state = canvas.get_canvas_state()
        assert state['model'] == {'node_count': 1, 'connection_count': 0}
        assert state['viewport']['zoom'] == 1.0
        assert state['export_filename'] == "generated_code.rs"


@given(st.floats(min_value=-100, max_value=100),
       st.floats(min_value=-1000, max_value=1000))
def test_zoom_clamp_property(zoom, pan):
    """Property test: zoom always stays within bounds regardless of panning."""
    canvas = Canvas()
    canvas.pan_viewport(pan, pan)
    canvas.set_zoom(zoom)
    assert MIN_ZOOM <= canvas.viewport.zoom <= MAX_ZOOM


@given(st.floats(min_value=0.1, max_value=5.0),
       st.floats(min_value=-500, max_value=500),
       st.floats(min_value=-500, max_value=500))
def test_coordinate_round_trip_property(zoom, x, y):
    """Property test: screen and world conversions invert each other."""
    viewport = ViewportState(zoom=zoom, pan_x=13.0, pan_y=-7.0)
    world_x, world_y = viewport.screen_to_world(*viewport.world_to_screen(x, y))
    assert world_x == pytest.approx(x, abs=1e-6)
    assert world_y == pytest.approx(y, abs=1e-6)

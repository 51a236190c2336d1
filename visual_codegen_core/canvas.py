"""
Canvas class for the editor session.

This module provides the Canvas class which owns the graph being edited and the
viewport it is shown through. It is the seam the presentation layer talks to:
node creation from the catalog, whole-field updates, connection drawing with
the cycle check, and code export.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .config import CodegenConfig
from .models import Connection, VisualModel, VisualNode
from .cycle_guard import would_create_cycle
from .rust_generator import RustGenerator


NODE_WIDTH = 160.0
NODE_HEIGHT = 80.0

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0


@dataclass
class ViewportState:
    """Represents the current viewport state."""
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    width: float = 1920.0
    height: float = 1080.0

    def world_to_screen(self, world_x: float, world_y: float) -> Tuple[float, float]:
        """Convert world coordinates to screen coordinates."""
        return world_x * self.zoom + self.pan_x, world_y * self.zoom + self.pan_y

    def screen_to_world(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        """Convert screen coordinates to world coordinates."""
        return (screen_x - self.pan_x) / self.zoom, (screen_y - self.pan_y) / self.zoom

    def center(self) -> Tuple[float, float]:
        """World coordinates of the middle of the screen."""
        return self.screen_to_world(self.width / 2, self.height / 2)


def get_connection_point(node: VisualNode, pin_ref: str) -> Tuple[float, float]:
    """Anchor point of a pin on the node's box.

    Inputs sit on the left edge, outputs on the right edge, both at half
    height. Anything else anchors on the horizontal centre, at the top edge
    for ``'parent'`` and the bottom edge otherwise.
    """
    x, y = node.position
    pin = node.get_pin(pin_ref)

    if (pin is not None and pin.is_input) or (pin is None and pin_ref in node.inputs):
        return x, y + NODE_HEIGHT / 2
    if (pin is not None and not pin.is_input) or (pin is None and pin_ref in node.outputs):
        return x + NODE_WIDTH, y + NODE_HEIGHT / 2

    return x + NODE_WIDTH / 2, y + (0.0 if pin_ref == 'parent' else NODE_HEIGHT)


class Canvas:
    """Manages the graph being edited and exports it as Rust code."""

    def __init__(self, width: Optional[float] = None, height: Optional[float] = None,
                 config: Optional[CodegenConfig] = None):
        self.config = config or CodegenConfig()
        self.model = VisualModel()
        self.viewport = ViewportState(
            width=width if width is not None else self.config.canvas_width,
            height=height if height is not None else self.config.canvas_height,
        )
        self.generator = RustGenerator(self.config)
        self.logger = logging.getLogger(__name__)

        self.selected_node: Optional[str] = None

        # Event callbacks
        self.on_node_selected: Optional[Callable[[str], None]] = None
        self.on_connection_created: Optional[Callable[[Connection], None]] = None
        self.on_model_changed: Optional[Callable[[], None]] = None

    @property
    def export_filename(self) -> str:
        return self.config.export_filename

    def add_node(self, kind: str, properties: Optional[Dict[str, Any]] = None,
                 category: Optional[str] = None,
                 position: Optional[Tuple[float, float]] = None) -> VisualNode:
        """Create a catalog node, by default in the middle of the viewport."""
        from .node_registry import get_node_type

        info = get_node_type(kind, category)
        display_name = info.name if info is not None else kind
        node = self.model.add_node(
            kind,
            properties,
            name=f"{display_name}-{len(self.model.nodes) + 1}",
            position=position if position is not None else self.viewport.center(),
            category=category,
        )
        self._trigger_model_changed()
        return node

    def update_node(self, node_id: str, **fields) -> bool:
        """Apply whole-field updates; returns False for an unknown node."""
        if node_id not in self.model.nodes:
            return False
        self.model.update_node(node_id, **fields)
        if 'position' in fields:
            self._refresh_connection_points(node_id)
        self._trigger_model_changed()
        return True

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every connection touching it."""
        if node_id not in self.model.nodes:
            return False
        if self.selected_node == node_id:
            self.selected_node = None
        self.model.remove_node(node_id)
        self._trigger_model_changed()
        return True

    def select_node(self, node_id: Optional[str]) -> bool:
        """Select a node on the canvas, or clear the selection with None."""
        if node_id is not None and node_id not in self.model.nodes:
            return False
        self.selected_node = node_id
        if node_id is not None and self.on_node_selected:
            self.on_node_selected(node_id)
        return True

    def can_connect(self, from_node_id: str, to_node_id: str) -> bool:
        """Whether a wire dropped from one node onto another would be accepted."""
        if from_node_id not in self.model.nodes or to_node_id not in self.model.nodes:
            return False
        return not would_create_cycle(from_node_id, to_node_id, self.model.connections)

    def connect(self, from_node_id: str, from_pin: str,
                to_node_id: str, to_pin: str) -> Optional[Connection]:
        """Create a connection; returns None if it was refused."""
        source = self.model.get_node(from_node_id)
        target = self.model.get_node(to_node_id)
        if source is None or target is None:
            return None

        connection = self.model.add_connection(
            from_node_id, from_pin, to_node_id, to_pin,
            from_point=get_connection_point(source, from_pin),
            to_point=get_connection_point(target, to_pin),
        )
        if connection is None:
            return None

        if self.on_connection_created:
            self.on_connection_created(connection)
        self._trigger_model_changed()
        return connection

    def remove_connection(self, connection_id: str) -> bool:
        """Remove a connection from the canvas."""
        if self.model.get_connection(connection_id) is None:
            return False
        self.model.remove_connection(connection_id)
        self._trigger_model_changed()
        return True

    def set_zoom(self, zoom: float):
        """Set the zoom level, clamped to the supported range."""
        self.viewport.zoom = max(MIN_ZOOM, min(zoom, MAX_ZOOM))

    def pan_viewport(self, delta_x: float, delta_y: float):
        """Pan the viewport by the given screen-space delta."""
        self.viewport.pan_x += delta_x
        self.viewport.pan_y += delta_y

    def export_code(self) -> str:
        """Compile the whole graph from scratch."""
        code = self.generator.generate_from_model(self.model)
        self.logger.info("Exported %d node(s), %d connection(s)",
                         len(self.model.nodes), len(self.model.connections))
        return code

    def clear(self):
        self.model.clear()
        self.selected_node = None
        self._trigger_model_changed()

    def get_canvas_state(self) -> Dict[str, Any]:
        """Get the current state of the canvas."""
        return {
            'viewport': {
                'zoom': self.viewport.zoom,
                'pan_x': self.viewport.pan_x,
                'pan_y': self.viewport.pan_y,
                'width': self.viewport.width,
                'height': self.viewport.height
            },
            'selected_node': self.selected_node,
            'model': {
                'node_count': len(self.model.nodes),
                'connection_count': len(self.model.connections)
            },
            'export_filename': self.export_filename,
        }

    def _refresh_connection_points(self, node_id: str):
        for conn in self.model.connections_for(node_id):
            source = self.model.get_node(conn.from_node)
            target = self.model.get_node(conn.to_node)
            if source is not None:
                conn.from_point = get_connection_point(source, conn.from_pin)
            if target is not None:
                conn.to_point = get_connection_point(target, conn.to_pin)

    def _trigger_model_changed(self):
        """Trigger the model changed callback."""
        if self.on_model_changed:
            self.on_model_changed()

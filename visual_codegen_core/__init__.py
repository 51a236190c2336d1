"""
Visual Codegen Core - compiles node graphs built in the visual editor into Rust source.

This package provides the graph model, the connection cycle guard, the
topological scheduler and the scope-aware Rust emitter, plus the canvas
session object the web interface drives.
"""

__version__ = "0.1.0"
__author__ = "Visual Codegen Development Team"

from .models import (
    VisualNode, Connection, VisualModel, Pin, PinType, PinDirection,
    ConnectionType, NodeConfig
)
from .exceptions import CodegenError, ValidationError, PayloadError
from .config import CodegenConfig
from .cycle_guard import would_create_cycle
from .scheduler import TopologicalScheduler, sort_nodes_topologically
from .rust_generator import RustGenerator, Scope, CodeBlock, generate_rust_code
from .node_registry import NODE_TYPES, create_pins_for_node, get_node_type
from .canvas import Canvas, ViewportState

__all__ = [
    "VisualNode",
    "Connection",
    "VisualModel",
    "Pin",
    "PinType",
    "PinDirection",
    "ConnectionType",
    "NodeConfig",
    "CodegenError",
    "ValidationError",
    "PayloadError",
    "CodegenConfig",
    "would_create_cycle",
    "TopologicalScheduler",
    "sort_nodes_topologically",
    "RustGenerator",
    "Scope",
    "CodeBlock",
    "generate_rust_code",
    "NODE_TYPES",
    "create_pins_for_node",
    "get_node_type",
    "Canvas",
    "ViewportState",
]

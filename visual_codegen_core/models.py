"""
Core data models for the Visual Codegen editor.

This module defines the graph the user builds on the canvas: typed pins, nodes
drawn from the node catalog, the connections between them, and the
``VisualModel`` that owns both collections and keeps them consistent.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Tuple, Optional, Mapping
from enum import Enum
import logging
import uuid

from .exceptions import ValidationError
from .cycle_guard import would_create_cycle


logger = logging.getLogger(__name__)


def new_node_id() -> str:
    """Node ids double as Rust identifier suffixes (``temp_<id>``)."""
    return f"node_{uuid.uuid4().hex[:12]}"


def new_connection_id() -> str:
    return f"conn_{uuid.uuid4().hex[:12]}"


class PinType(Enum):
    """Kind of value a pin carries."""
    EXECUTION = "execution"
    DATA = "data"


class PinDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"


class ConnectionType(Enum):
    """Enumeration of connection kinds."""
    EXECUTION = "execution"
    DATA = "data"


@dataclass
class Pin:
    """A typed, directioned connection endpoint owned by a node."""
    id: str
    name: str
    type: PinType
    direction: PinDirection
    data_type: Optional[str] = None  # For data pins: 'i32', 'bool', ...
    color: str = ""

    @property
    def is_execution(self) -> bool:
        return self.type == PinType.EXECUTION

    @property
    def is_input(self) -> bool:
        return self.direction == PinDirection.INPUT

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'direction': self.direction.value,
            'color': self.color,
        }
        if self.data_type is not None:
            data['dataType'] = self.data_type
        return data


@dataclass
class NodeConfig:
    """Category-specific settings of a node."""
    type: str = ""
    category: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'category': self.category,
            'properties': dict(self.properties),
        }


@dataclass
class VisualNode:
    """Represents a visual programming node in the editor."""
    id: str = field(default_factory=new_node_id)
    type: str = ""  # Kind key from the node catalog
    name: str = ""  # Display name for the node
    position: Tuple[float, float] = (0.0, 0.0)
    config: NodeConfig = field(default_factory=NodeConfig)
    pins: List[Pin] = field(default_factory=list)
    # Declared inputs; a slot holds its own name until a data connection binds it
    # to the producing node's id.
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    input_slots: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.input_slots:
            self.input_slots = list(self.inputs)
        if not self.config.type:
            self.config.type = self.type

    @property
    def category(self) -> str:
        return self.config.category

    @property
    def properties(self) -> Dict[str, Any]:
        return self.config.properties

    def get_pin(self, pin_id: str) -> Optional[Pin]:
        """Get a pin by id."""
        for pin in self.pins:
            if pin.id == pin_id:
                return pin
        return None

    @property
    def input_pins(self) -> List[Pin]:
        return [pin for pin in self.pins if pin.is_input]

    @property
    def output_pins(self) -> List[Pin]:
        return [pin for pin in self.pins if not pin.is_input]

    def input_slot_index(self, pin_id: str) -> Optional[int]:
        """Index of the declared input fed by an input pin.

        The n-th input pin feeds the n-th declared input.
        """
        for index, pin in enumerate(self.input_pins):
            if pin.id == pin_id:
                return index if index < len(self.input_slots) else None
        return None

    def reset_inputs(self):
        self.inputs = list(self.input_slots)

    def bind_input(self, pin_id: str, source_node_id: str) -> bool:
        """Record that the input behind ``pin_id`` is produced by another node."""
        index = self.input_slot_index(pin_id)
        if index is None:
            return False
        self.inputs[index] = source_node_id
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'position': {'x': self.position[0], 'y': self.position[1]},
            'config': self.config.to_dict(),
            'pins': [pin.to_dict() for pin in self.pins],
            'inputs': list(self.inputs),
            'outputs': list(self.outputs),
        }


@dataclass
class Connection:
    """Represents a directed edge from one node's output pin to another node's input pin."""
    id: str = field(default_factory=new_connection_id)
    from_node: str = ""
    from_pin: str = ""
    to_node: str = ""
    to_pin: str = ""
    type: ConnectionType = ConnectionType.DATA
    data_type: Optional[str] = None
    from_point: Tuple[float, float] = (0.0, 0.0)
    to_point: Tuple[float, float] = (0.0, 0.0)

    @property
    def is_execution(self) -> bool:
        return self.type == ConnectionType.EXECUTION

    def touches(self, node_id: str) -> bool:
        return self.from_node == node_id or self.to_node == node_id

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'fromNode': self.from_node,
            'fromPin': self.from_pin,
            'toNode': self.to_node,
            'toPin': self.to_pin,
            'type': self.type.value,
            'fromPoint': {'x': self.from_point[0], 'y': self.from_point[1]},
            'toPoint': {'x': self.to_point[0], 'y': self.to_point[1]},
        }
        if self.data_type is not None:
            data['dataType'] = self.data_type
        return data


def _pin_is_execution(node: VisualNode, pin_ref: str) -> bool:
    pin = node.get_pin(pin_ref)
    if pin is not None:
        return pin.is_execution
    # The editor may hand over a pin kind instead of a pin id.
    return pin_ref == ConnectionType.EXECUTION.value


def _pin_data_type(node: VisualNode, pin_ref: str) -> Optional[str]:
    pin = node.get_pin(pin_ref)
    return pin.data_type if pin is not None else None


_UPDATABLE_FIELDS = ('name', 'position', 'config', 'properties')


@dataclass
class VisualModel:
    """The node and connection collections that make up one program graph."""
    nodes: Dict[str, VisualNode] = field(default_factory=dict)
    connections: List[Connection] = field(default_factory=list)

    def add_node(self, kind: str, initial_config: Optional[Mapping[str, Any]] = None, *,
                 name: Optional[str] = None,
                 position: Tuple[float, float] = (0.0, 0.0),
                 category: Optional[str] = None) -> VisualNode:
        """Create a node of a catalog kind and add it to the model.

        ``initial_config`` holds property values; they are laid over the
        catalog defaults. A kind missing from the catalog still produces a
        node (with no pins) so the editor never fails on it; the emitter
        skips it.
        """
        from .node_registry import get_node_type, create_pins_for_node

        info = get_node_type(kind, category)
        if info is None:
            logger.warning("Unknown node kind %r (category %r); node will not be emitted", kind, category)
            resolved_category = category or "unknown"
            properties: Dict[str, Any] = {}
            inputs: List[str] = []
            outputs: List[str] = []
            display_name = kind
        else:
            resolved_category = info.category
            properties = info.default_properties()
            inputs = list(info.inputs)
            outputs = list(info.outputs)
            display_name = info.name

        if initial_config:
            properties.update(initial_config)

        node = VisualNode(
            type=kind,
            name=name if name is not None else display_name,
            position=position,
            config=NodeConfig(type=kind, category=resolved_category, properties=properties),
            pins=create_pins_for_node(kind, resolved_category),
            inputs=inputs,
            outputs=outputs,
        )
        self.nodes[node.id] = node
        logger.debug("Added node %s (%s/%s)", node.id, resolved_category, kind)
        return node

    def get_node(self, node_id: str) -> Optional[VisualNode]:
        return self.nodes.get(node_id)

    def update_node(self, node_id: str, **fields) -> None:
        """Replace whole fields of a node.

        Accepted fields are ``name``, ``position``, ``config`` and
        ``properties`` (shorthand for replacing ``config.properties``). A
        node's kind and category never change, so a replacement config keeps
        them. Unknown ids and fields are ignored.
        """
        node = self.nodes.get(node_id)
        if node is None:
            logger.debug("update_node: unknown node %s", node_id)
            return

        for key, value in fields.items():
            if key not in _UPDATABLE_FIELDS:
                logger.debug("update_node: ignoring field %r on %s", key, node_id)
                continue
            if key == 'name':
                node.name = value
            elif key == 'position':
                node.position = (float(value[0]), float(value[1]))
            elif key == 'properties':
                node.config = NodeConfig(type=node.config.type, category=node.config.category,
                                         properties=dict(value or {}))
            elif key == 'config':
                if isinstance(value, NodeConfig):
                    properties = dict(value.properties)
                else:
                    properties = dict((value or {}).get('properties') or {})
                node.config = NodeConfig(type=node.config.type, category=node.config.category,
                                         properties=properties)

    def remove_node(self, node_id: str) -> None:
        """Remove a node and all its connections from the model."""
        if node_id not in self.nodes:
            logger.debug("remove_node: unknown node %s", node_id)
            return

        touched = [conn for conn in self.connections if conn.touches(node_id)]
        self.connections = [conn for conn in self.connections if not conn.touches(node_id)]
        del self.nodes[node_id]

        for target_id in {conn.to_node for conn in touched if conn.to_node != node_id}:
            self._rebind_inputs(target_id)
        logger.debug("Removed node %s and %d connection(s)", node_id, len(touched))

    def add_connection(self, from_node_id: str, from_pin: str,
                       to_node_id: str, to_pin: str,
                       from_point: Tuple[float, float] = (0.0, 0.0),
                       to_point: Tuple[float, float] = (0.0, 0.0)) -> Optional[Connection]:
        """Create a connection, or return None if it is refused.

        A connection is refused when an endpoint node does not exist or when
        the edge would close a dependency cycle; the model is left untouched.
        """
        source = self.nodes.get(from_node_id)
        target = self.nodes.get(to_node_id)
        if source is None or target is None:
            logger.debug("add_connection: missing endpoint %s -> %s", from_node_id, to_node_id)
            return None

        if would_create_cycle(from_node_id, to_node_id, self.connections):
            logger.info("Rejected connection %s -> %s: would create a cycle", from_node_id, to_node_id)
            return None

        if _pin_is_execution(source, from_pin) or _pin_is_execution(target, to_pin):
            connection_type = ConnectionType.EXECUTION
            data_type = None
        else:
            connection_type = ConnectionType.DATA
            data_type = _pin_data_type(source, from_pin) or _pin_data_type(target, to_pin)

        connection = Connection(
            from_node=from_node_id,
            from_pin=from_pin,
            to_node=to_node_id,
            to_pin=to_pin,
            type=connection_type,
            data_type=data_type,
            from_point=from_point,
            to_point=to_point,
        )
        self.connections.append(connection)
        if connection_type == ConnectionType.DATA:
            target.bind_input(to_pin, from_node_id)
        logger.debug("Added %s connection %s: %s.%s -> %s.%s", connection_type.value,
                     connection.id, from_node_id, from_pin, to_node_id, to_pin)
        return connection

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None

    def remove_connection(self, connection_id: str) -> None:
        """Remove a connection; unknown ids are ignored."""
        connection = self.get_connection(connection_id)
        if connection is None:
            logger.debug("remove_connection: unknown connection %s", connection_id)
            return
        self.connections.remove(connection)
        self._rebind_inputs(connection.to_node)

    def connections_for(self, node_id: str) -> List[Connection]:
        """All connections touching a node."""
        return [conn for conn in self.connections if conn.touches(node_id)]

    def clear(self):
        self.nodes.clear()
        self.connections.clear()

    def _rebind_inputs(self, node_id: str):
        """Recompute a node's declared input bindings from its data connections."""
        node = self.nodes.get(node_id)
        if node is None:
            return
        node.reset_inputs()
        for conn in self.connections:
            if conn.to_node == node_id and conn.type == ConnectionType.DATA:
                node.bind_input(conn.to_pin, conn.from_node)

    def validate_model(self) -> List[ValidationError]:
        """Validate the entire model and return any errors."""
        errors = []

        for connection in self.connections:
            if connection.from_node not in self.nodes:
                errors.append(ValidationError(
                    f"Connection references missing source node: {connection.from_node}",
                    {'connection_id': connection.id}))
            if connection.to_node not in self.nodes:
                errors.append(ValidationError(
                    f"Connection references missing target node: {connection.to_node}",
                    {'connection_id': connection.id}))

        if self._has_cycles():
            errors.append(ValidationError("Model contains circular dependencies"))

        return errors

    def _has_cycles(self) -> bool:
        """Check if the model has circular dependencies using DFS."""
        successors: Dict[str, List[str]] = {}
        for connection in self.connections:
            successors.setdefault(connection.from_node, []).append(connection.to_node)

        visited = set()
        rec_stack = set()

        for root in list(successors):
            if root in visited:
                continue
            visited.add(root)
            rec_stack.add(root)
            stack = [(root, iter(successors.get(root, [])))]
            while stack:
                node_id, children = stack[-1]
                for next_id in children:
                    if next_id in rec_stack:
                        return True
                    if next_id not in visited:
                        visited.add(next_id)
                        rec_stack.add(next_id)
                        stack.append((next_id, iter(successors.get(next_id, []))))
                        break
                else:
                    stack.pop()
                    rec_stack.discard(node_id)
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes.values()],
            'connections': [conn.to_dict() for conn in self.connections],
        }

"""
Node Registry - the closed catalog of node kinds and their pins.

Every node on the canvas is created from one entry of ``NODE_TYPES``. An entry
fixes the node's category, its editable properties, the declared input and
output slots the emitter reads, and (through ``create_pins_for_node``) the typed
pins the editor draws. The pin table is static: the same kind and category
always yield the same ordered pin list.

    category        kinds
    control_flow    if_statement, loop
    variables       let_declaration, assignment
    functions       function_def, function_call
    operators       arithmetic, comparison
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import Pin, PinType, PinDirection


logger = logging.getLogger(__name__)


EXECUTION_COLOR = '#FF6B6B'
DATA_COLOR = '#4ECDC4'


@dataclass
class PropertyDefinition:
    """An editable property shown in the properties panel."""
    type: str  # 'string' | 'number' | 'boolean' | 'select' | 'rust_type'
    label: str
    description: str = ""
    required: bool = False
    default: Any = None
    options: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.type, 'label': self.label, 'required': self.required}
        if self.description:
            data['description'] = self.description
        if self.default is not None:
            data['default'] = self.default
        if self.options:
            data['options'] = [dict(option) for option in self.options]
        return data


@dataclass
class NodeTypeInfo:
    """Catalog entry for one node kind."""
    key: str
    name: str
    category: str
    description: str = ""
    properties: Dict[str, PropertyDefinition] = field(default_factory=dict)
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    def default_properties(self) -> Dict[str, Any]:
        """Property values a freshly created node starts with."""
        return {
            name: prop.default
            for name, prop in self.properties.items()
            if prop.default is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'name': self.name,
            'category': self.category,
            'description': self.description,
            'properties': {name: prop.to_dict() for name, prop in self.properties.items()},
            'inputs': list(self.inputs),
            'outputs': list(self.outputs),
        }


def _options(*pairs) -> List[Dict[str, str]]:
    return [{'value': value, 'label': label} for value, label in pairs]


NODE_TYPES: Dict[str, Dict[str, NodeTypeInfo]] = {
    'control_flow': {
        'if_statement': NodeTypeInfo(
            key='if_statement',
            name='If Statement',
            category='control_flow',
            description='Conditional branching',
            properties={
                'condition': PropertyDefinition(
                    type='string', label='Condition',
                    description='Boolean expression', required=True,
                ),
            },
            inputs=['execution', 'condition'],
            outputs=['true_branch', 'false_branch'],
        ),
        'loop': NodeTypeInfo(
            key='loop',
            name='Loop',
            category='control_flow',
            description='Infinite loop with break condition',
            properties={
                'break_condition': PropertyDefinition(
                    type='string', label='Break Condition',
                    description='Expression that breaks the loop when true',
                ),
            },
            inputs=['execution'],
            outputs=['body', 'after_loop'],
        ),
    },
    'variables': {
        'let_declaration': NodeTypeInfo(
            key='let_declaration',
            name='Let Declaration',
            category='variables',
            description='Variable declaration',
            properties={
                'name': PropertyDefinition(type='string', label='Variable Name', required=True),
                'type': PropertyDefinition(
                    type='rust_type', label='Type', required=True,
                    options=_options(
                        ('i32', 'i32 (32-bit integer)'),
                        ('f64', 'f64 (64-bit float)'),
                        ('String', 'String'),
                        ('bool', 'bool'),
                        ('Vec<T>', 'Vec (Vector)'),
                    ),
                ),
                'mutable': PropertyDefinition(type='boolean', label='Mutable', default=False),
            },
            inputs=['execution', 'value'],
            outputs=['execution'],
        ),
        'assignment': NodeTypeInfo(
            key='assignment',
            name='Assignment',
            category='variables',
            description='Assign value to variable',
            properties={
                'target': PropertyDefinition(type='string', label='Target Variable', required=True),
            },
            inputs=['execution', 'value'],
            outputs=['execution'],
        ),
    },
    'functions': {
        'function_def': NodeTypeInfo(
            key='function_def',
            name='Function Definition',
            category='functions',
            description='Define a new function',
            properties={
                'name': PropertyDefinition(type='string', label='Function Name', required=True),
                'return_type': PropertyDefinition(
                    type='rust_type', label='Return Type', required=True,
                    options=_options(
                        ('()', 'Unit (no return)'),
                        ('i32', 'i32'),
                        ('String', 'String'),
                        ('bool', 'bool'),
                    ),
                ),
            },
            inputs=[],
            outputs=['body'],
        ),
        'function_call': NodeTypeInfo(
            key='function_call',
            name='Function Call',
            category='functions',
            description='Call a function',
            properties={
                'function_name': PropertyDefinition(type='string', label='Function Name', required=True),
            },
            inputs=['execution', 'arguments'],
            outputs=['execution', 'return_value'],
        ),
    },
    'operators': {
        'arithmetic': NodeTypeInfo(
            key='arithmetic',
            name='Arithmetic',
            category='operators',
            description='Basic arithmetic operations',
            properties={
                'operation': PropertyDefinition(
                    type='select', label='Operation', required=True,
                    options=_options(
                        ('add', 'Add (+)'),
                        ('subtract', 'Subtract (-)'),
                        ('multiply', 'Multiply (*)'),
                        ('divide', 'Divide (/)'),
                    ),
                ),
            },
            inputs=['left', 'right'],
            outputs=['result'],
        ),
        'comparison': NodeTypeInfo(
            key='comparison',
            name='Comparison',
            category='operators',
            description='Comparison operations',
            properties={
                'operation': PropertyDefinition(
                    type='select', label='Operation', required=True,
                    options=_options(
                        ('eq', 'Equals (==)'),
                        ('neq', 'Not Equals (!=)'),
                        ('gt', 'Greater Than (>)'),
                        ('lt', 'Less Than (<)'),
                        ('gte', 'Greater Than or Equal (>=)'),
                        ('lte', 'Less Than or Equal (<=)'),
                    ),
                ),
            },
            inputs=['left', 'right'],
            outputs=['result'],
        ),
    },
}


def get_node_type(kind: str, category: Optional[str] = None) -> Optional[NodeTypeInfo]:
    """Look up a catalog entry by kind, optionally restricted to a category."""
    if category is not None:
        return NODE_TYPES.get(category, {}).get(kind)
    for kinds in NODE_TYPES.values():
        if kind in kinds:
            return kinds[kind]
    return None


def iter_node_types() -> List[NodeTypeInfo]:
    """All catalog entries in category order."""
    return [info for kinds in NODE_TYPES.values() for info in kinds.values()]


def search_node_types(term: str = "") -> Dict[str, List[NodeTypeInfo]]:
    """Filter the catalog the way the add-node menu does: case-insensitive
    substring match on the kind key or the display name, grouped by category."""
    term = (term or "").strip().lower()
    results: Dict[str, List[NodeTypeInfo]] = {}
    for category, kinds in NODE_TYPES.items():
        matches = [
            info for key, info in kinds.items()
            if not term or term in key.lower() or term in info.name.lower()
        ]
        if matches:
            results[category] = matches
    return results


def _exec_pin(pin_id: str, name: str, direction: PinDirection) -> Pin:
    return Pin(id=pin_id, name=name, type=PinType.EXECUTION,
               direction=direction, color=EXECUTION_COLOR)


def _data_pin(pin_id: str, name: str, direction: PinDirection,
              data_type: Optional[str] = None) -> Pin:
    return Pin(id=pin_id, name=name, type=PinType.DATA, data_type=data_type,
               direction=direction, color=DATA_COLOR)


def create_pins_for_node(kind: str, category: str) -> List[Pin]:
    """Return the fixed, ordered pin list for a node kind.

    Kinds are matched by containment, so variants such as ``nested_loop`` pick
    up the pins of their base kind. Unknown pairs get no pins.
    """
    IN, OUT = PinDirection.INPUT, PinDirection.OUTPUT
    pins: List[Pin] = []

    if category == 'control_flow':
        if 'if_statement' in kind:
            pins = [
                _exec_pin('exec_in', 'In', IN),
                _data_pin('condition', 'Condition', IN, data_type='bool'),
                _exec_pin('then', 'Then', OUT),
                _exec_pin('else', 'Else', OUT),
            ]
        elif 'loop' in kind:
            pins = [
                _exec_pin('exec_in', 'In', IN),
                _exec_pin('body', 'Loop Body', OUT),
                _exec_pin('completed', 'Completed', OUT),
            ]
    elif category == 'variables':
        if 'let_declaration' in kind or 'assignment' in kind:
            pins = [
                _exec_pin('exec_in', 'In', IN),
                _data_pin('value', 'Value', IN),
                _exec_pin('exec_out', 'Out', OUT),
                _data_pin('var_out', 'Variable', OUT),
            ]
    elif category == 'operators':
        pins = [
            _data_pin('left', 'Left', IN),
            _data_pin('right', 'Right', IN),
            _data_pin('result', 'Result', OUT),
        ]
    elif category == 'functions':
        if 'function_def' in kind:
            pins = [
                _exec_pin('exec_body', 'Body', OUT),
                _data_pin('return_value', 'Return', IN),
            ]
        elif 'function_call' in kind:
            pins = [
                _exec_pin('exec_in', 'In', IN),
                _exec_pin('exec_out', 'Out', OUT),
                _data_pin('params', 'Parameters', IN),
                _data_pin('return', 'Return Value', OUT),
            ]

    if not pins:
        logger.warning("No pins defined for category: %s, type: %s", category, kind)
    return pins

"""
Rust Code Generator for visual node graphs.

This module walks the scheduled nodes of a graph and emits Rust source text.
It keeps a chain of lexical scopes, one text block per node body or branch, a
table of the variable that holds each node's value, and a single indentation
counter shared by every block. The counter only grows while nodes are emitted;
the closing braces for every open block are appended once, at the very end.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import CodegenConfig
from .scheduler import TopologicalScheduler


logger = logging.getLogger(__name__)


UNRESOLVED_OPERAND = "Default::default()"

OPERATOR_SYMBOLS = {
    'add': '+',
    'subtract': '-',
    'multiply': '*',
    'divide': '/',
    'eq': '==',
    'neq': '!=',
    'gt': '>',
    'lt': '<',
    'gte': '>=',
    'lte': '<=',
}

DEFAULT_OPERATIONS = {
    'arithmetic': 'add',
    'comparison': 'eq',
}

# Output pins that open a nested block, and the suffix of that block's key.
BRANCH_PINS = {
    'then': '_true',
    'else': '_false',
    'body': '_body',
    'exec_body': '',
}


@dataclass
class Scope:
    """A lexical binding environment: variable name -> Rust type."""
    variables: Dict[str, str] = field(default_factory=dict)
    parent: Optional['Scope'] = None

    def declare(self, name: str, rust_type: str):
        self.variables[name] = rust_type

    def lookup(self, name: str) -> Optional[str]:
        """Type of the nearest enclosing binding of ``name``, or None."""
        scope = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return None

    def child(self) -> 'Scope':
        return Scope(parent=self)


@dataclass
class CodeBlock:
    """Lines emitted for one body or branch, with the scope active there."""
    code: List[str] = field(default_factory=list)
    scope: Scope = field(default_factory=Scope)


@dataclass
class CodeGenContext:
    """State carried across one export."""
    root_block: CodeBlock = field(default_factory=CodeBlock)
    current_block: Optional[CodeBlock] = None
    blocks: Dict[str, CodeBlock] = field(default_factory=dict)
    node_outputs: Dict[str, str] = field(default_factory=dict)
    node_blocks: Dict[str, Optional[str]] = field(default_factory=dict)
    indent_level: int = 0

    def __post_init__(self):
        if self.current_block is None:
            self.current_block = self.root_block


def _text_property(node, key: str) -> Optional[str]:
    """A text property of ``node``, or None when it is unset, blank or not a string."""
    value = node.properties.get(key)
    if isinstance(value, str) and value.strip():
        return value
    if value is not None and not isinstance(value, str):
        logger.warning(
            "Node %s: ignoring non-text %r value %r", node.id, key, value)
    return None


def get_default_value(rust_type: Optional[str]) -> str:
    """Zero value used to initialise a declaration of ``rust_type``."""
    if not isinstance(rust_type, str) or not rust_type.strip():
        return '0'

    rust_type = rust_type.strip()
    if rust_type in ('i32', 'i64', 'u32', 'u64'):
        return '0'
    if rust_type in ('f32', 'f64'):
        return '0.0'
    if rust_type == 'bool':
        return 'false'
    if rust_type == 'String':
        return 'String::new()'
    if rust_type.startswith('Vec<'):
        return 'vec![]'
    return 'Default::default()'


class RustGenerator:
    """Generates Rust code from a node graph."""

    def __init__(self, config: Optional[CodegenConfig] = None):
        self.config = config or CodegenConfig()
        self.scheduler = TopologicalScheduler(reverse_output=self.config.legacy_emission_order)
        self.logger = logger

    def generate(self, nodes: Sequence, connections: Sequence) -> str:
        """Compile the whole graph into one Rust source text."""
        nodes = list(nodes)
        connections = list(connections)
        context = CodeGenContext()

        incoming_exec: Dict[str, List] = {}
        for conn in connections:
            if conn.is_execution:
                incoming_exec.setdefault(conn.to_node, []).append(conn)

        for node in self.scheduler.order(nodes, connections):
            block_key = self._target_block_key(node, incoming_exec, context)
            context.current_block = context.blocks[block_key] if block_key is not None else context.root_block
            context.node_blocks[node.id] = block_key
            self._emit_node(node, context)
            context.current_block = context.root_block

        code = "\n".join(self.config.header_lines) + "\n"
        code += "\n".join(context.root_block.code)

        for block in context.blocks.values():
            code += "\n" + "\n".join(block.code)

        while context.indent_level > 0:
            context.indent_level -= 1
            code += "\n" + self._indent(context.indent_level) + "}"

        self.logger.info("Generated %d line(s) of Rust from %d node(s)",
                         code.count("\n") + 1, len(nodes))
        return code

    def generate_from_model(self, model) -> str:
        return self.generate(list(model.nodes.values()), model.connections)

    def _indent(self, level: int) -> str:
        return self.config.indent_unit * level

    def _emit(self, context: CodeGenContext, text: str, level: Optional[int] = None):
        if level is None:
            level = context.indent_level
        context.current_block.code.append(self._indent(level) + text)

    def _target_block_key(self, node, incoming_exec: Dict[str, List],
                          context: CodeGenContext) -> Optional[str]:
        """Pick the block a node is emitted into.

        A node hanging off a branch pin goes into that branch's block; a node
        following any other execution pin joins its predecessor's block.
        """
        for conn in incoming_exec.get(node.id, []):
            suffix = BRANCH_PINS.get(conn.from_pin)
            if suffix is not None:
                key = f"{conn.from_node}{suffix}"
                if key in context.blocks:
                    return key
            if conn.from_node in context.node_blocks:
                return context.node_blocks[conn.from_node]
        return None

    def _emit_node(self, node, context: CodeGenContext):
        category = node.category
        kind = node.type or node.config.type

        if category == 'variables':
            if 'assignment' in kind:
                self._generate_assignment(node, context)
            elif 'let_declaration' in kind:
                self._generate_variable_declaration(node, context)
        elif category == 'functions':
            if 'function_call' in kind:
                self._generate_function_call(node, context)
            elif 'function_def' in kind:
                self._generate_function_definition(node, context)
        elif category == 'control_flow':
            if 'if_statement' in kind:
                self._generate_if_statement(node, context)
            elif 'loop' in kind:
                self._generate_loop_statement(node, context)
        elif category == 'operators':
            if kind in DEFAULT_OPERATIONS:
                self._generate_operator_expression(node, context)
        else:
            self.logger.debug("Skipping node %s of unrecognized kind %s/%s", node.id, category, kind)

    def _find_producer(self, node, context: CodeGenContext) -> Optional[str]:
        """First recorded output whose producing node is one of ``node``'s inputs."""
        inputs = node.inputs or []
        for producer_id, var_name in context.node_outputs.items():
            if producer_id in inputs:
                return var_name
        return None

    def _resolve_operand(self, input_entry: str, context: CodeGenContext) -> Optional[str]:
        # Containment match of producer id against the declared input.
        for producer_id, var_name in context.node_outputs.items():
            if producer_id in input_entry:
                return var_name
        return None

    def _generate_variable_declaration(self, node, context: CodeGenContext):
        props = node.properties
        if not props:
            self.logger.warning("Variable node %s has no properties; using defaults", node.id)

        var_type = _text_property(node, 'type') or self.config.default_type
        var_name = _text_property(node, 'name') or f"var_{node.id}"
        mutable = 'mut ' if props.get('mutable') is True else ''

        context.current_block.scope.declare(var_name, var_type)

        initializer = self._find_producer(node, context)
        if initializer is None:
            initializer = get_default_value(var_type)

        self._emit(context, f"let {mutable}{var_name}: {var_type} = {initializer};")
        context.node_outputs[node.id] = var_name

    def _generate_assignment(self, node, context: CodeGenContext):
        target = _text_property(node, 'target') or f"var_{node.id}"

        value = self._find_producer(node, context)
        if value is None:
            target_type = context.current_block.scope.lookup(target) or self.config.default_type
            value = get_default_value(target_type)

        self._emit(context, f"{target} = {value};")
        context.node_outputs[node.id] = target

    def _generate_function_definition(self, node, context: CodeGenContext):
        func_name = _text_property(node, 'name') or f"func_{node.id}"
        return_type = _text_property(node, 'return_type') or self.config.default_return_type

        outer_scope = context.current_block.scope
        function_block = CodeBlock(scope=outer_scope.child())

        params = []
        for param in node.inputs or []:
            if param == 'execution':
                continue
            param_type = outer_scope.lookup(param) or self.config.default_type
            function_block.scope.declare(param, param_type)
            params.append(f"{param}: {param_type}")

        self._emit(context, f"fn {func_name}({', '.join(params)}) -> {return_type} {{")

        context.blocks[node.id] = function_block
        context.indent_level += 1

    def _generate_function_call(self, node, context: CodeGenContext):
        func_name = _text_property(node, 'function_name') or f"func_{node.id}"

        args = []
        for entry in node.inputs or []:
            if entry == 'execution':
                continue
            var_name = context.node_outputs.get(entry)
            if var_name is not None:
                args.append(var_name)

        result_var = f"call_{node.id}"
        self._emit(context, f"let {result_var} = {func_name}({', '.join(args)});")
        context.node_outputs[node.id] = result_var

    def _generate_operator_expression(self, node, context: CodeGenContext):
        operation = _text_property(node, 'operation') or DEFAULT_OPERATIONS[node.type or node.config.type]
        symbol = OPERATOR_SYMBOLS.get(operation, operation)

        operands = [self._resolve_operand(entry, context) for entry in node.inputs or []]
        operands = [operand or UNRESOLVED_OPERAND for operand in operands]
        while len(operands) < 2:
            operands.append(UNRESOLVED_OPERAND)
        left, right = operands[0], operands[1]

        result_var = f"temp_{node.id}"
        self._emit(context, f"let {result_var} = {left} {symbol} {right};")
        context.node_outputs[node.id] = result_var

    def _generate_if_statement(self, node, context: CodeGenContext):
        condition = _text_property(node, 'condition')
        if not condition:
            condition = self._find_producer(node, context)
        if not condition:
            self.logger.warning("If node %s has no condition; emitting `true`", node.id)
            condition = 'true'

        parent_scope = context.current_block.scope
        self._emit(context, f"if {condition} {{")

        context.blocks[f"{node.id}_true"] = CodeBlock(scope=parent_scope.child())
        context.blocks[f"{node.id}_false"] = CodeBlock(scope=parent_scope.child())

        context.indent_level += 1

    def _generate_loop_statement(self, node, context: CodeGenContext):
        break_condition = _text_property(node, 'break_condition')

        self._emit(context, "loop {")

        if break_condition:
            self._emit(context, f"if {break_condition} {{ break; }}", level=context.indent_level + 1)

        loop_scope = context.current_block.scope.child()
        context.blocks[f"{node.id}_body"] = CodeBlock(scope=loop_scope)

        context.indent_level += 1


def generate_rust_code(nodes: Sequence, connections: Sequence,
                       config: Optional[CodegenConfig] = None) -> str:
    """Compile a node graph into Rust source text."""
    return RustGenerator(config).generate(nodes, connections)

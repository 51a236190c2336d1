"""
Configuration for code generation and the editor session.

Values resolve from keyword arguments first, then ``VCODEGEN_*`` environment
variables, then the defaults below.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


DEFAULT_HEADER_LINES = ["// Generated Rust Code", "use std::io;", ""]

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _env(name: str) -> Optional[str]:
    value = os.environ.get(name, '').strip()
    return value or None


@dataclass
class CodegenConfig:
    """Settings shared by the emitter and the canvas."""
    indent_size: int = 4
    header_lines: List[str] = field(default_factory=lambda: list(DEFAULT_HEADER_LINES))
    default_type: str = "i32"
    default_return_type: str = "()"
    export_filename: str = "generated_code.rs"
    # Emit in the literal reversed scheduler order (sinks first).
    legacy_emission_order: bool = False
    canvas_width: float = 1920.0
    canvas_height: float = 1080.0

    @property
    def indent_unit(self) -> str:
        return " " * self.indent_size

    @classmethod
    def from_env(cls, **overrides) -> "CodegenConfig":
        """Build a config from ``VCODEGEN_*`` environment variables."""
        values = {}

        indent_size = _env('VCODEGEN_INDENT_SIZE')
        if indent_size is not None:
            try:
                values['indent_size'] = max(0, int(indent_size))
            except ValueError:
                pass

        default_type = _env('VCODEGEN_DEFAULT_TYPE')
        if default_type is not None:
            values['default_type'] = default_type

        export_filename = _env('VCODEGEN_EXPORT_FILENAME')
        if export_filename is not None:
            values['export_filename'] = export_filename

        legacy = _env('VCODEGEN_LEGACY_ORDER')
        if legacy is not None:
            values['legacy_emission_order'] = legacy.lower() in _TRUE_VALUES

        values.update(overrides)
        return cls(**values)

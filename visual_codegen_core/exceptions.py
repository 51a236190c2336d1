"""
Exceptions for the Visual Codegen Core.

Graph mutation and code export never raise for stale ids, missing config or
unknown node kinds; these types cover validation reports and malformed input
arriving from outside the core.
"""

from typing import Optional, Any, Dict


class CodegenError(Exception):
    """Base exception for all codegen-related errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(CodegenError):
    """Reported when a visual model fails a structural check."""
    pass


class PayloadError(CodegenError):
    """Raised when a request payload is missing fields or has the wrong shape."""
    
    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field

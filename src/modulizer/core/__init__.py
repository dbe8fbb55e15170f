"""
Core modules for modulizer.

This package contains the fundamental building blocks:
- types: settings, documents, fragments, bindings, results
- graph: rustworkx-backed document include graph
- errors: fatal errors and recoverable warnings
- result: Ok/Err result type
"""

from .errors import (
    ConflictingExportError, ConversionError, ConversionWarning, ModulizerError,
    UnresolvedIncludeError,
)
from .graph import DocumentGraph
from .result import Err, Ok, Result
from .types import (
    BindingKind, ConversionResults, ConversionSettings, DependencyEdge,
    Diagnostic, DiagnosticKind, Document, EdgeKind, ExportBinding, Namespace,
)

__all__ = [
    # Types
    "BindingKind", "ConversionResults", "ConversionSettings", "DependencyEdge",
    "Diagnostic", "DiagnosticKind", "Document", "EdgeKind", "ExportBinding", "Namespace",
    # Graph
    "DocumentGraph",
    # Errors
    "ModulizerError", "ConversionError", "ConflictingExportError",
    "UnresolvedIncludeError", "ConversionWarning",
    # Result
    "Ok", "Err", "Result",
]

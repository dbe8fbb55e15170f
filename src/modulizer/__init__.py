"""
modulizer: convert HTML-imports packages to JavaScript modules.

    from modulizer import BowerPackageUrlHandler, InMemoryUrlLoader, ProjectConverter

    loader = InMemoryUrlLoader({"index.html": "..."})
    results = ProjectConverter(BowerPackageUrlHandler("my-el")).convert(loader, ["index.html"])
"""

from .conversion.converter import ProjectConverter, convert_package, write_results
from .core.errors import (
    ConflictingExportError,
    ConversionError,
    ModulizerError,
    UnresolvedIncludeError,
)
from .core.types import ConversionResults, ConversionSettings, Diagnostic
from .parsing.loader import FileSystemUrlLoader, InMemoryUrlLoader
from .urls import BowerPackageUrlHandler, PackageUrlHandler

__version__ = "0.1.0"

__all__ = [
    "ProjectConverter", "convert_package", "write_results",
    "ConversionSettings", "ConversionResults", "Diagnostic",
    "ModulizerError", "ConversionError", "ConflictingExportError", "UnresolvedIncludeError",
    "FileSystemUrlLoader", "InMemoryUrlLoader",
    "BowerPackageUrlHandler", "PackageUrlHandler",
]

"""
Error taxonomy for modulizer.

Fatal errors (`ConversionError` subclasses) abort the whole run. Warnings
(`ConversionWarning` subclasses) are never raised by the passes; they are
turned into `Diagnostic` records and returned next to the output.
"""

from typing import Optional

from .types import Diagnostic, DiagnosticKind


class ModulizerError(Exception):
    """Base class for every error raised by modulizer."""


class ConversionError(ModulizerError):
    """A structural problem that makes the whole conversion invalid."""


class ConflictingExportError(ConversionError):
    """Two unrelated documents declare the same namespace member."""

    def __init__(self, path: str, first_document: str, second_document: str):
        self.path = path
        self.first_document = first_document
        self.second_document = second_document
        super().__init__(
            f'"{path}" is declared in both {first_document} and {second_document}'
        )


class UnresolvedIncludeError(ConversionError):
    """An include edge points at an internal document that cannot be loaded."""

    def __init__(self, url: str, referrer: Optional[str] = None, reason: str = ""):
        self.url = url
        self.referrer = referrer
        message = f"Could not load {url}"
        if referrer:
            message += f" (imported from {referrer})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConversionWarning(ModulizerError):
    """A recoverable issue; converted into a Diagnostic instead of raised."""

    kind: DiagnosticKind = DiagnosticKind.UNSUPPORTED

    def __init__(self, message: str, document: Optional[str] = None):
        self.message = message
        self.document = document
        super().__init__(message)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(kind=self.kind, message=self.message, document=self.document)


class UnresolvedReferenceWarning(ConversionWarning):
    kind = DiagnosticKind.UNRESOLVED_REFERENCE


class CyclicDependencyWarning(ConversionWarning):
    kind = DiagnosticKind.CYCLIC_DEPENDENCY


class PackageMappingWarning(ConversionWarning):
    kind = DiagnosticKind.PACKAGE_MAPPING


class UnsupportedPatternWarning(ConversionWarning):
    kind = DiagnosticKind.UNSUPPORTED


class ConflictingExportWarning(ConversionWarning):
    """Two dependency documents declare the same member; the first one is kept."""
    kind = DiagnosticKind.CONFLICTING_EXPORT

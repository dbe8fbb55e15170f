"""
Core type definitions for modulizer.

Pydantic models describe the values that cross the public API (settings,
edges, diagnostics, results); plain dataclasses hold the mutable per-run
state that carries tree-sitter objects (documents, fragments, bindings).
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .. import config

MemberPath = Tuple[str, ...]


class BindingKind(StrEnum):
    """What kind of value a namespace member holds."""
    VALUE = "value"
    FUNCTION = "function"
    CLASS = "class"
    REEXPORT = "reexport"


class EdgeKind(StrEnum):
    """How a document pulls in one of its dependencies."""
    HTML_IMPORT = "html-import"
    SCRIPT_SRC = "script-src"


class DiagnosticKind(StrEnum):
    """Categories of recoverable issues reported alongside the output."""
    UNRESOLVED_REFERENCE = "unresolved_reference"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    PACKAGE_MAPPING = "package_mapping"
    UNSUPPORTED = "unsupported"
    PARSE_ERROR = "parse_error"
    CONFLICTING_EXPORT = "conflicting_export"


class ConversionSettings(BaseModel):
    """
    Immutable per-run configuration.

    Created once when a conversion starts and only read afterwards.
    """
    namespaces: FrozenSet[str] = Field(default_factory=lambda: frozenset(config.DEFAULT_NAMESPACES))
    excludes: FrozenSet[str] = Field(default_factory=frozenset)
    reference_excludes: FrozenSet[str] = Field(default_factory=frozenset)
    includes: FrozenSet[str] = Field(default_factory=frozenset)
    add_import_path: bool = False
    html_tag_path: str = config.DEFAULT_HTML_TAG_PATH

    model_config = ConfigDict(frozen=True)

    @field_validator("namespaces", "excludes", "reference_excludes", "includes", mode="before")
    @classmethod
    def _coerce_iterable(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset([value])
        return frozenset(value)

    @property
    def html_tag(self) -> MemberPath:
        return tuple(self.html_tag_path.split("."))


class DependencyEdge(BaseModel):
    """
    Directed include edge between two documents.

    `cyclic` is set by the cycle detector when the edge closes a cycle.
    """
    source: str
    target: str
    kind: EdgeKind = EdgeKind.HTML_IMPORT
    order: int = 0
    href: str = ""
    cyclic: bool = False

    @property
    def absolute(self) -> bool:
        """True when the directive used a root-relative `/...` href."""
        return self.href.startswith("/")

    def describe(self) -> str:
        return f"{self.source} -> {self.target}"


class Diagnostic(BaseModel):
    """A recoverable issue detected during conversion."""
    kind: DiagnosticKind
    message: str
    document: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.message


class ConversionResults(BaseModel):
    """
    Output of one conversion run.

    `outputs` maps an output path to its new contents, or to None when the
    file no longer exists after conversion (e.g. an HTML file replaced by a
    JavaScript module).
    """
    outputs: Dict[str, Optional[str]] = Field(default_factory=dict)
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]

    def written(self) -> Dict[str, str]:
        return {path: text for path, text in self.outputs.items() if text is not None}

    def deleted(self) -> List[str]:
        return [path for path, text in self.outputs.items() if text is None]


@dataclass
class ExportBinding:
    """One namespace member destined to become a module export."""
    path: MemberPath
    document: str
    kind: BindingKind = BindingKind.VALUE
    local_name: str = ""
    assignment_count: int = 1
    target: Optional["ExportBinding"] = None
    setter: Optional["ExportBinding"] = None

    def __post_init__(self):
        if not self.local_name:
            self.local_name = self.name

    @property
    def name(self) -> str:
        return self.path[-1]

    @property
    def namespace(self) -> MemberPath:
        return self.path[:-1]

    @property
    def dotted(self) -> str:
        return ".".join(self.path)

    @property
    def mutable(self) -> bool:
        return self.assignment_count > 1


@dataclass
class Namespace:
    """A global accumulator object whose members are export bindings."""
    path: MemberPath
    document: Optional[str] = None
    local_alias: Optional[str] = None
    members: Dict[str, ExportBinding] = field(default_factory=dict)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


# --- Document fragments ---


@dataclass
class Fragment:
    """A contiguous piece of an HTML document, in document order."""
    order: int
    start: int
    end: int


@dataclass
class LinkImportFragment(Fragment):
    href: str = ""
    url: str = ""


@dataclass
class ScriptFragment(Fragment):
    """
    A classic or module script.

    `text` is the (dedented, later normalized) JavaScript source; `tree` is
    the tree-sitter tree of `text`, filled in once the fragment is parsed.
    """
    text: str = ""
    src: Optional[str] = None
    src_span: Optional[Tuple[int, int]] = None
    is_module: bool = False
    nested: bool = False
    external: bool = False
    key: str = ""
    tree: Any = None

    @property
    def source(self) -> bytes:
        return self.text.encode("utf-8")

    @property
    def inline(self) -> bool:
        return self.src is None


@dataclass
class TemplateFragment(Fragment):
    """A `<dom-module id>` with a single template, waiting for its owner."""
    element_id: str = ""
    content: str = ""
    markup: str = ""


@dataclass
class MarkupFragment(Fragment):
    text: str = ""


@dataclass
class CommentFragment(Fragment):
    text: str = ""


@dataclass
class Document:
    """A parsed HTML document identified by its package-relative URL."""
    url: str
    source: str
    fragments: List[Fragment] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)
    maintained: bool = False

    @property
    def scripts(self) -> List[ScriptFragment]:
        """Scripts that take part in conversion, in document order."""
        return [
            f for f in self.fragments
            if isinstance(f, ScriptFragment)
            and not f.external
            and (self.maintained or not f.nested)
            and not (self.maintained and (f.is_module or not f.inline))
        ]

    @property
    def structural(self) -> List[Fragment]:
        """Non-script fragments (templates, markup, comments)."""
        return [
            f for f in self.fragments
            if isinstance(f, (TemplateFragment, MarkupFragment, CommentFragment))
        ]

    @property
    def includes(self) -> List[str]:
        return [e.target for e in self.edges if e.kind == EdgeKind.HTML_IMPORT]

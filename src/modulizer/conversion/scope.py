"""
Per-script conversion state and lexical scope queries.

A `ScriptUnit` wraps one script fragment once it has been normalized and
parsed. The registry records what it decided about the script (aliases,
declarations to render, spans that must not be touched), the resolver and
relocator then add edits to the unit's editor.

`this` handling follows the lexical function structure:
- arrow functions inherit `this`, every other function binds its own
- a `this` with no enclosing function or class is the global object
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node, Tree

from ..core.types import Document, ExportBinding, MemberPath, ScriptFragment
from ..parsing.javascript import (
    FUNCTION_TYPES,
    PLAIN_FUNCTION_TYPES,
    declared_names,
    parse_javascript,
)
from .editor import SourceEditor

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


def span(node: Node) -> Span:
    return node.start_byte, node.end_byte


@dataclass
class Declaration:
    """
    A top-level statement the registry turned into exports.

    `style` is one of:
    - "assign": `Root.x = value` -> `export const x = value`
    - "reference": `Root.x = ident` -> `export { ident as x }`
    - "reexport": `Root.x = Other.y` across modules -> `export { y as x }`
    - "excluded": `Root.Excluded = value` -> `export { value as Excluded }`
    - "expand": object literal namespace -> one export per member
    - "remove": statement dropped (namespace initialization)
    """
    style: str
    start: int
    end: int
    binding: Optional[ExportBinding] = None
    value: Optional[Node] = None
    members: List[Tuple[Node, ExportBinding]] = field(default_factory=list)
    name: str = ""


@dataclass
class ScriptUnit:
    """One parsed script fragment of a document."""
    document: Document
    fragment: ScriptFragment
    text: str
    tree: Tree
    editor: SourceEditor
    aliases: Dict[str, MemberPath] = field(default_factory=dict)
    method_namespaces: Dict[Span, MemberPath] = field(default_factory=dict)
    declarations: List[Declaration] = field(default_factory=list)
    claimed: Set[Span] = field(default_factory=set)
    skipped: List[Span] = field(default_factory=list)
    declaring_assignments: Set[Span] = field(default_factory=set)

    @classmethod
    def from_text(cls, document: Document, fragment: ScriptFragment, text: str) -> "ScriptUnit":
        tree = parse_javascript(text)
        if tree.root_node.has_error:
            logger.debug(f"{document.url}: script #{fragment.order} has syntax errors")
        fragment.tree = tree
        return cls(
            document=document,
            fragment=fragment,
            text=text,
            tree=tree,
            editor=SourceEditor(text.encode("utf-8")),
        )

    @property
    def source(self) -> bytes:
        return self.editor.source

    @property
    def url(self) -> str:
        return self.document.url

    def declared_names(self) -> Set[str]:
        return declared_names(self.tree, self.source)

    def skip(self, start: int, end: int) -> None:
        """Exclude a span from reference rewriting."""
        self.skipped.append((start, end))

    def is_skipped(self, node: Node) -> bool:
        if span(node) in self.claimed:
            return True
        return any(s <= node.start_byte and node.end_byte <= e for s, e in self.skipped)

    def render(self) -> str:
        return self.editor.render()


# --- Scope queries ---


def this_owner(node: Node) -> Optional[Node]:
    """The function or class body that decides what `this` means at `node`."""
    current = node.parent
    while current is not None:
        if current.type in PLAIN_FUNCTION_TYPES or current.type == "class_body":
            return current
        current = current.parent
    return None


def is_top_level(node: Node) -> bool:
    """True when no function (arrows included) or class encloses `node`."""
    current = node.parent
    while current is not None:
        if current.type in FUNCTION_TYPES or current.type == "class_body":
            return False
        current = current.parent
    return True


def this_namespace(unit: ScriptUnit, node: Node) -> Optional[MemberPath]:
    """Namespace that `this` stands for at `node`, if it is a namespace method."""
    owner = this_owner(node)
    if owner is None:
        return None
    return unit.method_namespaces.get(span(owner))


DECLARATION_NAME_FIELDS = {
    "variable_declarator": "name",
    "function_declaration": "name",
    "generator_function_declaration": "name",
    "class_declaration": "name",
    "function_expression": "name",
    "function": "name",
    "class": "name",
}


def is_declaration_name(node: Node) -> bool:
    """True for identifiers that introduce a binding instead of reading one."""
    parent = node.parent
    if parent is None:
        return False
    field_name = DECLARATION_NAME_FIELDS.get(parent.type)
    if field_name is not None and parent.child_by_field_name(field_name) == node:
        return True
    if parent.type in ("formal_parameters", "catch_clause", "import_specifier",
                       "namespace_import", "import_clause", "export_specifier",
                       "labeled_statement", "break_statement", "continue_statement"):
        return True
    if parent.type == "arrow_function" and parent.child_by_field_name("parameter") == node:
        return True
    if parent.type == "assignment_pattern" and parent.child_by_field_name("left") == node:
        return True
    if parent.type in ("array_pattern", "object_pattern", "rest_pattern"):
        return True
    return False

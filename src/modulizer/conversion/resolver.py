"""
Reference Resolver.

Rewrites every read of a namespace member in a script to the local binding
that replaces it: a declaration of the same module, or a name imported
from the module that declares it.

For each maximal member chain (`Root.a.b.c`) the resolver looks at:
- the longest prefix that is an export binding (rewritten to its local name)
- the longest prefix that is a namespace (a whole namespace becomes a
  module namespace import)
- the longest prefix that is reference-excluded (rewritten to `undefined`)

Writes to another module's binding become calls to its setter when one
exists; otherwise they are left alone and reported.
"""

import logging
from typing import Dict, List, Optional, Set

from tree_sitter import Node

from ..core.errors import UnresolvedReferenceWarning, UnsupportedPatternWarning
from ..core.graph import DocumentGraph
from ..core.types import BindingKind, Diagnostic, Document, ExportBinding
from ..parsing.javascript import (
    GLOBAL_OBJECT,
    chain_parts,
    chain_prefix_node,
    chain_root,
    is_maximal_chain,
    is_pure_chain,
    unwrap_parens,
    window_offset,
)
from .registry import NamespaceRegistry
from .scope import ScriptUnit, is_declaration_name, is_top_level, span, this_namespace
from .synthesizer import ImportSynthesizer

logger = logging.getLogger(__name__)

WRITE_TYPES = {"assignment_expression", "augmented_assignment_expression", "update_expression"}

OWNER_DOCUMENT = ("document", "currentScript", "ownerDocument")


class ReferenceResolver:
    """Rewrites namespace references of one script at a time."""

    def __init__(self, registry: NamespaceRegistry, graph: DocumentGraph,
                 documents: Dict[str, Document]):
        self.registry = registry
        self.graph = graph
        self.documents = documents

    def resolve(self, unit: ScriptUnit, imports: ImportSynthesizer) -> List[Diagnostic]:
        """Add reference rewrites to the unit's editor."""
        diagnostics: List[Diagnostic] = []
        reported: Set[str] = set()
        handled: Set[tuple] = set()

        stack: List[Node] = [unit.tree.root_node]
        while stack:
            node = stack.pop()
            if span(node) in handled or (node.parent is not None and unit.is_skipped(node)):
                continue
            if node.type in WRITE_TYPES:
                self._resolve_write(unit, node, imports, handled, diagnostics)
            if node.type in ("identifier", "this", "member_expression") and is_maximal_chain(node):
                if not is_declaration_name(node):
                    self._resolve_chain(unit, node, imports, diagnostics, reported)
                    continue
            stack.extend(reversed(node.children))
        return diagnostics

    # --- Names ---

    def name_for(self, unit: ScriptUnit, binding: ExportBinding,
                 imports: ImportSynthesizer) -> Optional[str]:
        """
        Identifier that refers to `binding` inside `unit`, requesting an
        import when needed. None when the binding cannot be referenced.
        """
        while (binding.kind == BindingKind.REEXPORT and binding.target is not None
               and binding.document == unit.url):
            binding = binding.target
        if binding.document == unit.url:
            return binding.local_name
        if self._is_maintained(binding.document):
            return None
        if self.graph.is_degraded(unit.url, binding.document):
            return None
        return imports.request(binding)

    def _is_maintained(self, url: str) -> bool:
        document = self.documents.get(url)
        return document is not None and document.maintained

    # --- Writes ---

    def _resolve_write(self, unit: ScriptUnit, node: Node, imports: ImportSynthesizer,
                       handled: Set[tuple], diagnostics: List[Diagnostic]) -> None:
        field_name = "argument" if node.type == "update_expression" else "left"
        target = unwrap_parens(node.child_by_field_name(field_name))
        if target is None or not is_pure_chain(target) or span(target) in unit.claimed:
            return
        path = self.registry.resolve_target(unit, target)
        binding = self.registry.get_binding(path) if path else None
        if binding is None or binding.document == unit.url:
            return
        if self.graph.is_degraded(unit.url, binding.document):
            handled.add(span(target))
            return

        setter = binding.setter
        if node.type == "assignment_expression" and setter is not None:
            setter_name = self.name_for(unit, setter, imports)
            if setter_name is not None:
                right = node.child_by_field_name("right")
                unit.editor.replace(node.start_byte, right.start_byte, f"{setter_name}(")
                unit.editor.insert(right.end_byte, ")")
                handled.add(span(target))
                return

        handled.add(span(target))
        diagnostics.append(UnsupportedPatternWarning(
            f"Cannot rewrite write to {binding.dotted} exported by {binding.document}",
            unit.url,
        ).to_diagnostic())

    # --- Reads ---

    def _resolve_chain(self, unit: ScriptUnit, node: Node, imports: ImportSynthesizer,
                       diagnostics: List[Diagnostic], reported: Set[str]) -> None:
        source = unit.source
        parts = chain_parts(node, source)

        if chain_root(node).type == "this":
            self._resolve_this(unit, node, parts, imports)
            return

        offset = window_offset(node, source)
        if tuple(parts[offset:offset + 3]) == OWNER_DOCUMENT:
            unit.editor.replace_node(chain_prefix_node(node, offset + 3), f"{GLOBAL_OBJECT}.document")
            return

        path = self.registry.resolve_path(unit, node)
        if path is None:
            return
        # Raw chain segments consumed per path segment differ when the root
        # is a local alias of a longer namespace path
        shift = offset
        if offset == 0 and parts[0] in unit.aliases:
            shift = 1 - len(unit.aliases[parts[0]])

        length, binding = self.registry.longest_binding(path)
        excluded = self.registry.longest_exclude(path)
        namespace = self.registry.longest_namespace(path)

        if excluded and excluded >= length:
            unit.editor.replace_node(chain_prefix_node(node, excluded + shift), "undefined")
            return

        if length and length >= namespace:
            raw = length + shift
            name = self.name_for(unit, binding, imports)
            if name is None or raw < 1:
                self._report_unreachable(unit, binding, diagnostics, reported)
                return
            unit.editor.replace_node(chain_prefix_node(node, raw), name)
            return

        if namespace and namespace == len(path):
            ns = self.registry.namespaces[path]
            if ns.document is None or ns.document == unit.url:
                return
            if self._is_maintained(ns.document) or self.graph.is_degraded(unit.url, ns.document):
                return
            raw = namespace + shift
            if raw >= 1:
                unit.editor.replace_node(chain_prefix_node(node, raw), imports.request_namespace(ns.document))
            return

        if namespace > length and len(path) > namespace:
            dotted = ".".join(path[:namespace + 1])
            if dotted not in reported:
                reported.add(dotted)
                diagnostics.append(UnresolvedReferenceWarning(
                    f"Could not resolve reference {dotted}", unit.url,
                ).to_diagnostic())

    def _resolve_this(self, unit: ScriptUnit, node: Node, parts: List[str],
                      imports: ImportSynthesizer) -> None:
        root = chain_root(node)
        if is_top_level(root):
            unit.editor.replace_node(root, GLOBAL_OBJECT)
            return
        namespace = this_namespace(unit, root)
        if namespace is None or len(parts) < 2:
            return
        # Members of a flattened namespace are module-level names
        binding = self.registry.get_binding(namespace + (parts[1],))
        name = parts[1] if binding is None else self.name_for(unit, binding, imports)
        if name is not None:
            unit.editor.replace_node(chain_prefix_node(node, 2), name)

    def _report_unreachable(self, unit: ScriptUnit, binding: ExportBinding,
                            diagnostics: List[Diagnostic], reported: Set[str]) -> None:
        if not self._is_maintained(binding.document) or binding.dotted in reported:
            return
        reported.add(binding.dotted)
        diagnostics.append(UnresolvedReferenceWarning(
            f"{binding.dotted} is declared in {binding.document}, which is not "
            f"converted to a module",
            unit.url,
        ).to_diagnostic())

    def resolve_node(self, unit: ScriptUnit, node: Node,
                     imports: ImportSynthesizer) -> List[Diagnostic]:
        """Rewrite a single chain ahead of the full walk."""
        diagnostics: List[Diagnostic] = []
        if is_maximal_chain(node) and not unit.is_skipped(node):
            self._resolve_chain(unit, node, imports, diagnostics, set())
        return diagnostics

"""
Namespace Registry.

Static, whole-program symbol table of namespace members. Populated in two
phases before any rewriting happens:

1. Declarations (`scan`): per document in dependency order, top-level
   statements that create namespaces or namespace members become
   `Namespace` / `ExportBinding` entries, and the statements are scheduled
   for rendering as exports.
2. Writes (`tally_writes`): every assignment, compound assignment or
   update anywhere in the program that targets a known binding increments
   its `assignment_count`. Bindings assigned more than once are exported
   with `let`.

Recognized declaration forms:
- `Root.member = value`
- `const Local = {...}; Root.member = Local;` (object expanded into members)
- `/** @namespace */ Root.member = {...}` (object expanded into members)
- `var NS = NS || {}`, `window.NS = window.NS || {}`, `A.B = A.B || {}`
"""

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from .. import config
from ..core.errors import (
    ConflictingExportError,
    ConflictingExportWarning,
    UnsupportedPatternWarning,
)
from ..core.graph import DocumentGraph
from ..core.types import (
    BindingKind,
    ConversionSettings,
    Diagnostic,
    ExportBinding,
    MemberPath,
    Namespace,
)
from ..parsing.base import node_text, walk
from ..parsing.javascript import (
    CLASS_TYPES,
    DECLARATION_TYPES,
    FUNCTION_VALUE_TYPES,
    body_statements,
    chain_parts,
    chain_root,
    function_params,
    get_jsdoc,
    get_member_path,
    has_jsdoc_tag,
    is_pure_chain,
    object_members,
    property_key,
    statement_expression,
    top_level_statements,
    unwrap_parens,
    window_offset,
)
from ..urls import is_internal_url
from .scope import Declaration, ScriptUnit, span, this_namespace

logger = logging.getLogger(__name__)

FUNCTION_LIKE = FUNCTION_VALUE_TYPES | {"arrow_function", "generator_function"}

# Identifiers that cannot appear in an `export { x as y }` list
NON_BINDING_IDENTIFIERS = {"undefined", "NaN", "Infinity"}


def _parse_path(dotted: str) -> MemberPath:
    return tuple(part for part in dotted.split(".") if part)


class NamespaceRegistry:
    """Whole-graph table of namespaces and their export bindings."""

    def __init__(
        self,
        settings: ConversionSettings,
        graph: DocumentGraph,
        is_internal: Callable[[str], bool] = is_internal_url,
    ):
        self.settings = settings
        self.graph = graph
        self.is_internal = is_internal
        self.namespaces: Dict[MemberPath, Namespace] = {}
        self.bindings: Dict[MemberPath, ExportBinding] = {}
        self.excludes: Set[MemberPath] = {_parse_path(p) for p in settings.reference_excludes}
        self.export_aliases: Dict[MemberPath, MemberPath] = {
            _parse_path(k): _parse_path(v) for k, v in config.EXPORT_ALIASES.items()
        }
        self.diagnostics: List[Diagnostic] = []
        self._functions: Dict[MemberPath, Tuple[ScriptUnit, Node]] = {}

        for root in sorted(settings.namespaces):
            self.namespaces[(root,)] = Namespace(path=(root,))

    # --- Queries ---

    def is_namespace(self, path: MemberPath) -> bool:
        return path in self.namespaces

    def is_excluded(self, path: MemberPath) -> bool:
        return path in self.excludes

    def get_binding(self, path: MemberPath) -> Optional[ExportBinding]:
        return self.bindings.get(path)

    def longest_binding(self, path: MemberPath) -> Tuple[int, Optional[ExportBinding]]:
        for length in range(len(path), 0, -1):
            binding = self.bindings.get(path[:length])
            if binding is not None:
                return length, binding
        return 0, None

    def longest_namespace(self, path: MemberPath) -> int:
        for length in range(len(path), 0, -1):
            if path[:length] in self.namespaces:
                return length
        return 0

    def longest_exclude(self, path: MemberPath) -> int:
        for length in range(len(path), 0, -1):
            if path[:length] in self.excludes:
                return length
        return 0

    def exports_of(self, url: str) -> List[ExportBinding]:
        """Bindings declared by a document, in declaration order."""
        return [b for b in self.bindings.values() if b.document == url]

    def resolve_path(self, unit: ScriptUnit, node: Node) -> Optional[MemberPath]:
        """Namespace path of a pure chain, following the script's local aliases."""
        path = get_member_path(node, unit.source)
        if path is None:
            return None
        if window_offset(node, unit.source) == 0 and path[0] in unit.aliases:
            return unit.aliases[path[0]] + path[1:]
        return path

    def resolve_target(self, unit: ScriptUnit, node: Optional[Node]) -> Optional[MemberPath]:
        """Like `resolve_path`, also mapping `this.x` inside namespace methods."""
        node = unwrap_parens(node)
        if node is None or not is_pure_chain(node):
            return None
        if chain_root(node).type == "this":
            parts = chain_parts(node, unit.source)
            namespace = this_namespace(unit, node)
            if namespace is None or len(parts) < 2:
                return None
            return namespace + tuple(parts[1:])
        return self.resolve_path(unit, node)

    # --- Phase 1: declarations ---

    def scan(self, units: List[ScriptUnit]) -> None:
        """Record the declarations of one document's scripts."""
        for unit in units:
            self._scan_unit(unit)

    def _scan_unit(self, unit: ScriptUnit) -> None:
        source = unit.source
        statements = top_level_statements(unit.tree)

        local_objects: Dict[str, Node] = {}
        for statement in statements:
            declarator = _single_declarator(statement)
            if declarator is None:
                continue
            name = declarator.child_by_field_name("name")
            value = unwrap_parens(declarator.child_by_field_name("value"))
            if name.type == "identifier" and value is not None and value.type == "object":
                local_objects[node_text(name, source)] = statement

        # Local objects later assigned wholesale into a namespace
        wholesale: Dict[str, Tuple[MemberPath, Node]] = {}
        for statement in statements:
            expr = statement_expression(statement)
            if expr is None or expr.type != "assignment_expression":
                continue
            right = unwrap_parens(expr.child_by_field_name("right"))
            left = unwrap_parens(expr.child_by_field_name("left"))
            if right is None or right.type != "identifier":
                continue
            name = node_text(right, source)
            path = get_member_path(left, source)
            if name in local_objects and path and len(path) > 1 and name not in wholesale:
                wholesale[name] = (path, statement)

        for statement in statements:
            if statement.type in DECLARATION_TYPES:
                self._scan_variable(unit, statement, wholesale)
            elif statement.type == "expression_statement":
                expr = statement_expression(statement)
                if expr is not None and expr.type == "assignment_expression":
                    self._scan_assignment(unit, statement, expr)

    def _scan_variable(self, unit: ScriptUnit, statement: Node,
                       wholesale: Dict[str, Tuple[MemberPath, Node]]) -> None:
        source = unit.source
        declarator = _single_declarator(statement)
        if declarator is None:
            return
        name_node = declarator.child_by_field_name("name")
        value = unwrap_parens(declarator.child_by_field_name("value"))
        if name_node.type != "identifier" or value is None:
            return
        name = node_text(name_node, source)

        if self._is_self_init(unit, value, (name,)):
            self._declare_namespace((name,), unit.url)
            self._remove(unit, statement)
            return
        if value.type != "object":
            return

        target = wholesale.get(name)
        if target is not None and self.is_namespace(target[0][:-1]):
            path, assignment = target
            unit.aliases[name] = path
            self._expand(unit, statement, value, path, alias=name)
            self._remove(unit, assignment)
        elif has_jsdoc_tag(statement, source, config.NAMESPACE_JSDOC_TAG):
            self._expand(unit, statement, value, (name,), alias=name)

    def _scan_assignment(self, unit: ScriptUnit, statement: Node, expr: Node) -> None:
        source = unit.source
        left = unwrap_parens(expr.child_by_field_name("left"))
        right = unwrap_parens(expr.child_by_field_name("right"))
        if left is None or right is None or not is_pure_chain(left):
            return
        if chain_root(left).type == "this":
            return
        path = self.resolve_path(unit, left)
        if path is None:
            return
        if right.type == "identifier" and unit.aliases.get(node_text(right, source)) == path:
            # Wholesale assignment of an already expanded local object
            return

        if self._is_self_init(unit, right, path):
            if len(path) == 1 or self.is_namespace(path[:-1]):
                self._declare_namespace(path, unit.url)
                self._remove(unit, statement)
            return

        path = self.export_aliases.get(path, path)
        if self.is_excluded(path):
            if len(path) > 1:
                self._claim(unit, left, expr)
                unit.declarations.append(Declaration(
                    "excluded", _statement_start(statement, source), statement.end_byte,
                    value=right, name=path[-1],
                ))
            return

        if len(path) == 1:
            # `window.Foo = function() {}` makes the root itself importable
            if right.type in FUNCTION_LIKE or right.type in CLASS_TYPES:
                binding = self._add_binding(unit, path, _kind_of(right))
                if binding is not None:
                    self._assign(unit, statement, expr, left, right, binding)
            return

        parent = path[:-1]
        if not self.is_namespace(parent):
            return

        existing = self.bindings.get(path)
        if existing is not None:
            self._redeclare(unit, statement, expr, left, right, path, existing)
            return

        tagged = has_jsdoc_tag(statement, source, config.NAMESPACE_JSDOC_TAG)
        if tagged and right.type == "object":
            self._claim(unit, left, expr)
            self._expand(unit, statement, right, path)
            return

        binding = self._add_binding(unit, path, _kind_of(right))
        if binding is None:
            return
        if tagged and right.type in FUNCTION_LIKE:
            self._declare_namespace(path, unit.url)
        self._assign(unit, statement, expr, left, right, binding)

    def _redeclare(self, unit: ScriptUnit, statement: Node, expr: Node, left: Node,
                   right: Node, path: MemberPath, existing: ExportBinding) -> None:
        """Assignment to a path that already has a binding."""
        related = (
            existing.document == unit.url
            or existing.document in self.graph.get_descendants(unit.url)
        )
        if not related:
            self._conflict(unit, path, existing)
            return
        if existing.document == unit.url:
            return
        if is_pure_chain(right) and self.resolve_path(unit, right) == path:
            # `Root.x = Root.x;` re-exports an included document's binding
            binding = ExportBinding(
                path=path, document=unit.url, kind=BindingKind.REEXPORT, target=existing,
            )
            self._register(binding)
            self._claim(unit, left, expr)
            unit.declarations.append(Declaration(
                "reexport", _statement_start(statement, unit.source), statement.end_byte,
                binding=binding, value=right,
            ))

    def _assign(self, unit: ScriptUnit, statement: Node, expr: Node, left: Node,
                right: Node, binding: ExportBinding) -> None:
        """Schedule `Root.x = value` to render as an export of `binding`."""
        source = unit.source
        self._claim(unit, left, expr)
        style = "assign"
        if right.type == "identifier" and node_text(right, source) not in NON_BINDING_IDENTIFIERS:
            binding.local_name = node_text(right, source)
            style = "reference"
        elif is_pure_chain(right):
            target_path = self.resolve_path(unit, right)
            target = self.bindings.get(target_path) if target_path else None
            if target is not None and target.document != unit.url:
                binding.kind = BindingKind.REEXPORT
                binding.target = target
                style = "reexport"

        if right.type in FUNCTION_VALUE_TYPES and binding.namespace:
            unit.method_namespaces[span(right)] = binding.namespace
        if right.type in FUNCTION_LIKE:
            self._functions[binding.path] = (unit, right)
        unit.declarations.append(Declaration(
            style, _statement_start(statement, source), statement.end_byte, binding=binding, value=right,
        ))

    def _expand(self, unit: ScriptUnit, statement: Node, obj: Node, path: MemberPath,
                alias: Optional[str] = None) -> None:
        """Declare an object literal's members as individual bindings."""
        source = unit.source
        namespace = self._declare_namespace(path, unit.url, alias)
        members: List[Tuple[Node, ExportBinding]] = []
        for member in object_members(obj):
            key = property_key(member, source)
            if key is None or _is_accessor(member):
                self._warn(unit, f"Cannot export member `{node_text(member, source)[:40]}` "
                                 f"of namespace {namespace.dotted}")
                continue
            value = member.child_by_field_name("value") if member.type == "pair" else None
            value = unwrap_parens(value)
            kind = BindingKind.FUNCTION if member.type == "method_definition" else _kind_of(value)
            binding = self._add_binding(unit, path + (key,), kind)
            if binding is None:
                continue
            if value is not None and value.type == "identifier":
                binding.local_name = node_text(value, source)

            function = member if member.type == "method_definition" else value
            if function is not None and function.type in FUNCTION_VALUE_TYPES | {"method_definition"}:
                unit.method_namespaces[span(function)] = path
            if function is not None and function.type in FUNCTION_LIKE | {"method_definition"}:
                self._functions[binding.path] = (unit, function)
            members.append((member, binding))

        start = _statement_start(statement, source)
        unit.declarations.append(Declaration(
            "expand", start, statement.end_byte, value=obj, members=members,
        ))
        expr = statement_expression(statement)
        if expr is not None:
            unit.declaring_assignments.add(span(expr))

    def _declare_namespace(self, path: MemberPath, url: str,
                           alias: Optional[str] = None) -> Namespace:
        namespace = self.namespaces.get(path)
        if namespace is None:
            namespace = Namespace(path=path)
            self.namespaces[path] = namespace
            logger.debug(f"Namespace {namespace.dotted} declared in {url}")
        # Root namespaces stay globals; only nested ones can be imported whole
        if len(path) > 1 and namespace.document is None:
            namespace.document = url
        if alias and namespace.local_alias is None:
            namespace.local_alias = alias
        return namespace

    def _add_binding(self, unit: ScriptUnit, path: MemberPath,
                     kind: BindingKind) -> Optional[ExportBinding]:
        existing = self.bindings.get(path)
        if existing is not None:
            if existing.document != unit.url and existing.document not in self.graph.get_descendants(unit.url):
                self._conflict(unit, path, existing)
                return None
            self._warn(unit, f"{'.'.join(path)} is declared more than once; "
                             f"keeping the first declaration")
            return None
        binding = ExportBinding(path=path, document=unit.url, kind=kind)
        if path in self.export_aliases.values():
            binding.local_name = path[-1]
        self._register(binding)
        return binding

    def _register(self, binding: ExportBinding) -> None:
        self.bindings[binding.path] = binding
        namespace = self.namespaces.get(binding.namespace)
        if namespace is not None:
            namespace.members[binding.name] = binding
        logger.debug(f"Export {binding.dotted} ({binding.kind}) in {binding.document}")

    def _claim(self, unit: ScriptUnit, left: Node, expr: Node) -> None:
        unit.claimed.add(span(left))
        unit.declaring_assignments.add(span(expr))

    def _remove(self, unit: ScriptUnit, statement: Node) -> None:
        start = _statement_start(statement, unit.source)
        unit.declarations.append(Declaration("remove", start, statement.end_byte))
        unit.skip(start, statement.end_byte)

    def _is_self_init(self, unit: ScriptUnit, value: Node, path: MemberPath) -> bool:
        """`X || {}` where X is `path` itself."""
        value = unwrap_parens(value)
        if value is None or value.type != "binary_expression":
            return False
        operator = value.child_by_field_name("operator")
        if operator is None or node_text(operator, unit.source) != "||":
            return False
        left = unwrap_parens(value.child_by_field_name("left"))
        right = unwrap_parens(value.child_by_field_name("right"))
        if right is None or right.type != "object" or object_members(right):
            return False
        return left is not None and is_pure_chain(left) and self.resolve_path(unit, left) == path

    def _conflict(self, unit: ScriptUnit, path: MemberPath, existing: ExportBinding) -> None:
        """
        Two documents that do not include each other declare `path`.

        Fatal when either declaration belongs to the package being
        converted. Between two dependency documents the first declaration
        is kept and the clash is reported as a warning.
        """
        error = ConflictingExportError(".".join(path), existing.document, unit.url)
        if self.is_internal(existing.document) or self.is_internal(unit.url):
            raise error
        logger.debug(f"Conflict between dependencies: {error}")
        self.diagnostics.append(ConflictingExportWarning(
            f"{error}; keeping the declaration in {existing.document}", unit.url,
        ).to_diagnostic())

    def _warn(self, unit: ScriptUnit, message: str) -> None:
        self.diagnostics.append(UnsupportedPatternWarning(message, unit.url).to_diagnostic())

    # --- Phase 2: writes ---

    def tally_writes(self, unit: ScriptUnit) -> None:
        """Count every write to a known binding made by this script."""
        for node in walk(unit.tree.root_node):
            if node.type in ("assignment_expression", "augmented_assignment_expression"):
                target = node.child_by_field_name("left")
            elif node.type == "update_expression":
                target = node.child_by_field_name("argument")
            else:
                continue
            if span(node) in unit.declaring_assignments:
                continue
            path = self.resolve_target(unit, target)
            binding = self.bindings.get(path) if path else None
            if binding is not None:
                binding.assignment_count += 1

    def detect_setters(self) -> None:
        """
        Mark one-parameter functions whose whole body is `Target = param`
        as the setter of Target.
        """
        for path, (unit, function) in self._functions.items():
            binding = self.bindings.get(path)
            params = function_params(function, unit.source)
            if binding is None or len(params) != 1:
                continue
            statements = body_statements(function)
            if len(statements) != 1:
                continue
            expr = statement_expression(statements[0])
            if expr is None or expr.type != "assignment_expression":
                continue
            right = unwrap_parens(expr.child_by_field_name("right"))
            if right is None or right.type != "identifier" or node_text(right, unit.source) != params[0]:
                continue
            target_path = self.resolve_target(unit, expr.child_by_field_name("left"))
            target = self.bindings.get(target_path) if target_path else None
            if target is not None and target is not binding and target.document == binding.document:
                target.setter = binding
                logger.debug(f"{binding.dotted} is the setter of {target.dotted}")


def _single_declarator(statement: Node) -> Optional[Node]:
    if statement.type not in DECLARATION_TYPES:
        return None
    declarators = [c for c in statement.named_children if c.type == "variable_declarator"]
    return declarators[0] if len(declarators) == 1 else None


def _statement_start(statement: Node, source: bytes) -> int:
    """Start of a statement including its JSDoc comment."""
    comment = get_jsdoc(statement, source)
    return comment.start_byte if comment is not None else statement.start_byte


def _kind_of(value: Optional[Node]) -> BindingKind:
    if value is None:
        return BindingKind.VALUE
    if value.type in FUNCTION_LIKE:
        return BindingKind.FUNCTION
    if value.type in CLASS_TYPES:
        return BindingKind.CLASS
    return BindingKind.VALUE


def _is_accessor(member: Node) -> bool:
    if member.type != "method_definition":
        return False
    return any(child.type in ("get", "set") for child in member.children)

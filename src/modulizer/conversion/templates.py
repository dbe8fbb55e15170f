"""
Structural/Template Relocator.

Moves `<dom-module>` templates into the JavaScript element definitions
that own them:

    class XFoo extends Polymer.Element {          Polymer({
      static get is() { return 'x-foo'; }           is: 'x-foo',
    }                                              });

become

    class XFoo extends Element {                  Polymer({
      static get template() {                       _template: html`...`,
        return html`...`;
      }                                             is: 'x-foo',
                                                  });
      static get is() { return 'x-foo'; }
    }

Element definitions are recognized in three forms:
- a class with `static get is() { return 'x-foo'; }`
- a class passed to `customElements.define('x-foo', ...)`
- a `Polymer({is: 'x-foo'})` factory call

Markup that has no owner is collected into a hidden container element.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from .. import config
from ..core.types import ConversionSettings, TemplateFragment
from ..parsing.base import indentation_at, node_text, walk
from ..parsing.javascript import (
    CLASS_TYPES,
    body_statements,
    get_member_path,
    has_jsdoc_tag,
    object_members,
    property_key,
    string_value,
    unwrap_parens,
)
from .registry import NamespaceRegistry
from .resolver import ReferenceResolver
from .scope import ScriptUnit, span
from .synthesizer import ImportSynthesizer

logger = logging.getLogger(__name__)

ELEMENT_FACTORY = ("Polymer",)
DEFINE_PATH = ("customElements", "define")


@dataclass
class ElementDefinition:
    """A custom element definition found in a script."""
    unit: ScriptUnit
    body: Node
    factory: bool
    name: Optional[str] = None
    tagged: bool = False
    callee: Optional[Node] = None


def escape_template(text: str) -> str:
    """Make `text` safe to embed in a JavaScript template literal."""
    return (
        text.replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("$", "\\$")
        .replace("</script", "<\\/script")
    )


def template_content(fragment: TemplateFragment) -> str:
    content = fragment.content.rstrip()
    if not content.startswith("\n"):
        content = "\n" + content
    return escape_template(content + "\n")


def find_definitions(unit: ScriptUnit) -> List[ElementDefinition]:
    """Element definitions of a script in source order."""
    source = unit.source
    classes: Dict[Tuple[int, int], ElementDefinition] = {}
    declared: Dict[str, Node] = {}
    factories: List[ElementDefinition] = []

    for node in walk(unit.tree.root_node):
        if node.type in CLASS_TYPES:
            body = node.child_by_field_name("body")
            if body is None:
                continue
            definition = ElementDefinition(
                unit=unit, body=body, factory=False,
                name=_static_is(body, source),
                tagged=has_jsdoc_tag(node, source, *config.CUSTOM_ELEMENT_JSDOC_TAGS),
            )
            classes[span(node)] = definition
            name = node.child_by_field_name("name")
            if node.type == "class_declaration" and name is not None:
                declared[node_text(name, source)] = node
        elif node.type == "call_expression":
            callee = unwrap_parens(node.child_by_field_name("function"))
            args = node.child_by_field_name("arguments")
            arg_nodes = [a for a in args.named_children if a.type != "comment"] if args else []
            path = get_member_path(callee, source) if callee is not None else None
            if path == ELEMENT_FACTORY and arg_nodes and unwrap_parens(arg_nodes[0]).type == "object":
                obj = unwrap_parens(arg_nodes[0])
                factories.append(ElementDefinition(
                    unit=unit, body=obj, factory=True,
                    name=_factory_is(obj, source), callee=callee,
                ))
            elif path == DEFINE_PATH and len(arg_nodes) == 2:
                _mark_defined(arg_nodes, source, classes, declared)

    # customElements.define may come after a class declared by name
    for node in walk(unit.tree.root_node):
        if node.type != "call_expression":
            continue
        callee = unwrap_parens(node.child_by_field_name("function"))
        if callee is None or get_member_path(callee, source) != DEFINE_PATH:
            continue
        args = node.child_by_field_name("arguments")
        arg_nodes = [a for a in args.named_children if a.type != "comment"] if args else []
        if len(arg_nodes) == 2:
            _mark_defined(arg_nodes, source, classes, declared)

    definitions = [d for d in classes.values() if d.name or d.tagged] + factories
    definitions.sort(key=lambda d: d.body.start_byte)
    return definitions


def _mark_defined(args: List[Node], source: bytes,
                  classes: Dict[Tuple[int, int], ElementDefinition],
                  declared: Dict[str, Node]) -> None:
    name = string_value(args[0], source)
    target = unwrap_parens(args[1])
    if name is None or target is None:
        return
    if target.type == "identifier":
        target = declared.get(node_text(target, source))
    if target is not None and span(target) in classes:
        definition = classes[span(target)]
        if definition.name is None:
            definition.name = name


def _static_is(body: Node, source: bytes) -> Optional[str]:
    """Element name returned by `static get is()`."""
    for member in body.named_children:
        if member.type != "method_definition":
            continue
        modifiers = {child.type for child in member.children}
        if "static" not in modifiers or "get" not in modifiers:
            continue
        if property_key(member, source) != "is":
            continue
        statements = body_statements(member)
        if len(statements) == 1 and statements[0].type == "return_statement":
            returned = [c for c in statements[0].named_children if c.type != "comment"]
            if returned:
                return string_value(returned[0], source)
    return None


def _factory_is(obj: Node, source: bytes) -> Optional[str]:
    for member in object_members(obj):
        if member.type == "pair" and property_key(member, source) == "is":
            return string_value(member.child_by_field_name("value"), source)
    return None


class TemplateRelocator:
    """Inlines templates into element definitions of one document."""

    def __init__(self, settings: ConversionSettings, registry: NamespaceRegistry,
                 resolver: ReferenceResolver):
        self.settings = settings
        self.registry = registry
        self.resolver = resolver

    def relocate(self, units: List[ScriptUnit], templates: List[TemplateFragment],
                 imports_for) -> List[TemplateFragment]:
        """
        Insert each template into its owning definition and return the
        templates that found no owner. `imports_for(unit)` gives the import
        table a unit's references go to.
        """
        definitions = [d for unit in units for d in find_definitions(unit)]
        claimed: Set[int] = set()
        assigned: Dict[int, TemplateFragment] = {}
        unclaimed: List[TemplateFragment] = []

        for template in templates:
            owner = None
            for i, definition in enumerate(definitions):
                if i in claimed or definition.name != template.element_id:
                    continue
                if definition.unit.fragment.order < template.order:
                    continue
                owner = i
                break
            if owner is None:
                unclaimed.append(template)
                continue
            claimed.add(owner)
            assigned[owner] = template

        for i, definition in enumerate(definitions):
            template = assigned.get(i)
            if template is None and not self.settings.add_import_path:
                continue
            self._insert(definition, template, imports_for(definition.unit))
        return unclaimed

    def _tag(self, unit: ScriptUnit, imports: ImportSynthesizer) -> str:
        binding = self.registry.get_binding(self.settings.html_tag)
        if binding is not None:
            name = self.resolver.name_for(unit, binding, imports)
            if name is not None:
                return name
        return self.settings.html_tag_path

    def _insert(self, definition: ElementDefinition, template: Optional[TemplateFragment],
                imports: ImportSynthesizer) -> None:
        unit = definition.unit
        source = unit.source
        body = definition.body
        base = indentation_at(source, body.start_byte)
        mi = base + "  "

        if definition.factory and definition.callee is not None:
            # The factory import comes before the template tag import
            self.resolver.resolve_node(unit, definition.callee, imports)

        pieces: List[str] = []
        if template is not None:
            tag = self._tag(unit, imports)
            content = template_content(template)
            if definition.factory:
                pieces.append(f"\n{mi}_template: {tag}`{content}`,")
            else:
                pieces.append(
                    f"\n{mi}static get template() {{\n{mi}  return {tag}`{content}`;\n{mi}}}"
                )
        if self.settings.add_import_path:
            if definition.factory:
                pieces.append(f"\n{mi}importPath: import.meta.url,")
            else:
                pieces.append(
                    f"\n{mi}static get importPath() {{\n{mi}  return import.meta.url;\n{mi}}}"
                )

        has_members = bool(
            object_members(body) if definition.factory
            else [c for c in body.named_children if c.type != "comment"]
        )
        if definition.factory and not has_members:
            pieces[-1] = pieces[-1].rstrip(",")

        position = body.start_byte + 1
        following = source[position:position + 1]
        if following == b"}":
            trailer = "\n" + base
        elif following == b"\n":
            trailer = "\n" if has_members else ""
        else:
            trailer = "\n" + mi
        unit.editor.insert(position, "".join(pieces) + trailer)
        logger.debug(
            f"{unit.url}: {'template' if template else 'importPath'} added to "
            f"<{definition.name or 'anonymous'}>"
        )


def render_container(markup: List[str]) -> List[str]:
    """Statements that append unowned markup to `document.head`."""
    if not markup:
        return []
    name = config.DOCUMENT_CONTAINER
    content = escape_template("".join(markup))
    return [
        f"const {name} = document.createElement('div');",
        f"{name}.setAttribute('style', 'display: none;');",
        f"{name}.innerHTML = `{content}`;",
        f"document.head.appendChild({name});",
    ]

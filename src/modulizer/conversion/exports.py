"""
Export rendering.

Turns the declarations the registry scheduled on a script into export
statements. Runs after reference rewriting so that the rendered values
already carry their rewritten references.
"""

import logging
from typing import List, Optional

from tree_sitter import Node

from ..core.types import ExportBinding
from ..parsing.base import indentation_at, node_text
from ..parsing.javascript import FUNCTION_VALUE_TYPES, unwrap_parens
from .resolver import ReferenceResolver
from .scope import Declaration, ScriptUnit
from .synthesizer import ImportSynthesizer

logger = logging.getLogger(__name__)


class ExportRenderer:
    """Renders the export declarations of one script."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def render(self, unit: ScriptUnit, imports: ImportSynthesizer) -> None:
        for declaration in unit.declarations:
            if declaration.style == "remove":
                unit.editor.remove_lines(declaration.start, declaration.end)
                continue
            text = self._render(unit, declaration, imports)
            if text is None:
                continue
            if text:
                unit.editor.replace(declaration.start, declaration.end, text)
            else:
                unit.editor.remove_lines(declaration.start, declaration.end)

    def _render(self, unit: ScriptUnit, declaration: Declaration,
                imports: ImportSynthesizer) -> Optional[str]:
        style = declaration.style
        binding = declaration.binding
        value = declaration.value

        if style == "assign":
            # Keep everything from the value on, including a trailing `;`
            keyword = "let" if binding.mutable else "const"
            unit.editor.replace(declaration.start, value.start_byte,
                                f"export {keyword} {binding.name} = ")
            return None
        if style == "reference":
            return export_list(binding.local_name, binding.name)
        if style == "reexport":
            local = self.resolver.name_for(unit, binding.target, imports)
            if local is None:
                local = unit.editor.render(value.start_byte, value.end_byte)
                return f"export const {binding.name} = {local};"
            return export_list(local, binding.name)
        if style == "excluded":
            if value.type == "identifier":
                return export_list(node_text(value, unit.source), declaration.name)
            rendered = unit.editor.render(value.start_byte, value.end_byte)
            return f"export const {declaration.name} = {rendered};"
        if style == "expand":
            return self._expand(unit, declaration)
        raise ValueError(f"Unknown declaration style {style!r}")

    def _expand(self, unit: ScriptUnit, declaration: Declaration) -> str:
        """One export per member of an object-literal namespace."""
        base = indentation_at(unit.source, declaration.start)
        items: List[str] = []
        for member, binding in declaration.members:
            item = self._member(unit, member, binding)
            member_indent = indentation_at(unit.source, member.start_byte)
            items.append(reindent(item, member_indent, base))

        lines: List[str] = []
        for i, item in enumerate(items):
            multiline = "\n" in item
            if multiline and lines and lines[-1] != "":
                lines.append("")
            lines.append(item)
            if multiline and i < len(items) - 1:
                lines.append("")
        return "\n".join(base + line if line and i else line for i, line in enumerate(lines))

    def _member(self, unit: ScriptUnit, member: Node, binding: ExportBinding) -> str:
        editor = unit.editor
        name = binding.name
        keyword = "let" if binding.mutable else "const"

        if member.type == "shorthand_property_identifier":
            return export_list(node_text(member, unit.source), name)
        if member.type == "method_definition":
            return _export_function(unit, member, name)

        value = unwrap_parens(member.child_by_field_name("value"))
        if value.type in FUNCTION_VALUE_TYPES and not binding.mutable:
            return _export_function(unit, value, name)
        if value.type == "identifier" and not editor.has_edits(value.start_byte, value.end_byte):
            return export_list(node_text(value, unit.source), name)
        rendered = editor.render(value.start_byte, value.end_byte)
        return f"export {keyword} {name} = {rendered};"


def export_list(local: str, name: str) -> str:
    if local == name:
        return f"export {{ {name} }};"
    return f"export {{ {local} as {name} }};"


def _export_function(unit: ScriptUnit, function: Node, name: str) -> str:
    """`export function name(params) {...}` from a method or function value."""
    modifiers = {child.type for child in function.children}
    prefix = "async " if "async" in modifiers else ""
    star = "*" if "*" in modifiers or function.type == "generator_function" else ""
    params = function.child_by_field_name("parameters")
    rest = unit.editor.render(params.start_byte, function.end_byte)
    return f"export {prefix}function{star} {name}{rest}"


def reindent(text: str, current: str, target: str) -> str:
    """Shift continuation lines of `text` from `current` to `target` indentation."""
    if current == target or "\n" not in text:
        return text
    first, *rest = text.split("\n")
    shifted = []
    for line in rest:
        if line.startswith(current):
            line = target + line[len(current):]
        shifted.append(line)
    return "\n".join([first] + shifted)

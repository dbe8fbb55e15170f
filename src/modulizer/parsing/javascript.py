"""
JavaScript syntax helpers.

Supported patterns:
- Member paths: `Foo.Bar.Baz`, `window.Foo.Bar` (leading `window` dropped)
- JSDoc lookup for statements (`/** @namespace */ var NS = ...`)
- String literal values (`'x-foo'`, `` `x-foo` `` without substitutions)
- Declared identifiers of a script (variables, functions, classes,
  parameters, catch parameters, imports)

Everything here is purely syntactic; scope-aware analysis lives in
`conversion.scope`.
"""

import logging
import re
from typing import List, Optional, Set, Tuple

from tree_sitter import Node, Tree

from .base import node_text, parse_source, walk

logger = logging.getLogger(__name__)

FUNCTION_TYPES = {
    "function",
    "function_expression",
    "function_declaration",
    "generator_function",
    "generator_function_declaration",
    "method_definition",
    "arrow_function",
}

# Functions that bind their own `this`
PLAIN_FUNCTION_TYPES = FUNCTION_TYPES - {"arrow_function"}

# Function values that can be exported as `export function name(...)`
FUNCTION_VALUE_TYPES = {"function", "function_expression", "generator_function"}

CLASS_TYPES = {"class", "class_declaration"}

DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}

GLOBAL_OBJECT = "window"

_USE_STRICT = re.compile(r"""^\s*(['"])use strict\1\s*;?\s*$""")


def parse_javascript(text: str) -> Tree:
    return parse_source("javascript", text.encode("utf-8"))


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of enclosing parentheses."""
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            return node
        node = inner[0]
    return node


# --- Member chains ---


def is_pure_chain(node: Node) -> bool:
    """True for `a`, `this`, `a.b.c`: identifiers joined by plain `.` access."""
    if node.type in ("identifier", "this"):
        return True
    if node.type != "member_expression":
        return False
    if any(child.type == "optional_chain" for child in node.children):
        return False
    prop = node.child_by_field_name("property")
    obj = node.child_by_field_name("object")
    if prop is None or obj is None or prop.type != "property_identifier":
        return False
    return is_pure_chain(obj)


def is_maximal_chain(node: Node) -> bool:
    """A pure chain that is not the object of a longer pure chain."""
    if not is_pure_chain(node):
        return False
    parent = node.parent
    if parent is None or parent.type != "member_expression":
        return True
    if parent.child_by_field_name("object") != node:
        return True
    return not is_pure_chain(parent)


def chain_parts(node: Node, source: bytes) -> List[str]:
    """Raw segments of a pure chain, including `this` or `window` roots."""
    if node.type in ("identifier", "this"):
        return [node_text(node, source)]
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    return chain_parts(obj, source) + [node_text(prop, source)]


def chain_root(node: Node) -> Node:
    while node.type == "member_expression":
        node = node.child_by_field_name("object")
    return node


def chain_prefix_node(node: Node, length: int) -> Node:
    """The sub-chain of `node` made of its first `length` raw segments."""
    depth = len(_chain_nodes(node))
    current = node
    for _ in range(depth - length):
        current = current.child_by_field_name("object")
    return current


def _chain_nodes(node: Node) -> List[Node]:
    nodes = [node]
    while node.type == "member_expression":
        node = node.child_by_field_name("object")
        nodes.append(node)
    return nodes


def get_member_path(node: Node, source: bytes) -> Optional[Tuple[str, ...]]:
    """
    Dotted path of a pure member chain, e.g. ('Foo', 'Bar', 'Baz').

    A leading `window` is discarded. Returns None for anything that is not
    a pure chain or that is rooted at `this`.
    """
    node = unwrap_parens(node)
    if node is None or not is_pure_chain(node):
        return None
    parts = chain_parts(node, source)
    if parts[0] == "this":
        return None
    if parts[0] == GLOBAL_OBJECT and len(parts) > 1:
        parts = parts[1:]
    return tuple(parts)


def window_offset(node: Node, source: bytes) -> int:
    """1 when a pure chain starts with an explicit `window.` prefix."""
    parts = chain_parts(node, source)
    return 1 if parts[0] == GLOBAL_OBJECT and len(parts) > 1 else 0


# --- Statements ---


def top_level_statements(tree: Tree) -> List[Node]:
    return [c for c in tree.root_node.named_children if c.type != "comment"]


def statement_expression(statement: Node) -> Optional[Node]:
    """The expression of an expression statement, parentheses removed."""
    if statement.type != "expression_statement":
        return None
    for child in statement.named_children:
        if child.type != "comment":
            return unwrap_parens(child)
    return None


def enclosing_statement(node: Node) -> Node:
    """Nearest ancestor (or self) whose parent is a statement list."""
    current = node
    while current.parent is not None and current.parent.type not in (
        "program", "statement_block", "class_body", "switch_case", "switch_default",
    ):
        current = current.parent
    return current


def is_use_strict(statement: Node, source: bytes) -> bool:
    return statement.type == "expression_statement" and bool(
        _USE_STRICT.match(node_text(statement, source))
    )


def function_body(func: Node) -> Optional[Node]:
    return func.child_by_field_name("body")


def function_params(func: Node, source: bytes) -> List[str]:
    """Names of simple identifier parameters; empty list on destructuring."""
    single = func.child_by_field_name("parameter")
    if single is not None:
        return [node_text(single, source)] if single.type == "identifier" else []
    params = func.child_by_field_name("parameters")
    if params is None:
        return []
    names = []
    for child in params.named_children:
        if child.type != "identifier":
            return []
        names.append(node_text(child, source))
    return names


def body_statements(func: Node) -> List[Node]:
    body = function_body(func)
    if body is None or body.type != "statement_block":
        return []
    return [c for c in body.named_children if c.type != "comment"]


def has_direct_return(block: Node) -> bool:
    """True when a `return` belongs to this block's own function."""
    stack = list(block.named_children)
    while stack:
        node = stack.pop()
        if node.type == "return_statement":
            return True
        if node.type in FUNCTION_TYPES or node.type in CLASS_TYPES:
            continue
        stack.extend(node.named_children)
    return False


# --- JSDoc ---


def get_jsdoc(node: Node, source: bytes) -> Optional[Node]:
    """The `/** ... */` comment directly preceding a statement, if any."""
    statement = enclosing_statement(node)
    prev = statement.prev_sibling
    if prev is None or prev.type != "comment":
        return None
    if not node_text(prev, source).startswith("/**"):
        return None
    if source[prev.end_byte:statement.start_byte].strip():
        return None
    return prev


def has_jsdoc_tag(node: Node, source: bytes, *tags: str) -> bool:
    comment = get_jsdoc(node, source)
    if comment is None:
        return False
    text = node_text(comment, source)
    return any(re.search(re.escape(tag) + r"\b", text) for tag in tags)


# --- Literals ---


def string_value(node: Optional[Node], source: bytes) -> Optional[str]:
    """Value of a plain string literal or substitution-free template."""
    node = unwrap_parens(node)
    if node is None:
        return None
    if node.type == "string":
        return node_text(node, source)[1:-1]
    if node.type == "template_string":
        if any(c.type == "template_substitution" for c in node.named_children):
            return None
        return node_text(node, source)[1:-1]
    return None


def object_members(obj: Node) -> List[Node]:
    """Pairs, methods and shorthand properties of an object literal."""
    return [
        c for c in obj.named_children
        if c.type in ("pair", "method_definition", "shorthand_property_identifier")
    ]


def property_key(member: Node, source: bytes) -> Optional[str]:
    """Static key of an object member, or None for computed keys."""
    if member.type == "shorthand_property_identifier":
        return node_text(member, source)
    key = member.child_by_field_name("key") or member.child_by_field_name("name")
    if key is None:
        return None
    if key.type in ("property_identifier", "identifier"):
        return node_text(key, source)
    value = string_value(key, source)
    if value is not None and value.isidentifier():
        return value
    return None


# --- Declarations ---


def declared_names(tree: Tree, source: bytes) -> Set[str]:
    """
    Every identifier the script declares in any scope.

    Used to keep imported local names from shadowing or being shadowed.
    """
    names: Set[str] = set()
    for node in walk(tree.root_node):
        if node.type == "variable_declarator":
            names.update(_pattern_names(node.child_by_field_name("name"), source))
        elif node.type in ("function_declaration", "generator_function_declaration",
                           "class_declaration", "function_expression", "function",
                           "class"):
            name = node.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                names.add(node_text(name, source))
        elif node.type == "formal_parameters":
            for child in node.named_children:
                names.update(_pattern_names(child, source))
        elif node.type == "arrow_function":
            param = node.child_by_field_name("parameter")
            if param is not None:
                names.add(node_text(param, source))
        elif node.type == "catch_clause":
            names.update(_pattern_names(node.child_by_field_name("parameter"), source))
        elif node.type in ("import_specifier", "namespace_import", "import_clause"):
            for child in node.named_children:
                if child.type == "identifier":
                    names.add(node_text(child, source))
    return names


def _pattern_names(node: Optional[Node], source: bytes) -> Set[str]:
    if node is None:
        return set()
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        return {node_text(node, source)}
    found: Set[str] = set()
    for child in node.named_children:
        if node.type == "pair_pattern" and child == node.child_by_field_name("key"):
            continue
        if node.type == "assignment_pattern" and child == node.child_by_field_name("right"):
            continue
        found.update(_pattern_names(child, source))
    return found

"""
Script normalization.

Brings an inline script into the shape the later passes expect: common
indentation removed and top-level encapsulation wrappers unwrapped, so that
namespace assignments sit at the top level of the module. Every top-level
wrapper statement is hoisted in place, and the pass repeats until no
wrapper is left.

Recognized wrappers (each with a zero-parameter function and no direct
`return` in its body):
- `(function() { ... })();` / `(function() { ... }());`
- `(() => { ... })();`
- `(function() { ... }).call(this);`
- `addEventListener('WebComponentsReady', function() { ... });`
- `HTMLImports.whenReady(function() { ... });`
"""

import logging
import textwrap
from typing import Optional

from tree_sitter import Node

from ..parsing.base import node_text
from ..parsing.javascript import (
    function_body,
    function_params,
    has_direct_return,
    is_use_strict,
    parse_javascript,
    statement_expression,
    string_value,
    top_level_statements,
    unwrap_parens,
)
from .editor import SourceEditor

logger = logging.getLogger(__name__)

WRAPPER_FUNCTION_TYPES = {"function", "function_expression", "arrow_function"}

READY_EVENTS = {"WebComponentsReady"}


def dedent(text: str) -> str:
    """Remove common indentation plus leading and trailing blank lines."""
    lines = textwrap.dedent(text).split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


def normalize_script(text: str) -> str:
    """Dedent a script and unwrap top-level wrappers until none remain."""
    text = dedent(text)
    while True:
        unwrapped = unwrap_once(text)
        if unwrapped is None:
            return text
        text = unwrapped


def unwrap_once(text: str) -> Optional[str]:
    """
    Hoist the body of every top-level wrapper statement of `text` in place.
    Returns None when there is nothing to unwrap.
    """
    tree = parse_javascript(text)
    if tree.root_node.has_error:
        return None
    source = text.encode("utf-8")
    editor = SourceEditor(source)

    for statement in top_level_statements(tree):
        hoisted = _hoisted_body(statement, source)
        if hoisted is None:
            continue
        logger.debug(f"Unwrapping top-level wrapper at byte {statement.start_byte}")
        if hoisted:
            editor.replace(statement.start_byte, statement.end_byte, hoisted)
        else:
            editor.remove_lines(statement.start_byte, statement.end_byte)

    if not editor.has_edits():
        return None
    return dedent(editor.render())


def _hoisted_body(statement: Node, source: bytes) -> Optional[str]:
    """Dedented body of a wrapper statement, without a leading 'use strict'."""
    func = wrapped_function(statement_expression(statement), source)
    if func is None:
        return None
    body = function_body(func)
    if body is None or body.type != "statement_block" or has_direct_return(body):
        return None

    inner_start = body.start_byte + 1
    inner_end = body.end_byte - 1
    inner = [c for c in body.named_children if c.type != "comment"]
    if inner and is_use_strict(inner[0], source):
        inner_start = inner[0].end_byte
    return dedent(source[inner_start:inner_end].decode("utf-8")).rstrip("\n")


def wrapped_function(expression: Optional[Node], source: bytes) -> Optional[Node]:
    """The function a wrapper expression would run, if it is a wrapper."""
    if expression is None or expression.type != "call_expression":
        return None
    callee = unwrap_parens(expression.child_by_field_name("function"))
    args = expression.child_by_field_name("arguments")
    arg_nodes = [a for a in args.named_children if a.type != "comment"] if args else []

    candidate: Optional[Node] = None
    if callee is not None and callee.type in WRAPPER_FUNCTION_TYPES:
        # (function() {...})()
        if not arg_nodes:
            candidate = callee
    elif callee is not None and callee.type == "member_expression":
        obj = unwrap_parens(callee.child_by_field_name("object"))
        prop = node_text(callee.child_by_field_name("property"), source)
        if obj is not None and obj.type in WRAPPER_FUNCTION_TYPES and prop == "call":
            # (function() {...}).call(this)
            if len(arg_nodes) == 1 and arg_nodes[0].type == "this":
                candidate = obj
        elif obj is not None and prop == "whenReady" and node_text(obj, source) == "HTMLImports":
            if len(arg_nodes) == 1:
                candidate = unwrap_parens(arg_nodes[0])
        elif obj is not None and prop == "addEventListener" and node_text(obj, source) in ("window", "document"):
            candidate = _ready_listener(arg_nodes, source)
    elif callee is not None and callee.type == "identifier":
        if node_text(callee, source) == "addEventListener":
            candidate = _ready_listener(arg_nodes, source)

    if candidate is None or candidate.type not in WRAPPER_FUNCTION_TYPES:
        return None
    if function_params(candidate, source) or _has_params(candidate):
        return None
    return candidate


def _ready_listener(args, source: bytes) -> Optional[Node]:
    if len(args) != 2 or string_value(args[0], source) not in READY_EVENTS:
        return None
    return unwrap_parens(args[1])


def _has_params(func: Node) -> bool:
    if func.child_by_field_name("parameter") is not None:
        return True
    params = func.child_by_field_name("parameters")
    return params is not None and bool(params.named_children)

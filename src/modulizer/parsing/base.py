"""
Base Parser Infrastructure.

Thin helpers around tree-sitter shared by the HTML and JavaScript layers:
cached parsers, tree walking and byte-offset text utilities. All offsets
handled by modulizer are byte offsets into UTF-8 encoded source, which is
what tree-sitter reports.
"""

import logging
from functools import lru_cache
from typing import Iterable, Iterator, Optional

from tree_sitter import Node, Parser, Tree
from tree_sitter_language_pack import get_parser

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def get_language_parser(language: str) -> Parser:
    """Return a cached tree-sitter parser for `language`."""
    logger.debug(f"Loading tree-sitter grammar: {language}")
    return get_parser(language)


def parse_source(language: str, source: bytes) -> Tree:
    tree = get_language_parser(language).parse(source)
    if tree.root_node.has_error:
        logger.debug(f"{language} source parsed with syntax errors")
    return tree


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8")


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of `node` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_ancestor(node: Node, types: Iterable[str]) -> Optional[Node]:
    """Nearest strict ancestor whose type is one of `types`."""
    wanted = set(types)
    current = node.parent
    while current is not None:
        if current.type in wanted:
            return current
        current = current.parent
    return None


def line_start(source: bytes, offset: int) -> int:
    """Offset of the first byte of the line containing `offset`."""
    return source.rfind(b"\n", 0, offset) + 1


def line_end(source: bytes, offset: int) -> int:
    """Offset just past the newline ending the line containing `offset`."""
    idx = source.find(b"\n", offset)
    return len(source) if idx == -1 else idx + 1


def indentation_at(source: bytes, offset: int) -> str:
    """Leading whitespace of the line containing `offset`."""
    start = line_start(source, offset)
    end = start
    while end < len(source) and source[end:end + 1] in (b" ", b"\t"):
        end += 1
    return source[start:end].decode("utf-8")

"""
HTML fragment extraction.

Splits an HTML-imports document into ordered fragments:
- `<link rel="import" href>` include directives
- `<script>` blocks (classic, module, or external via `src`)
- `<dom-module id>` elements holding exactly one `<template>`
- HTML comments
- any other non-whitespace markup

`<html>`, `<head>` and `<body>` are transparent: their children are
extracted as if they were top-level. Scripts nested inside other markup
(e.g. `<demo-snippet><template><script>`) are reported with `nested=True`.
"""

import html as html_lib
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node

from .. import config
from ..core.types import (
    CommentFragment,
    Fragment,
    LinkImportFragment,
    MarkupFragment,
    ScriptFragment,
    TemplateFragment,
)
from .base import node_text, parse_source, walk

logger = logging.getLogger(__name__)

TRANSPARENT_TAGS = {"html", "head", "body"}


@dataclass
class Attribute:
    value: str
    span: Optional[Tuple[int, int]] = None


def tag_name(element: Node, source: bytes) -> str:
    tag = _start_tag(element)
    if tag is None:
        return ""
    for child in tag.named_children:
        if child.type == "tag_name":
            return node_text(child, source).lower()
    return ""


def attributes(element: Node, source: bytes) -> Dict[str, Attribute]:
    """Attributes of an element's start tag, values entity-decoded."""
    tag = _start_tag(element)
    result: Dict[str, Attribute] = {}
    if tag is None:
        return result
    for attr in tag.named_children:
        if attr.type != "attribute":
            continue
        name = ""
        value = Attribute("")
        for child in attr.named_children:
            if child.type == "attribute_name":
                name = node_text(child, source).lower()
            elif child.type == "attribute_value":
                value = Attribute(html_lib.unescape(node_text(child, source)),
                                  (child.start_byte, child.end_byte))
            elif child.type == "quoted_attribute_value":
                inner = [c for c in child.named_children if c.type == "attribute_value"]
                if inner:
                    value = Attribute(html_lib.unescape(node_text(inner[0], source)),
                                      (inner[0].start_byte, inner[0].end_byte))
                else:
                    mid = child.start_byte + 1
                    value = Attribute("", (mid, mid))
        if name and name not in result:
            result[name] = value
    return result


def element_end(element: Node) -> int:
    """
    End offset of an element.

    Elements closed implicitly (void tags like `<link>`) can extend over the
    whitespace that follows them; their extent stops at their last child.
    """
    if element.type != "element" or not element.children:
        return element.end_byte
    if any(child.type == "end_tag" for child in element.children):
        return element.end_byte
    return max(child.end_byte for child in element.children)


def inner_span(element: Node) -> Tuple[int, int]:
    """Byte span between the end of the start tag and the start of the end tag."""
    start_tag = _start_tag(element)
    start = start_tag.end_byte if start_tag is not None else element.start_byte
    end = element_end(element)
    for child in element.children:
        if child.type == "end_tag":
            end = child.start_byte
    return start, end


def child_elements(element: Node) -> List[Node]:
    return [
        c for c in element.named_children
        if c.type in ("element", "script_element", "style_element")
    ]


def _start_tag(element: Node) -> Optional[Node]:
    for child in element.children:
        if child.type in ("start_tag", "self_closing_tag"):
            return child
    return None


class FragmentExtractor:
    """Walks one parsed HTML document and collects its fragments."""

    def __init__(self, source: str):
        self.text = source
        self.source = source.encode("utf-8")
        self.tree = parse_source("html", self.source)
        self._fragments: List[Fragment] = []

    def extract(self) -> List[Fragment]:
        self._fragments = []
        self._collect(self.tree.root_node)
        self._fragments.sort(key=lambda f: (f.start, f.end))
        for order, fragment in enumerate(self._fragments):
            fragment.order = order
        return self._fragments

    def _collect(self, parent: Node) -> None:
        for node in parent.named_children:
            kind = node.type
            if kind == "comment":
                self._add_comment(node)
            elif kind == "script_element":
                self._add_script(node, nested=False)
            elif kind == "style_element":
                self._add_markup(node)
            elif kind == "text":
                if node_text(node, self.source).strip():
                    self._add_markup(node)
            elif kind == "element":
                self._element(node)

    def _element(self, node: Node) -> None:
        tag = tag_name(node, self.source)
        if tag in TRANSPARENT_TAGS:
            self._collect(node)
            return
        attrs = attributes(node, self.source)
        if tag == "link" and _is_html_import(attrs):
            self._fragments.append(LinkImportFragment(
                order=0, start=node.start_byte, end=element_end(node),
                href=attrs["href"].value,
            ))
            return
        if tag == "dom-module":
            self._dom_module(node, attrs)
            return
        self._add_markup(node)
        self._add_nested_scripts(node)

    def _dom_module(self, node: Node, attrs: Dict[str, Attribute]) -> None:
        children = child_elements(node)
        scripts = [c for c in children if c.type == "script_element"]
        templates = [
            c for c in children
            if c.type == "element" and tag_name(c, self.source) == "template"
        ]
        standard = set(attrs) == {"id"} and len(templates) == 1 and attrs["id"].value

        for script in scripts:
            self._add_script(script, nested=False)

        if standard:
            start, end = inner_span(templates[0])
            self._fragments.append(TemplateFragment(
                order=0, start=node.start_byte, end=node.end_byte,
                element_id=attrs["id"].value,
                content=self.source[start:end].decode("utf-8"),
                markup=self._markup_without(node, scripts),
            ))
        else:
            self._fragments.append(MarkupFragment(
                order=0, start=node.start_byte, end=node.end_byte,
                text=self._markup_without(node, scripts),
            ))
        for template in templates:
            self._add_nested_scripts(template)

    def _add_script(self, node: Node, nested: bool) -> None:
        attrs = attributes(node, self.source)
        script_type = attrs["type"].value.strip().lower() if "type" in attrs else ""
        is_module = script_type == "module"
        if not is_module and script_type not in config.CLASSIC_SCRIPT_TYPES:
            if not nested:
                self._add_markup(node)
            return
        text = ""
        for child in node.named_children:
            if child.type == "raw_text":
                text = node_text(child, self.source)
        src = attrs.get("src")
        self._fragments.append(ScriptFragment(
            order=0, start=node.start_byte, end=node.end_byte,
            text=text,
            src=src.value if src is not None else None,
            src_span=src.span if src is not None else None,
            is_module=is_module,
            nested=nested,
        ))

    def _add_nested_scripts(self, node: Node) -> None:
        for descendant in walk(node):
            if descendant is not node and descendant.type == "script_element":
                self._add_script(descendant, nested=True)

    def _add_comment(self, node: Node) -> None:
        text = node_text(node, self.source)
        if text.startswith("<!--"):
            text = text[4:]
        if text.endswith("-->"):
            text = text[:-3]
        self._fragments.append(CommentFragment(
            order=0, start=node.start_byte, end=node.end_byte, text=text,
        ))

    def _add_markup(self, node: Node) -> None:
        end = element_end(node)
        self._fragments.append(MarkupFragment(
            order=0, start=node.start_byte, end=end,
            text=self.source[node.start_byte:end].decode("utf-8"),
        ))

    def _markup_without(self, node: Node, removed: List[Node]) -> str:
        """Source of `node` with the given child spans cut out."""
        pieces = []
        cursor = node.start_byte
        for child in sorted(removed, key=lambda c: c.start_byte):
            pieces.append(self.source[cursor:child.start_byte])
            cursor = child.end_byte
        pieces.append(self.source[cursor:node.end_byte])
        return b"".join(pieces).decode("utf-8")


def _is_html_import(attrs: Dict[str, Attribute]) -> bool:
    rel = attrs.get("rel")
    return (
        rel is not None
        and "import" in rel.value.lower().split()
        and "href" in attrs
        and "type" not in attrs
    )


def extract_fragments(source: str) -> List[Fragment]:
    """Ordered fragments of an HTML document."""
    return FragmentExtractor(source).extract()

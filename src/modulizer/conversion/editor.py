"""
Text splicing over a source buffer.

Rewrites are recorded as edits against the original byte offsets reported
by tree-sitter and applied in one pass on render, so earlier edits never
shift the offsets later passes rely on. Untouched text is reproduced
byte-for-byte.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from tree_sitter import Node

from ..parsing.base import line_end, line_start

logger = logging.getLogger(__name__)


@dataclass
class Edit:
    start: int
    end: int
    text: str
    seq: int

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def contains(self, other: "Edit") -> bool:
        """True when `other` falls inside this replacement."""
        if self.is_insertion:
            return False
        if other.is_insertion:
            return self.start < other.start < self.end
        return self.start <= other.start and other.end <= self.end


class SourceEditor:
    """
    Collects replacements and insertions for one buffer.

    Nesting rules:
    - an edit inside an existing replacement is ignored
    - a replacement enclosing existing edits drops them (its text is
      expected to already account for them)
    - partially overlapping replacements raise ValueError
    """

    def __init__(self, source: bytes):
        self.source = source
        self._edits: List[Edit] = []
        self._seq = 0

    def replace(self, start: int, end: int, text: str) -> bool:
        """Record a replacement; returns False if it was ignored."""
        if start > end:
            raise ValueError(f"Invalid span {start}..{end}")
        edit = Edit(start, end, text, self._seq)
        self._seq += 1

        for existing in self._edits:
            if existing.contains(edit) or (
                not edit.is_insertion and (existing.start, existing.end) == (start, end)
            ):
                logger.debug(f"Ignoring edit {start}..{end} inside {existing.start}..{existing.end}")
                return False

        kept = []
        for existing in self._edits:
            if edit.contains(existing):
                continue
            if not edit.is_insertion and not existing.is_insertion and _overlaps(edit, existing):
                raise ValueError(
                    f"Edit {start}..{end} partially overlaps {existing.start}..{existing.end}"
                )
            kept.append(existing)
        kept.append(edit)
        self._edits = kept
        return True

    def replace_node(self, node: Node, text: str) -> bool:
        return self.replace(node.start_byte, node.end_byte, text)

    def insert(self, offset: int, text: str) -> bool:
        return self.replace(offset, offset, text)

    def remove(self, start: int, end: int) -> bool:
        return self.replace(start, end, "")

    def remove_lines(self, start: int, end: int) -> bool:
        """
        Remove a span; when it occupies whole lines, take the lines'
        indentation and trailing newline with it.
        """
        first = line_start(self.source, start)
        last = line_end(self.source, end)
        if not self.source[first:start].strip() and not self.source[end:last].strip():
            return self.remove(first, last)
        return self.remove(start, end)

    def has_edits(self, start: int = 0, end: Optional[int] = None) -> bool:
        end = len(self.source) if end is None else end
        return any(start <= e.start and e.end <= end for e in self._edits)

    def render(self, start: int = 0, end: Optional[int] = None) -> str:
        """The buffer between `start` and `end` with every edit inside it applied."""
        end = len(self.source) if end is None else end
        edits = sorted(
            (e for e in self._edits if start <= e.start and e.end <= end),
            key=lambda e: (e.start, 0 if e.is_insertion else 1, e.seq),
        )
        pieces: List[bytes] = []
        cursor = start
        for edit in edits:
            if edit.start < cursor:
                continue
            pieces.append(self.source[cursor:edit.start])
            pieces.append(edit.text.encode("utf-8"))
            cursor = edit.end
        pieces.append(self.source[cursor:end])
        return b"".join(pieces).decode("utf-8")


def _overlaps(a: Edit, b: Edit) -> bool:
    return a.start < b.end and b.start < a.end

"""
Document dependency graph backed by rustworkx.

Nodes are document URLs; edges are `DependencyEdge` models. Besides the
usual bimap between URLs and rustworkx indices, the graph keeps each
document's outgoing edges in include order, because traversal order decides
which edge of a cycle gets flagged and in which order documents are
converted.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

import rustworkx as rx

from .types import DependencyEdge

logger = logging.getLogger(__name__)

CYCLE_MESSAGE = (
    "Cycle in dependency graph found where {source} imports {target}.\n"
    "    Modulizer does not yet support rewriting references among cyclic dependencies."
)


class DocumentGraph:
    """
    Include graph of every document reachable from the conversion roots.

    Features:
    - O(1) document lookup via URL-to-index bimap
    - Ordered out-edges for deterministic traversals
    - Cycle marking and reachability over non-cyclic edges
    """

    def __init__(self):
        self._graph = rx.PyDiGraph(multigraph=False)
        self._url_to_idx: Dict[str, int] = {}
        self._idx_to_url: Dict[int, str] = {}
        self._out: Dict[str, List[DependencyEdge]] = defaultdict(list)

    def add_document(self, url: str) -> int:
        """Add a document node, returning its index. Re-adding is a no-op."""
        if url in self._url_to_idx:
            return self._url_to_idx[url]
        idx = self._graph.add_node(url)
        self._url_to_idx[url] = idx
        self._idx_to_url[idx] = url
        return idx

    def add_edge(self, edge: DependencyEdge) -> DependencyEdge:
        """
        Add a directed edge, creating missing endpoints.

        A second edge between the same pair of documents is ignored and the
        existing edge returned.
        """
        existing = self.get_edge(edge.source, edge.target)
        if existing is not None:
            return existing
        u = self.add_document(edge.source)
        v = self.add_document(edge.target)
        self._graph.add_edge(u, v, edge)
        self._out[edge.source].append(edge)
        return edge

    def has_document(self, url: str) -> bool:
        return url in self._url_to_idx

    def get_edge(self, source: str, target: str) -> Optional[DependencyEdge]:
        for edge in self._out.get(source, []):
            if edge.target == target:
                return edge
        return None

    def out_edges(self, url: str) -> List[DependencyEdge]:
        """Outgoing edges of a document in include order."""
        return list(self._out.get(url, []))

    def iter_documents(self) -> Iterator[str]:
        """Document URLs in insertion order."""
        return (self._idx_to_url[idx] for idx in sorted(self._idx_to_url))

    def iter_edges(self) -> Iterator[DependencyEdge]:
        for url in self.iter_documents():
            yield from self._out.get(url, [])

    @property
    def document_count(self) -> int:
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.num_edges()

    # --- Traversals ---

    def detect_cycles(self, roots: Iterable[str] | None = None) -> List[DependencyEdge]:
        """
        Mark every edge that closes a cycle as `cyclic`.

        Depth-first from each root in order (then from any document not yet
        visited), tracking the active path; an edge whose target is on the
        active path is a back edge. Returns the newly marked edges in
        detection order.
        """
        marked: List[DependencyEdge] = []
        visited: Set[str] = set()
        on_path: Set[str] = set()

        def visit(url: str) -> None:
            visited.add(url)
            on_path.add(url)
            for edge in self._out.get(url, []):
                if edge.target in on_path:
                    if not edge.cyclic:
                        edge.cyclic = True
                        marked.append(edge)
                        logger.debug(f"Cyclic edge: {edge.describe()}")
                elif edge.target not in visited:
                    visit(edge.target)
            on_path.discard(url)

        for url in self._start_order(roots):
            if url not in visited:
                visit(url)
        return marked

    def dependency_order(self, roots: Iterable[str] | None = None) -> List[str]:
        """
        Documents in dependency post-order: includes before includers.

        Cycles are broken at the first revisited document.
        """
        order: List[str] = []
        visited: Set[str] = set()

        def visit(url: str) -> None:
            visited.add(url)
            for edge in self._out.get(url, []):
                if edge.target not in visited:
                    visit(edge.target)
            order.append(url)

        for url in self._start_order(roots):
            if url not in visited:
                visit(url)
        return order

    def get_descendants(self, url: str, acyclic_only: bool = False) -> Set[str]:
        """All documents reachable from `url`, optionally skipping cyclic edges."""
        if url not in self._url_to_idx:
            return set()
        if not acyclic_only:
            indices = rx.descendants(self._graph, self._url_to_idx[url])
            return {self._idx_to_url[idx] for idx in indices}

        seen: Set[str] = set()
        stack = [url]
        while stack:
            current = stack.pop()
            for edge in self._out.get(current, []):
                if edge.cyclic or edge.target in seen:
                    continue
                seen.add(edge.target)
                stack.append(edge.target)
        seen.discard(url)
        return seen

    def is_degraded(self, source: str, target: str) -> bool:
        """
        True when `target` is reachable from `source` only via cyclic edges.

        References across such a path are left untouched.
        """
        if source == target:
            return False
        if target not in self.get_descendants(source):
            return False
        return target not in self.get_descendants(source, acyclic_only=True)

    def cycle_message(self, edge: DependencyEdge) -> str:
        return CYCLE_MESSAGE.format(source=edge.source, target=edge.target)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_documents": self.document_count,
            "total_edges": self.edge_count,
            "cyclic_edges": sum(1 for e in self.iter_edges() if e.cyclic),
            "backend": "rustworkx",
        }

    def _start_order(self, roots: Iterable[str] | None) -> List[str]:
        order: List[str] = []
        for url in list(roots or []) + list(self.iter_documents()):
            if url in self._url_to_idx and url not in order:
                order.append(url)
        return order

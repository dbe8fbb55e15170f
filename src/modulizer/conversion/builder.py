"""
Document Graph Builder.

Loads every document reachable from the conversion roots through
`<link rel="import">` directives, extracts its fragments and records the
include edges on a `DocumentGraph`.

- Internal documents must load; a missing one raises UnresolvedIncludeError.
- External documents (dependencies under `bower_components/`) are loaded
  when available so their declarations are known, and recorded as bare
  graph nodes otherwise.
- Excluded documents are neither loaded nor added to the graph.
- `<script src>` pointing inside the package is inlined; other sources are
  recorded as `script-src` edges on the document.
"""

import logging
from collections import deque
from typing import Dict, Iterable, Optional

from ..core.errors import UnresolvedIncludeError
from ..core.graph import DocumentGraph
from ..core.types import (
    ConversionSettings,
    DependencyEdge,
    Document,
    EdgeKind,
    LinkImportFragment,
    ScriptFragment,
)
from ..parsing.html import extract_fragments
from ..parsing.loader import PackageUrlResolver, UrlLoader
from ..urls import PackageUrlHandler

logger = logging.getLogger(__name__)


class DocumentGraphBuilder:
    """
    Builds the include graph of a package.

    Usage:
        builder = DocumentGraphBuilder(loader, handler, settings)
        graph = builder.build(["index.html"])
        builder.documents["index.html"].edges
    """

    def __init__(
        self,
        loader: UrlLoader,
        url_handler: PackageUrlHandler,
        settings: ConversionSettings,
        resolver: Optional[PackageUrlResolver] = None,
    ):
        self.loader = loader
        self.url_handler = url_handler
        self.settings = settings
        self.resolver = resolver or PackageUrlResolver()
        self.graph = DocumentGraph()
        self.documents: Dict[str, Document] = {}

    def build(self, roots: Iterable[str]) -> DocumentGraph:
        """Load the closure of `roots`. Calling again only adds new roots."""
        queue = deque()
        for root in roots:
            if root not in self.settings.excludes:
                queue.append((root, None))

        while queue:
            url, referrer = queue.popleft()
            if url in self.documents:
                continue
            document = self._load(url, referrer)
            if document is None:
                continue
            for edge in document.edges:
                if edge.kind == EdgeKind.HTML_IMPORT and edge.target not in self.settings.excludes:
                    queue.append((edge.target, url))

        logger.debug(
            f"Document graph: {self.graph.document_count} documents, "
            f"{self.graph.edge_count} edges"
        )
        return self.graph

    def _load(self, url: str, referrer: Optional[str]) -> Optional[Document]:
        internal = self.url_handler.is_internal_to_package(url)
        self.graph.add_document(url)
        if not internal and not self.loader.can_load(url):
            logger.debug(f"External document {url} not available; recorded without contents")
            return None
        try:
            text = self.loader.load(url)
        except OSError as e:
            raise UnresolvedIncludeError(url, referrer, str(e)) from e

        document = Document(url=url, source=text, fragments=extract_fragments(text))
        self.documents[url] = document
        for fragment in document.fragments:
            if isinstance(fragment, LinkImportFragment):
                self._link(document, fragment)
            elif isinstance(fragment, ScriptFragment) and fragment.src is not None:
                self._script_src(document, fragment)
        return document

    def _link(self, document: Document, fragment: LinkImportFragment) -> None:
        target = self.resolver.resolve(document.url, fragment.href)
        if target is None:
            logger.debug(f"{document.url}: ignoring import of remote document {fragment.href}")
            return
        fragment.url = target
        edge = DependencyEdge(
            source=document.url,
            target=target,
            kind=EdgeKind.HTML_IMPORT,
            order=fragment.order,
            href=fragment.href,
        )
        if target not in self.settings.excludes:
            edge = self.graph.add_edge(edge)
        document.edges.append(edge)

    def _script_src(self, document: Document, fragment: ScriptFragment) -> None:
        target = self.resolver.resolve(document.url, fragment.src)
        internal = target is not None and self.url_handler.is_internal_to_package(target)
        if internal and not fragment.is_module:
            try:
                fragment.text = self.loader.load(target)
            except OSError as e:
                raise UnresolvedIncludeError(target, document.url, str(e)) from e
            fragment.key = target
            return
        fragment.external = True
        fragment.key = target or fragment.src
        document.edges.append(DependencyEdge(
            source=document.url,
            # Remote scripts keep their URL as the import specifier
            target=target or fragment.src,
            kind=EdgeKind.SCRIPT_SRC,
            order=fragment.order,
            href=fragment.src,
        ))

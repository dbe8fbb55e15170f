"""
Project Converter.

Orchestrates a conversion run:

    build graph -> mark maintained documents -> parse scripts
      -> registry (declarations, writes, setters) -> cycle detection
      -> per document: templates, references, exports, assembly

Converted documents produce a JavaScript module and a deletion marker for
the HTML file. Maintained documents (pages nothing imports) stay HTML with
their imports and scripts switched to modules.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from ..core.errors import (
    ConversionError,
    CyclicDependencyWarning,
    PackageMappingWarning,
)
from ..core.graph import DocumentGraph
from ..core.result import Err, Ok, Result
from ..core.types import (
    CommentFragment,
    ConversionResults,
    ConversionSettings,
    Diagnostic,
    DiagnosticKind,
    Document,
    EdgeKind,
    LinkImportFragment,
    MarkupFragment,
    ScriptFragment,
    TemplateFragment,
)
from ..parsing.base import walk
from ..parsing.javascript import chain_root, is_pure_chain
from ..parsing.loader import FileSystemUrlLoader, UrlLoader
from ..urls import BowerPackageUrlHandler, PackageUrlHandler
from .builder import DocumentGraphBuilder
from .editor import SourceEditor
from .exports import ExportRenderer
from .normalize import dedent, normalize_script
from .registry import NamespaceRegistry
from .resolver import ReferenceResolver
from .scope import ScriptUnit
from .synthesizer import ImportSynthesizer
from .templates import TemplateRelocator, render_container

logger = logging.getLogger(__name__)


def render_comment(text: str) -> str:
    """An HTML comment as a JavaScript block comment."""
    text = text.replace("*/", "*\\/")
    if "@license" in text:
        return f"/**{text}*/\n"
    return f"/*{text}*/\n"


class ProjectConverter:
    """
    Converts the documents reachable from a set of roots.

    Usage:
        converter = ProjectConverter(BowerPackageUrlHandler("my-el"))
        results = converter.convert(loader, ["my-el.html"])
    """

    def __init__(self, url_handler: PackageUrlHandler,
                 settings: Optional[ConversionSettings] = None):
        self.url_handler = url_handler
        self.settings = settings or ConversionSettings()

    def convert(self, loader: UrlLoader, roots: Iterable[str]) -> ConversionResults:
        roots = list(dict.fromkeys(list(roots) + sorted(self.settings.includes)))
        builder = DocumentGraphBuilder(loader, self.url_handler, self.settings)
        graph = builder.build(roots)
        documents = builder.documents
        diagnostics: List[Diagnostic] = []

        self._mark_maintained(documents)
        order = [url for url in graph.dependency_order(roots) if url in documents]

        units: Dict[str, List[ScriptUnit]] = {}
        for url in order:
            units[url] = self._parse_scripts(documents[url], diagnostics)

        registry = NamespaceRegistry(
            self.settings, graph, self.url_handler.is_internal_to_package,
        )
        for url in order:
            registry.scan(units[url])
        for url in order:
            for unit in units[url]:
                registry.tally_writes(unit)
        registry.detect_setters()
        diagnostics.extend(registry.diagnostics)

        for edge in graph.detect_cycles(roots):
            diagnostics.append(
                CyclicDependencyWarning(graph.cycle_message(edge), edge.source).to_diagnostic()
            )
        logger.debug(f"Document graph: {graph.get_stats()}")

        context = _Context(self, graph, documents, registry)
        outputs: Dict[str, Optional[str]] = {}
        for url in order:
            document = documents[url]
            if not self.url_handler.is_internal_to_package(url):
                continue
            if document.maintained:
                outputs[url] = context.convert_maintained(document, units[url], diagnostics)
            else:
                js_url = self.url_handler.convert_html_url_to_js(url)
                outputs[js_url] = context.convert_module(document, units[url], diagnostics)
                outputs[url] = None
            diagnostics.extend(self._package_warnings(url))

        for diagnostic in diagnostics:
            logger.warning(diagnostic.message)
        return ConversionResults(outputs=outputs, diagnostics=diagnostics)

    def _mark_maintained(self, documents: Dict[str, Document]) -> None:
        included: Set[str] = set()
        for document in documents.values():
            included.update(document.includes)
        for url, document in documents.items():
            document.maintained = (
                self.url_handler.is_internal_to_package(url)
                and url not in self.settings.includes
                and url not in included
            )
            if document.maintained:
                logger.debug(f"{url} is not imported; keeping it as HTML")

    def _parse_scripts(self, document: Document, diagnostics: List[Diagnostic]) -> List[ScriptUnit]:
        units = []
        for fragment in document.scripts:
            if fragment.is_module:
                continue
            unit = ScriptUnit.from_text(document, fragment, normalize_script(fragment.text))
            if unit.tree.root_node.has_error:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.PARSE_ERROR,
                    message=f"Syntax error in script {fragment.key or fragment.order} "
                            f"of {document.url}",
                    document=document.url,
                ))
            units.append(unit)
        return units

    def _package_warnings(self, url: str) -> List[Diagnostic]:
        pop_warnings = getattr(self.url_handler, "pop_warnings", None)
        if pop_warnings is None:
            return []
        return [PackageMappingWarning(message, url).to_diagnostic() for message in pop_warnings()]


class _Context:
    """Per-run collaborators shared by every document."""

    def __init__(self, converter: ProjectConverter, graph: DocumentGraph,
                 documents: Dict[str, Document], registry: NamespaceRegistry):
        self.handler = converter.url_handler
        self.settings = converter.settings
        self.graph = graph
        self.documents = documents
        self.registry = registry
        self.resolver = ReferenceResolver(registry, graph, documents)
        self.exports = ExportRenderer(self.resolver)
        self.templates = TemplateRelocator(self.settings, registry, self.resolver)

    def _edges(self, document: Document, before: Optional[int] = None):
        return [
            edge for edge in document.edges
            if edge.target not in self.settings.excludes
            and (before is None or edge.order < before)
        ]

    def _taken_names(self, units: List[ScriptUnit]) -> Set[str]:
        """
        Names an import must not take: declarations, exported local names
        and properties read off objects that stay unrewritten.
        """
        roots = {path[0] for path in self.registry.namespaces} | {"window", "this"}
        taken: Set[str] = set()
        for unit in units:
            taken |= unit.declared_names()
            for node in walk(unit.tree.root_node):
                if node.type != "member_expression":
                    continue
                if is_pure_chain(node):
                    root = chain_root(node)
                    root_text = unit.source[root.start_byte:root.end_byte].decode("utf-8")
                    if root_text in roots or root_text in unit.aliases:
                        continue
                prop = node.child_by_field_name("property")
                if prop is not None:
                    taken.add(unit.source[prop.start_byte:prop.end_byte].decode("utf-8"))
        if units:
            taken |= {b.local_name for b in self.registry.exports_of(units[0].url)}
        return taken

    # --- Converted documents ---

    def convert_module(self, document: Document, units: List[ScriptUnit],
                       diagnostics: List[Diagnostic]) -> str:
        imports = ImportSynthesizer(
            document.url, self.handler, self._edges(document), self._taken_names(units),
        )
        templates = [f for f in document.fragments if isinstance(f, TemplateFragment)]
        unclaimed = self.templates.relocate(units, templates, lambda unit: imports)
        for unit in units:
            diagnostics.extend(self.resolver.resolve(unit, imports))
        for unit in units:
            self.exports.render(unit, imports)

        by_fragment = {id(unit.fragment): unit for unit in units}
        unclaimed_ids = {id(t) for t in unclaimed}
        markup: List[str] = []
        body: List[str] = []
        for fragment in document.fragments:
            if isinstance(fragment, ScriptFragment):
                if fragment.nested or fragment.external:
                    continue
                unit = by_fragment.get(id(fragment))
                body.append(unit.render() if unit is not None else dedent(fragment.text))
            elif isinstance(fragment, CommentFragment):
                body.append(render_comment(fragment.text))
            elif isinstance(fragment, MarkupFragment):
                markup.append(fragment.text)
            elif isinstance(fragment, TemplateFragment) and id(fragment) in unclaimed_ids:
                markup.append(fragment.markup)

        lines = imports.render_lines() + render_container(markup)
        header = "".join(line + "\n" for line in lines)
        return header + "".join(body)

    # --- Maintained documents ---

    def convert_maintained(self, document: Document, units: List[ScriptUnit],
                           diagnostics: List[Diagnostic]) -> str:
        editor = SourceEditor(document.source.encode("utf-8"))
        by_fragment = {id(unit.fragment): unit for unit in units}
        first_import: Optional[int] = None

        for fragment in document.fragments:
            if isinstance(fragment, LinkImportFragment):
                if not fragment.url or fragment.url in self.settings.excludes:
                    continue
                if first_import is None:
                    first_import = fragment.order
                path = self._import_path(document, fragment.url, fragment.href)
                editor.replace(fragment.start, fragment.end,
                               f'<script type="module" src="{path}"></script>')
            elif isinstance(fragment, ScriptFragment):
                if fragment.external and fragment.src_span is not None:
                    self._remap_src(document, fragment, editor)
                    continue
                unit = by_fragment.get(id(fragment))
                if unit is None:
                    continue
                imports = ImportSynthesizer(
                    document.url, self.handler,
                    [e for e in self._edges(document, fragment.order) if e.kind == EdgeKind.HTML_IMPORT],
                    self._taken_names([unit]),
                )
                diagnostics.extend(self.resolver.resolve(unit, imports))
                self.exports.render(unit, imports)
                follows_import = first_import is not None and first_import < fragment.order
                needs_imports = any(m.names or m.namespace for m in imports.imports())
                if follows_import or needs_imports or unit.editor.has_edits():
                    script = f'<script type="module">\n{imports.render()}{unit.render()}</script>'
                    editor.replace(fragment.start, fragment.end, script)
        return editor.render()

    def _import_path(self, document: Document, target: str, href: str) -> str:
        if href.startswith("/"):
            path = self.handler.convert_html_url_to_js(href)
            convert_absolute = getattr(self.handler, "convert_absolute_url", None)
            return convert_absolute(path) if convert_absolute else path
        return self.handler.get_path_for_import(document.url, target)

    def _remap_src(self, document: Document, fragment: ScriptFragment, editor: SourceEditor) -> None:
        """Point an external classic script at its location in the npm layout."""
        src = fragment.src or ""
        if fragment.key == src or self.handler.is_internal_to_package(fragment.key):
            return
        path = self._import_path(document, fragment.key, src)
        if path != src:
            start, end = fragment.src_span
            editor.replace(start, end, path)


# --- Package level API ---


def convert_package(
    package_dir: Path,
    package_name: Optional[str] = None,
    package_type: str = "element",
    settings: Optional[ConversionSettings] = None,
    roots: Optional[List[str]] = None,
) -> Result[ConversionResults, ConversionError]:
    """
    Convert every HTML document of a package directory.

    Entrypoints listed as `main` in `bower.json` are added to
    `settings.includes`. Fatal conversion errors are returned as `Err`.
    """
    package_dir = Path(package_dir)
    settings = settings or ConversionSettings()
    manifest_path = package_dir / "bower.json"
    manifest = {}
    if manifest_path.is_file():
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    package_name = package_name or manifest.get("name") or package_dir.resolve().name

    main = manifest.get("main", [])
    main = [main] if isinstance(main, str) else list(main)
    main = [m[2:] if m.startswith("./") else m for m in main if m.endswith(".html")]
    if main:
        settings = settings.model_copy(update={"includes": settings.includes | frozenset(main)})

    loader = FileSystemUrlLoader(package_dir)
    roots = roots or list(loader.iter_urls(".html"))
    handler = BowerPackageUrlHandler(package_name, package_type)
    logger.info(f"Converting {len(roots)} documents of {package_name}")
    try:
        return Ok(ProjectConverter(handler, settings).convert(loader, roots))
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        return Err(e)


def write_results(out_dir: Path, results: ConversionResults,
                  delete_files: Iterable[str] = ()) -> List[Path]:
    """
    Write converted files below `out_dir` and delete the files the
    conversion replaced plus anything matching `delete_files` globs.
    Returns the written paths.
    """
    out_dir = Path(out_dir)
    written: List[Path] = []
    for url, text in results.outputs.items():
        path = out_dir / url
        if text is None:
            if path.is_file():
                path.unlink()
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        written.append(path)

    for pattern in delete_files:
        for path in out_dir.glob(pattern):
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()
    logger.debug(f"Wrote {len(written)} files to {out_dir}")
    return written

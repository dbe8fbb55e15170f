"""
Import Synthesizer.

Collects the imports one output module needs and renders the import
declarations. Local names are chosen so that they never collide with a
name the module declares itself or with another import; colliding names get
a `$N` suffix from a per-module counter.
"""

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..core.types import DependencyEdge, EdgeKind, ExportBinding
from ..urls import PackageUrlHandler

logger = logging.getLogger(__name__)


@dataclass
class ModuleImports:
    """Everything imported from one module."""
    url: str
    specifier: str
    names: Dict[str, str] = field(default_factory=dict)
    namespace: Optional[str] = None


class ImportSynthesizer:
    """
    Per-module import table.

    `edges` are the document's include edges in document order; each one
    gets at least a side-effect import. `taken` are names the module
    already declares.
    """

    def __init__(self, url: str, handler: PackageUrlHandler,
                 edges: List[DependencyEdge], taken: Set[str]):
        self.url = url
        self.handler = handler
        self.taken: Set[str] = set(taken)
        self._counter = 0
        self._modules: Dict[str, ModuleImports] = {}
        self._edge_urls: List[str] = []
        for edge in edges:
            self._add_edge(edge)

    def _add_edge(self, edge: DependencyEdge) -> None:
        if edge.target in self._modules:
            return
        specifier = self._specifier(edge.target, edge)
        self._modules[edge.target] = ModuleImports(edge.target, specifier)
        self._edge_urls.append(edge.target)

    def _specifier(self, target: str, edge: Optional[DependencyEdge] = None) -> str:
        if edge is not None and edge.kind == EdgeKind.SCRIPT_SRC and edge.target == edge.href:
            return edge.href
        if edge is not None and edge.absolute:
            convert_absolute = getattr(self.handler, "convert_absolute_url", None)
            path = self.handler.convert_html_url_to_js(edge.href)
            return convert_absolute(path) if convert_absolute else path
        return self.handler.get_path_for_import(self.url, target)

    def _module(self, url: str) -> ModuleImports:
        module = self._modules.get(url)
        if module is None:
            module = ModuleImports(url, self._specifier(url))
            self._modules[url] = module
        return module

    def _local_name(self, name: str) -> str:
        if name not in self.taken:
            self.taken.add(name)
            return name
        while True:
            candidate = f"{name}${self._counter}"
            self._counter += 1
            if candidate not in self.taken:
                self.taken.add(candidate)
                return candidate

    def request(self, binding: ExportBinding) -> str:
        """Local name under which `binding` is available in this module."""
        module = self._module(binding.document)
        local = module.names.get(binding.name)
        if local is None:
            local = self._local_name(binding.name)
            module.names[binding.name] = local
            logger.debug(f"{self.url}: import {binding.name} as {local} from {module.specifier}")
        return local

    def request_namespace(self, url: str) -> str:
        """Local name of a whole-module namespace import of `url`."""
        module = self._module(url)
        if module.namespace is None:
            module.namespace = self._local_name(namespace_import_name(url))
        return module.namespace

    def imports(self) -> List[ModuleImports]:
        """Modules in output order: include edges first, then first request."""
        ordered = [self._modules[url] for url in self._edge_urls]
        ordered += [m for url, m in self._modules.items() if url not in self._edge_urls]
        return ordered

    def render_lines(self) -> List[str]:
        lines: List[str] = []
        for module in self.imports():
            quoted = f"'{module.specifier}'"
            if module.namespace:
                lines.append(f"import * as {module.namespace} from {quoted};")
            if module.names:
                specifiers = ", ".join(
                    name if name == local else f"{name} as {local}"
                    for name, local in module.names.items()
                )
                lines.append(f"import {{ {specifiers} }} from {quoted};")
            elif not module.namespace:
                lines.append(f"import {quoted};")
        return lines

    def render(self) -> str:
        return "".join(line + "\n" for line in self.render_lines())


def namespace_import_name(url: str) -> str:
    """Identifier for `import * as` derived from a module's file name."""
    stem = posixpath.splitext(posixpath.basename(url))[0]
    words = [w for w in re.split(r"[^A-Za-z0-9_$]+", stem) if w]
    if not words:
        return "module"
    name = words[0] + "".join(w[:1].upper() + w[1:] for w in words[1:])
    if name[0].isdigit():
        name = "_" + name
    return name

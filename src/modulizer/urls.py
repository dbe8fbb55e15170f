"""
Package URL handling.

Maps the legacy bower layout (documents addressed relative to the package,
dependencies under `bower_components/<dep>/`) onto the npm layout the
converted modules are published in (`<npm-name>/...`, resolved through
`node_modules`).

The converter only talks to the `PackageUrlHandler` protocol;
`BowerPackageUrlHandler` is the implementation used by the CLI.
"""

import logging
import posixpath
from typing import Dict, List, Optional, Protocol, Set, Tuple

from . import config

logger = logging.getLogger(__name__)

_BOWER_PREFIX = config.BOWER_COMPONENTS_DIR + "/"


class PackageUrlHandler(Protocol):
    """Capabilities the converter needs from the package layout."""

    def get_path_for_import(self, from_url: str, to_url: str) -> str:
        """Import specifier used by `from_url` to reach `to_url`."""
        ...

    def is_internal_to_package(self, url: str) -> bool:
        """Whether `url` belongs to the package being converted."""
        ...

    def convert_html_url_to_js(self, url: str) -> str:
        """Output path of the module that replaces an HTML document."""
        ...


def is_internal_url(url: str) -> bool:
    """Package-relative URLs outside `bower_components/` are internal."""
    return not url.lstrip("/").startswith(_BOWER_PREFIX)


def split_bower_url(url: str) -> Tuple[str, str]:
    """'bower_components/dep/a/b.html' -> ('dep', 'a/b.html')."""
    rest = url.lstrip("/")[len(_BOWER_PREFIX):]
    dep, _, path = rest.partition("/")
    return dep, path


class BowerPackageUrlHandler:
    """
    PackageUrlHandler for bower packages converted to npm.

    `package_type` is either "element" (reusable element package; converted
    modules import their dependencies as sibling npm packages) or
    "application" (dependencies live under the application's own
    `node_modules/` directory).
    """

    def __init__(
        self,
        package_name: str,
        package_type: str = config.DEFAULT_PACKAGE_TYPE,
        dependency_map: Optional[Dict[str, Tuple[str, Dict[str, str]]]] = None,
    ):
        if package_type not in config.PACKAGE_TYPES:
            raise ValueError(
                f"Unknown package type {package_type!r}, expected one of {config.PACKAGE_TYPES}"
            )
        self.package_name = package_name
        self.package_type = package_type
        self.dependency_map = dict(config.BOWER_TO_NPM if dependency_map is None else dependency_map)
        self._warned: Set[str] = set()
        self._warnings: List[str] = []

    # --- PackageUrlHandler ---

    def is_internal_to_package(self, url: str) -> bool:
        return is_internal_url(url)

    def convert_html_url_to_js(self, url: str) -> str:
        if url.endswith(".html"):
            return url[: -len(".html")] + ".js"
        return url

    def get_path_for_import(self, from_url: str, to_url: str) -> str:
        from_location = self.get_location(self.convert_html_url_to_js(from_url))
        to_location = self.get_location(self.convert_html_url_to_js(to_url))
        base = posixpath.dirname(from_location) or "."
        relative = posixpath.relpath(to_location, base)
        if not relative.startswith("../"):
            relative = "./" + relative
        return relative

    # --- Layout ---

    def get_location(self, url: str) -> str:
        """
        Position of a file in a common namespace where relative paths
        between converted files can be computed.
        """
        url = url.lstrip("/")
        if is_internal_url(url):
            if self.package_type == "element":
                return posixpath.join(self.package_name, url)
            return url
        dep, path = split_bower_url(url)
        npm_name, path = self.map_dependency(dep, path)
        location = posixpath.join(npm_name, path) if path else npm_name
        if self.package_type == "application":
            return posixpath.join(config.NODE_MODULES_DIR, location)
        return location

    def convert_absolute_url(self, url: str) -> str:
        """`/bower_components/dep/x.js` -> `/node_modules/<npm>/x.js`."""
        if not url.startswith("/" + _BOWER_PREFIX):
            return url
        dep, path = split_bower_url(url)
        npm_name, path = self.map_dependency(dep, path)
        return "/" + posixpath.join(config.NODE_MODULES_DIR, npm_name, path)

    def map_dependency(self, dep: str, path: str = "") -> Tuple[str, str]:
        """Npm package name for a bower dependency plus its renamed file path."""
        if dep in self.dependency_map:
            npm_name, renames = self.dependency_map[dep]
            return npm_name, renames.get(path, path)
        if dep.startswith(config.POLYMER_SCOPED_PREFIXES):
            return f"@polymer/{dep}", path
        if dep not in self._warned:
            self._warned.add(dep)
            message = f'WARN: bower->npm mapping for "{dep}" not found'
            logger.debug(message)
            self._warnings.append(message)
        return dep, path

    def pop_warnings(self) -> List[str]:
        """Package mapping warnings produced since the last call."""
        warnings, self._warnings = self._warnings, []
        return warnings

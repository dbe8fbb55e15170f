"""
Document loading and URL resolution.

URLs handled by the converter are package-relative POSIX paths
(`foo.html`, `lib/bar.html`, `bower_components/polymer/polymer.html`).
Loaders turn such a URL into document text; the resolver turns an `href`
found in a document into a package-relative URL.
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol

from .. import config

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:|^//")


class UrlLoader(Protocol):
    """Source of document contents."""

    def can_load(self, url: str) -> bool:
        ...

    def load(self, url: str) -> str:
        """Return the text of `url`; raise FileNotFoundError if missing."""
        ...


class InMemoryUrlLoader:
    """Loader backed by a dict of url -> contents."""

    def __init__(self, contents: Optional[Dict[str, str]] = None):
        self.url_contents: Dict[str, str] = dict(contents or {})

    def can_load(self, url: str) -> bool:
        return url in self.url_contents

    def load(self, url: str) -> str:
        try:
            return self.url_contents[url]
        except KeyError:
            raise FileNotFoundError(url) from None

    def iter_urls(self, suffix: str = ".html") -> Iterator[str]:
        return (url for url in self.url_contents if url.endswith(suffix))


class FileSystemUrlLoader:
    """Loader reading files below a package root directory."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def _path(self, url: str) -> Path:
        return self.root / url.lstrip("/")

    def can_load(self, url: str) -> bool:
        return self._path(url).is_file()

    def load(self, url: str) -> str:
        return self._path(url).read_text(encoding="utf-8")

    def iter_urls(self, suffix: str = ".html") -> Iterator[str]:
        """Package documents, skipping dependency and build directories."""
        for path in sorted(self.root.rglob(f"*{suffix}")):
            relative = path.relative_to(self.root)
            if config.is_skipped_directory(relative.parent):
                continue
            yield relative.as_posix()


class PackageUrlResolver:
    """Resolves hrefs relative to the document that contains them."""

    def is_external(self, href: str) -> bool:
        """URLs with a scheme (`https:`, `data:`) or protocol-relative `//`."""
        return bool(_SCHEME.match(href))

    def resolve(self, base_url: str, href: str) -> Optional[str]:
        """
        Package-relative URL for `href` as seen from `base_url`.

        Paths that climb above the package root land in `bower_components/`,
        which is where sibling packages live in the bower layout. Returns
        None for URLs outside the package's file space.
        """
        href = href.split("#", 1)[0].split("?", 1)[0].strip()
        if not href or self.is_external(href):
            return None
        if href.startswith("/"):
            return posixpath.normpath(href).lstrip("/")
        joined = posixpath.join(posixpath.dirname(base_url), href)
        resolved = posixpath.normpath(joined)
        if resolved.startswith("../"):
            while resolved.startswith("../"):
                resolved = resolved[3:]
            resolved = posixpath.join(config.BOWER_COMPONENTS_DIR, resolved)
        return resolved

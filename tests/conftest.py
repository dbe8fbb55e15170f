"""Shared fixtures for modulizer tests."""

import textwrap

import pytest

from modulizer.conversion.converter import ProjectConverter
from modulizer.core.types import ConversionSettings
from modulizer.parsing.loader import InMemoryUrlLoader
from modulizer.urls import BowerPackageUrlHandler, is_internal_url


def run_conversion(sources, package_name="some-package", package_type="element", **settings):
    """
    Convert an in-memory package.

    Every internal HTML document is a root; `test.html` (when present) is
    converted to a module even if nothing imports it.
    """
    loader = InMemoryUrlLoader(sources)
    if "test.html" in sources:
        settings.setdefault("includes", {"test.html"})
    handler = BowerPackageUrlHandler(package_name, package_type)
    converter = ProjectConverter(handler, ConversionSettings(**settings))
    roots = [url for url in loader.iter_urls(".html") if is_internal_url(url)]
    return converter.convert(loader, roots)


def js(text: str) -> str:
    """Expected module text written as an indented triple-quoted string."""
    return textwrap.dedent(text).lstrip("\n")


@pytest.fixture
def convert():
    return run_conversion


@pytest.fixture
def expected():
    return js

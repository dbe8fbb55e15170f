"""
Global Configuration and Conversion Defaults.

This module centralizes the defaults used when no explicit settings are
given: which global objects are treated as namespaces, where the template
tag function lives, and how bower package names map onto npm packages.
"""

from pathlib import Path
from typing import Dict, Set, Tuple

# --- Namespaces ---

# Global objects whose members are converted to module exports by default
DEFAULT_NAMESPACES: Set[str] = {"Polymer"}

# Fully-qualified path of the tagged template function used for templates
DEFAULT_HTML_TAG_PATH = "Polymer.html"

# JSDoc tag that marks a declaration as a namespace
NAMESPACE_JSDOC_TAG = "@namespace"

# JSDoc tags that mark a class as a custom element definition
CUSTOM_ELEMENT_JSDOC_TAGS: Tuple[str, ...] = ("@customElement", "@polymer")

# --- Package layout ---

DEFAULT_PACKAGE_TYPE = "element"
PACKAGE_TYPES: Tuple[str, ...] = ("element", "application")

# Directory that holds bower dependencies in the legacy layout
BOWER_COMPONENTS_DIR = "bower_components"

# Directory that holds npm dependencies in the converted layout
NODE_MODULES_DIR = "node_modules"

# Bower dependency name -> (npm package name, renamed files inside the package)
BOWER_TO_NPM: Dict[str, Tuple[str, Dict[str, str]]] = {
    "polymer": ("@polymer/polymer", {}),
    "shadycss": (
        "@webcomponents/shadycss",
        {
            "apply-shim.js": "entrypoints/apply-shim.js",
            "custom-style-interface.js": "entrypoints/custom-style-interface.js",
        },
    ),
    "webcomponentsjs": ("@webcomponents/webcomponentsjs", {}),
    "test-fixture": ("@polymer/test-fixture", {}),
    "web-component-tester": ("wct-browser-legacy", {}),
}

# Bower packages with these prefixes live under the @polymer npm scope
POLYMER_SCOPED_PREFIXES: Tuple[str, ...] = (
    "app-",
    "gold-",
    "iron-",
    "marked-",
    "neon-",
    "paper-",
    "platinum-",
    "prism-",
)

# --- Discovery ---

# Default output directory of the convert command
DEFAULT_OUT_DIR = "modulizer_out"

# Directories never scanned for documents to convert
SKIP_DIRECTORIES: Set[str] = {
    DEFAULT_OUT_DIR,
    ".git",
    "__pycache__",
    BOWER_COMPONENTS_DIR,
    NODE_MODULES_DIR,
    ".venv",
    "venv",
    "dist",
    "build",
}

# Script types that are executed as classic (non-module) JavaScript
CLASSIC_SCRIPT_TYPES: Set[str] = {
    "",
    "text/javascript",
    "application/javascript",
    "text/ecmascript",
}


def is_skipped_directory(path: Path) -> bool:
    """Check if any component of the path is in the skip list."""
    return any(part in SKIP_DIRECTORIES for part in path.parts)


# --- Special cases ---

# Namespace members exported under a different path than they are assigned to
EXPORT_ALIASES: Dict[str, str] = {
    "Polymer._polymerFn": "Polymer",
}

# Name of the hidden element that receives markup of converted documents
DOCUMENT_CONTAINER = "$_documentContainer"

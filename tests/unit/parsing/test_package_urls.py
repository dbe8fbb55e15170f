"""Unit tests for bower -> npm URL mapping."""

import pytest

from modulizer.urls import BowerPackageUrlHandler, is_internal_url, split_bower_url


class TestHelpers:
    def test_internal_urls(self):
        assert is_internal_url("my-el.html")
        assert is_internal_url("lib/util.html")
        assert not is_internal_url("bower_components/polymer/polymer.html")
        assert not is_internal_url("/bower_components/polymer/polymer.html")

    def test_split_bower_url(self):
        assert split_bower_url("bower_components/dep/a/b.html") == ("dep", "a/b.html")


class TestElementPackage:
    @pytest.fixture
    def handler(self):
        return BowerPackageUrlHandler("some-package")

    def test_html_url_to_js(self, handler):
        assert handler.convert_html_url_to_js("lib/a.html") == "lib/a.js"
        assert handler.convert_html_url_to_js("lib/a.js") == "lib/a.js"

    @pytest.mark.parametrize("source, target, expected", [
        ("test.html", "dep.html", "./dep.js"),
        ("test.html", "nested/test.html", "./nested/test.js"),
        ("nested/test.html", "lib.html", "../lib.js"),
        ("test.html", "bower_components/app-storage/app-storage.html",
         "../@polymer/app-storage/app-storage.js"),
        ("nested/test.html", "bower_components/app-route/app-route.html",
         "../../@polymer/app-route/app-route.js"),
        ("test.html", "bower_components/polymer/polymer.html", "../@polymer/polymer/polymer.js"),
        ("test.html", "bower_components/shadycss/apply-shim.html",
         "../@webcomponents/shadycss/entrypoints/apply-shim.js"),
    ])
    def test_import_paths(self, handler, source, target, expected):
        assert handler.get_path_for_import(source, target) == expected

    def test_scoped_package_name(self):
        handler = BowerPackageUrlHandler("@some-scope/some-package")
        path = handler.get_path_for_import(
            "test.html", "bower_components/app-storage/app-storage.html",
        )
        assert path == "../../@polymer/app-storage/app-storage.js"

    def test_unknown_dependency_warns_once(self, handler):
        assert handler.map_dependency("dep", "dep.js") == ("dep", "dep.js")
        handler.map_dependency("dep", "other.js")
        assert handler.pop_warnings() == ['WARN: bower->npm mapping for "dep" not found']
        assert handler.pop_warnings() == []

    def test_absolute_urls(self, handler):
        assert handler.convert_absolute_url(
            "/bower_components/app-route/app-route.js"
        ) == "/node_modules/@polymer/app-route/app-route.js"
        assert handler.convert_absolute_url("/lib/a.js") == "/lib/a.js"


class TestApplicationPackage:
    @pytest.fixture
    def handler(self):
        return BowerPackageUrlHandler("my-app", "application")

    def test_dependencies_live_in_node_modules(self, handler):
        assert handler.get_path_for_import(
            "test.html", "bower_components/app-storage/app-storage.html",
        ) == "./node_modules/@polymer/app-storage/app-storage.js"
        assert handler.get_path_for_import(
            "nested/test.html", "bower_components/app-storage/app-storage.html",
        ) == "../node_modules/@polymer/app-storage/app-storage.js"

    def test_internal_imports_are_plain_relative(self, handler):
        assert handler.get_path_for_import("test.html", "src/view.html") == "./src/view.js"

    def test_unknown_package_type(self):
        with pytest.raises(ValueError):
            BowerPackageUrlHandler("x", "library")

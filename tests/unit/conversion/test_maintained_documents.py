"""Tests for pages kept as HTML (documents nothing imports)."""


class TestMaintainedDocuments:
    def test_import_links_become_module_scripts(self, convert):
        results = convert({
            "index.html": '<link rel="import" href="./test.html">\n<div>Hi</div>\n',
            "test.html": "<script>\n  foo();\n</script>\n",
        })

        assert results.outputs["index.html"] == (
            '<script type="module" src="./test.js"></script>\n<div>Hi</div>\n'
        )
        assert results.outputs["test.js"] == "foo();\n"
        assert results.outputs["test.html"] is None

    def test_whitespace_between_links_is_preserved(self, convert):
        results = convert({
            "index.html": (
                '<link rel="import" href="./a.html">\n\n'
                '  <link rel="import" href="./b.html">\n'
                "<p>After</p>\n"
            ),
            "a.html": "<script>\n  a();\n</script>\n",
            "b.html": "<script>\n  b();\n</script>\n",
        })

        assert results.outputs["index.html"] == (
            '<script type="module" src="./a.js"></script>\n\n'
            '  <script type="module" src="./b.js"></script>\n'
            "<p>After</p>\n"
        )

    def test_scripts_after_imports_become_modules(self, convert, expected):
        results = convert({
            "index.html": (
                '<link rel="import" href="./foo.html">\n'
                "<script>\n"
                "  console.log(Polymer.foo);\n"
                "</script>\n"
            ),
            "foo.html": "<script>\n  Polymer.foo = 5;\n</script>\n",
        })

        assert results.outputs["index.html"] == expected("""
            <script type="module" src="./foo.js"></script>
            <script type="module">
            import { foo } from './foo.js';
            console.log(foo);
            </script>
        """)
        assert results.outputs["foo.js"] == "export const foo = 5;\n"

    def test_plain_scripts_are_untouched(self, convert):
        source = "<div>Hi</div>\n<script>\n  console.log('hi');\n</script>\n"
        results = convert({"index.html": source})
        assert results.outputs == {"index.html": source}

    def test_existing_module_scripts_are_untouched(self, convert):
        source = '<script type="module">\n  import "./a.js";\n</script>\n'
        results = convert({"index.html": source})
        assert results.outputs["index.html"] == source

    def test_relative_paths_from_subdirectory(self, convert):
        results = convert({
            "demo/index.html": '<link rel="import" href="../test.html">\n',
            "test.html": "<script>\n  foo();\n</script>\n",
        })

        assert results.outputs["demo/index.html"] == (
            '<script type="module" src="../test.js"></script>\n'
        )

    def test_dependency_links(self, convert):
        results = convert({"index.html": (
            '<link rel="import" href="../paper-button/paper-button.html">\n'
            '<link rel="import" href="/bower_components/app-route/app-route.html">\n'
        )})

        assert results.outputs["index.html"] == (
            '<script type="module" src="../@polymer/paper-button/paper-button.js"></script>\n'
            '<script type="module" src="/node_modules/@polymer/app-route/app-route.js"></script>\n'
        )

    def test_external_dependency_scripts_are_remapped(self, convert):
        results = convert({"index.html": (
            '<script src="../webcomponentsjs/webcomponents-lite.js"></script>\n'
        )})

        assert results.outputs["index.html"] == (
            '<script src="../@webcomponents/webcomponentsjs/webcomponents-lite.js"></script>\n'
        )

    def test_scripts_in_demo_snippets(self, convert, expected):
        results = convert({
            "index.html": (
                '<link rel="import" href="./foo.html">\n'
                "<demo-snippet>\n"
                "  <template>\n"
                "    <script>\n"
                "      console.log(Polymer.foo);\n"
                "    </script>\n"
                "  </template>\n"
                "</demo-snippet>\n"
            ),
            "foo.html": "<script>\n  Polymer.foo = 5;\n</script>\n",
        })

        assert results.outputs["index.html"] == expected("""
            <script type="module" src="./foo.js"></script>
            <demo-snippet>
              <template>
                <script type="module">
            import { foo } from './foo.js';
            console.log(foo);
            </script>
              </template>
            </demo-snippet>
        """)

    def test_declarations_in_maintained_pages_are_not_imported(self, convert):
        results = convert({
            "index.html": (
                '<link rel="import" href="./test.html">\n'
                "<script>\n  Polymer.foo = 1;\n</script>\n"
            ),
            "test.html": "<script>\n  console.log(Polymer.foo);\n</script>\n",
        })

        assert results.outputs["test.js"] == "console.log(Polymer.foo);\n"
        assert any("which is not converted to a module" in m for m in results.messages)

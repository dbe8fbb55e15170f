"""End-to-end tests for converting documents into modules."""

from modulizer.core.types import DiagnosticKind


def kinds(results):
    return [d.kind for d in results.diagnostics]


class TestImportsAndExports:
    def test_implicit_imports(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="./foo.html">\n'
                "<script>\n"
                "  console.log(Polymer.foo);\n"
                "  console.log(Polymer.bar);\n"
                "</script>\n"
            ),
            "foo.html": (
                '<link rel="import" href="./bar.html">\n'
                "<script>\n"
                "  Polymer.foo = 'foo';\n"
                "</script>\n"
            ),
            "bar.html": "<script>\n  Polymer.bar = 'bar';\n</script>\n",
        })

        assert results.outputs["test.js"] == expected("""
            import { foo } from './foo.js';
            import { bar } from './bar.js';
            console.log(foo);
            console.log(bar);
        """)
        assert results.outputs["foo.js"] == "import './bar.js';\nexport const foo = 'foo';\n"
        assert results.outputs["bar.js"] == "export const bar = 'bar';\n"
        assert sorted(results.deleted()) == ["bar.html", "foo.html", "test.html"]
        assert results.diagnostics == []

    def test_polymer_fn_becomes_polymer_export(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="./polymer.html">\n'
                "<script>\n"
                "  Polymer({is: 'x-foo'});\n"
                "</script>\n"
            ),
            "polymer.html": (
                "<script>\n"
                "  Polymer._polymerFn = function(info) {\n"
                "    console.log(info);\n"
                "  };\n"
                "</script>\n"
            ),
        })

        assert results.outputs["polymer.js"] == expected("""
            export const Polymer = function(info) {
              console.log(info);
            };
        """)
        assert results.outputs["test.js"] == expected("""
            import { Polymer } from './polymer.js';
            Polymer({is: 'x-foo'});
        """)

    def test_namespace_object_members(self, convert, expected):
        results = convert({"test.html": (
            "<script>\n"
            "  /**\n"
            "   * @namespace\n"
            "   */\n"
            "  Polymer.Namespace = {\n"
            "    obj: {},\n"
            "    func: function() {},\n"
            "    arrow: () => {}\n"
            "  };\n"
            "</script>\n"
        )})

        assert results.outputs["test.js"] == expected("""
            export const obj = {};
            export function func() {}
            export const arrow = () => {};
        """)

    def test_this_in_namespace_methods(self, convert, expected):
        results = convert({"test.html": (
            "<script>\n"
            "  /** @namespace */\n"
            "  Polymer.Ns = {\n"
            "    value: 1,\n"
            "    method() {\n"
            "      return this.value;\n"
            "    },\n"
            "  };\n"
            "</script>\n"
        )})

        assert results.outputs["test.js"] == expected("""
            export const value = 1;

            export function method() {
              return value;
            }
        """)

    def test_this_follows_function_scopes(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  (function() {\n"
            "    'use strict';\n"
            "    /**\n"
            "     * @namespace\n"
            "     * @memberof Polymer\n"
            "     */\n"
            "    const Namespace = {\n"
            "      fn: function() {\n"
            "        this.foobar();\n"
            "      },\n"
            "      isArrowFn: () => {\n"
            "        this.foobar();\n"
            "      },\n"
            "      ifBlock: function() {\n"
            "        if (this.foobar) {\n"
            "          this.foobar();\n"
            "        }\n"
            "      },\n"
            "      iffeFn: function() {\n"
            "        (function() {\n"
            "          this.foobar();\n"
            "        })();\n"
            "      },\n"
            "      inlineFn: function() {\n"
            "        function inline() {\n"
            "          this.foobar();\n"
            "        }\n"
            "        inline();\n"
            "      },\n"
            "      arrowFn: function() {\n"
            "        const baz = () => {\n"
            "          this.foobar();\n"
            "        };\n"
            "      },\n"
            "    };\n"
            "    Polymer.Namespace = Namespace;\n"
            "  })();\n"
            "</script>\n"
        )})

        output = results.outputs["test.js"]
        assert "export function fn() {\n  foobar();\n}" in output
        assert "export const isArrowFn = () => {\n  this.foobar();\n};" in output
        assert "export function ifBlock() {\n  if (foobar) {\n    foobar();\n  }\n}" in output
        assert "  (function() {\n    this.foobar();\n  })();" in output
        assert "  function inline() {\n    this.foobar();\n  }\n  inline();" in output
        assert "  const baz = () => {\n    foobar();\n  };" in output
        assert "Namespace" not in output
        assert "use strict" not in output

    def test_converted_output_converts_to_itself(self, convert):
        sources = {
            "index.html": (
                '<link rel="import" href="./foo.html">\n'
                "<script>\n"
                "  console.log(Polymer.foo);\n"
                "</script>\n"
            ),
            "foo.html": "<script>\n  Polymer.foo = 5;\n</script>\n",
        }
        first = convert(sources).outputs["index.html"]

        second = convert({"index.html": first})

        assert second.outputs == {"index.html": first}
        assert second.diagnostics == []

    def test_local_object_namespace(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  const Foo = {a: 1};\n"
            "  Polymer.Foo = Foo;\n"
            "  console.log(Foo.a);\n"
            "</script>\n"
        )})

        assert results.outputs["test.js"] == "export const a = 1;\nconsole.log(a);\n"

    def test_exports_a_reference(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  function helper() {}\n"
            "  Polymer.helper = helper;\n"
            "</script>\n"
        )})
        assert results.outputs["test.js"] == "function helper() {}\nexport { helper };\n"

    def test_reexport_of_included_binding(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="./dep.html">\n'
                "<script>\n"
                "  Polymer.bar = Polymer.foo;\n"
                "</script>\n"
            ),
            "dep.html": "<script>\n  Polymer.foo = 1;\n</script>\n",
        })

        assert results.outputs["test.js"] == expected("""
            import { foo } from './dep.js';
            export { foo as bar };
        """)

    def test_updated_binding_is_let(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  Polymer.foo = 1;\n"
            "  Polymer.foo++;\n"
            "</script>\n"
        )})
        assert results.outputs["test.js"] == "export let foo = 1;\nfoo++;\n"

    def test_whole_namespace_reference(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="./dep.html">\n'
                "<script>\n"
                "  const d = Polymer.Dep;\n"
                "  console.log(Polymer.Dep.a);\n"
                "</script>\n"
            ),
            "dep.html": (
                "<script>\n"
                "  /** @namespace */\n"
                "  Polymer.Dep = {\n"
                "    a: 1,\n"
                "  };\n"
                "</script>\n"
            ),
        })

        assert results.outputs["dep.js"] == "export const a = 1;\n"
        assert results.outputs["test.js"] == expected("""
            import * as dep from './dep.js';
            import { a } from './dep.js';
            const d = dep;
            console.log(a);
        """)

    def test_import_name_conflicts(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="./dep.html">\n'
                "<script>\n"
                "  const foo = 1;\n"
                "  console.log(Polymer.foo, foo);\n"
                "</script>\n"
            ),
            "dep.html": "<script>\n  Polymer.foo = 2;\n</script>\n",
        })

        assert results.outputs["test.js"] == expected("""
            import { foo as foo$0 } from './dep.js';
            const foo = 1;
            console.log(foo$0, foo);
        """)


class TestScriptRewrites:
    def test_wrapped_script_is_unwrapped(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  (function() {\n"
            "    'use strict';\n"
            "    Polymer.foo = 'bar';\n"
            "  })();\n"
            "</script>\n"
        )})
        assert results.outputs["test.js"] == "export const foo = 'bar';\n"

    def test_top_level_this_is_window(self, convert):
        results = convert({"test.html": "<script>\n  console.log(this.foo);\n</script>\n"})
        assert results.outputs["test.js"] == "console.log(window.foo);\n"

    def test_owner_document(self, convert):
        results = convert({"test.html": (
            "<script>\n"
            "  const t = document.currentScript.ownerDocument.querySelector('template');\n"
            "</script>\n"
        )})
        assert results.outputs["test.js"] == (
            "const t = window.document.querySelector('template');\n"
        )

    def test_reference_excludes_become_undefined(self, convert):
        results = convert(
            {"test.html": "<script>\n  console.log(Polymer.Settings.x);\n</script>\n"},
            reference_excludes=["Polymer.Settings"],
        )
        assert results.outputs["test.js"] == "console.log(undefined.x);\n"

    def test_excluded_documents_are_not_imported(self, convert):
        results = convert(
            {
                "test.html": '<link rel="import" href="./dep.html">\n<script>\n  foo();\n</script>\n',
                "dep.html": "<script>\n  Polymer.foo = 1;\n</script>\n",
            },
            excludes=["dep.html"],
        )
        assert results.outputs["test.js"] == "foo();\n"
        assert "dep.js" not in results.outputs

    def test_unowned_markup_and_comments(self, convert, expected):
        results = convert({"test.html": (
            "<!-- @license MIT -->\n"
            "<div>Hello</div>\n"
            "<script>\n"
            "  foo();\n"
            "</script>\n"
        )})

        assert results.outputs["test.js"] == expected("""
            const $_documentContainer = document.createElement('div');
            $_documentContainer.setAttribute('style', 'display: none;');
            $_documentContainer.innerHTML = `<div>Hello</div>`;
            document.head.appendChild($_documentContainer);
            /** @license MIT */
            foo();
        """)

    def test_renamed_dependency_files(self, convert):
        results = convert({"test.html": (
            '<link rel="import" href="../shadycss/apply-shim.html">\n'
            "<script>\n  foo();\n</script>\n"
        )})
        assert results.outputs["test.js"] == (
            "import '../@webcomponents/shadycss/entrypoints/apply-shim.js';\nfoo();\n"
        )


class TestDiagnostics:
    def test_unresolved_reference(self, convert):
        results = convert({"test.html": "<script>\n  console.log(Polymer.missing);\n</script>\n"})

        assert results.outputs["test.js"] == "console.log(Polymer.missing);\n"
        assert "Could not resolve reference Polymer.missing" in results.messages
        assert kinds(results) == [DiagnosticKind.UNRESOLVED_REFERENCE]

    def test_root_namespace_alone_is_not_reported(self, convert):
        results = convert({"test.html": "<script>\n  Polymer({is: 'x-foo'});\n</script>\n"})
        assert results.diagnostics == []

    def test_unknown_package_mapping(self, convert):
        results = convert({"test.html": (
            '<link rel="import" href="../unknown-dep/x.html">\n'
            "<script>\n  foo();\n</script>\n"
        )})

        assert results.outputs["test.js"] == "import '../unknown-dep/x.js';\nfoo();\n"
        assert 'WARN: bower->npm mapping for "unknown-dep" not found' in results.messages
        assert DiagnosticKind.PACKAGE_MAPPING in kinds(results)

    def test_dependencies_declaring_the_same_member(self, convert, expected):
        results = convert({
            "test.html": (
                '<link rel="import" href="../iron-a/iron-a.html">\n'
                '<link rel="import" href="../iron-b/iron-b.html">\n'
                "<script>\n  console.log(Polymer.shared);\n</script>\n"
            ),
            "bower_components/iron-a/iron-a.html": "<script>\n  Polymer.shared = 'a';\n</script>\n",
            "bower_components/iron-b/iron-b.html": "<script>\n  Polymer.shared = 'b';\n</script>\n",
        })

        assert results.outputs["test.js"] == expected("""
            import { shared } from '../@polymer/iron-a/iron-a.js';
            import '../@polymer/iron-b/iron-b.js';
            console.log(shared);
        """)
        assert kinds(results) == [DiagnosticKind.CONFLICTING_EXPORT]

    def test_syntax_error(self, convert):
        results = convert({"test.html": "<script>\n  foo(;\n</script>\n"})
        assert DiagnosticKind.PARSE_ERROR in kinds(results)
        assert "test.js" in results.outputs

    def test_write_without_setter(self, convert):
        results = convert({
            "test.html": (
                '<link rel="import" href="./dep.html">\n'
                "<script>\n  Polymer.foo = 2;\n</script>\n"
            ),
            "dep.html": "<script>\n  Polymer.foo = 1;\n</script>\n",
        })

        assert results.outputs["test.js"] == "import './dep.js';\nPolymer.foo = 2;\n"
        assert results.outputs["dep.js"] == "export let foo = 1;\n"
        assert "Cannot rewrite write to Polymer.foo exported by dep.html" in results.messages

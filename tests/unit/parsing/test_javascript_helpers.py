"""Unit tests for the JavaScript syntax helpers."""

import pytest

from modulizer.parsing.javascript import (
    declared_names,
    get_jsdoc,
    get_member_path,
    has_jsdoc_tag,
    is_use_strict,
    object_members,
    parse_javascript,
    property_key,
    statement_expression,
    string_value,
    top_level_statements,
    window_offset,
)


def first_expression(text):
    tree = parse_javascript(text)
    return statement_expression(top_level_statements(tree)[0]), text.encode("utf-8")


def assignment_target(text):
    expression, source = first_expression(text)
    return expression.child_by_field_name("left"), source


class TestMemberPath:
    @pytest.mark.parametrize("text, expected", [
        ("Foo.Bar = 'A';", ("Foo", "Bar")),
        ("Foo.Bar.Baz = 'A';", ("Foo", "Bar", "Baz")),
        ("window.Foo.Bar.Baz = 'A';", ("Foo", "Bar", "Baz")),
        ("window = 'A';", ("window",)),
    ])
    def test_paths(self, text, expected):
        node, source = assignment_target(text)
        assert get_member_path(node, source) == expected

    def test_this_rooted_chain_has_no_path(self):
        node, source = assignment_target("this.foo = 1;")
        assert get_member_path(node, source) is None

    def test_computed_access_has_no_path(self):
        node, source = assignment_target("Foo['Bar'] = 1;")
        assert get_member_path(node, source) is None

    def test_optional_chain_has_no_path(self):
        expression, source = first_expression("Foo?.Bar;")
        assert get_member_path(expression, source) is None

    def test_window_offset(self):
        node, source = assignment_target("window.Foo.Bar = 1;")
        assert window_offset(node, source) == 1
        node, source = assignment_target("Foo.Bar = 1;")
        assert window_offset(node, source) == 0


class TestLiterals:
    def test_string_values(self):
        for text, expected in [("'x-foo';", "x-foo"), ('"x-foo";', "x-foo"), ("`x-foo`;", "x-foo")]:
            expression, source = first_expression(text)
            assert string_value(expression, source) == expected

    def test_template_with_substitution_is_not_static(self):
        expression, source = first_expression("`x-${name}`;")
        assert string_value(expression, source) is None

    def test_use_strict(self):
        tree = parse_javascript("'use strict';\nfoo();")
        first, second = top_level_statements(tree)
        source = b"'use strict';\nfoo();"
        assert is_use_strict(first, source)
        assert not is_use_strict(second, source)

    def test_property_keys(self):
        text = "x = {a: 1, 'b': 2, [c]: 3, d() {}, e};"
        expression, source = first_expression(text)
        obj = expression.child_by_field_name("right")
        keys = [property_key(member, source) for member in object_members(obj)]
        assert keys == ["a", "b", None, "d", "e"]


class TestJsdoc:
    def test_jsdoc_directly_before_statement(self):
        text = "/** @namespace */\nvar NS = {};"
        tree = parse_javascript(text)
        statement = top_level_statements(tree)[0]
        source = text.encode("utf-8")
        assert get_jsdoc(statement, source) is not None
        assert has_jsdoc_tag(statement, source, "@namespace")
        assert not has_jsdoc_tag(statement, source, "@polymer")

    def test_plain_block_comment_is_not_jsdoc(self):
        text = "/* @namespace */\nvar NS = {};"
        tree = parse_javascript(text)
        statement = top_level_statements(tree)[0]
        assert not has_jsdoc_tag(statement, text.encode("utf-8"), "@namespace")

    def test_tag_prefix_does_not_match(self):
        text = "/** @namespaced */\nvar NS = {};"
        tree = parse_javascript(text)
        statement = top_level_statements(tree)[0]
        assert not has_jsdoc_tag(statement, text.encode("utf-8"), "@namespace")


class TestDeclaredNames:
    def test_collects_every_binding_form(self):
        text = (
            "var a = 1;\n"
            "function b(c) {}\n"
            "class D {}\n"
            "try {} catch (e) {}\n"
            "const {f, g: h} = x;\n"
            "const k = (m) => m;\n"
            "const n = p => p;\n"
        )
        names = declared_names(parse_javascript(text), text.encode("utf-8"))
        assert {"a", "b", "c", "D", "e", "f", "h", "k", "m", "n", "p"} <= names
        assert "g" not in names
        assert "x" not in names

"""
Unit tests for the 'convert' command.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from modulizer.cli.commands.convert import convert
from modulizer.cli.main import main
from modulizer.core.errors import UnresolvedIncludeError
from modulizer.core.result import Err


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def package(tmp_path):
    root = tmp_path / "my-el"
    root.mkdir()
    (root / "bower.json").write_text(json.dumps({"name": "my-el", "main": ["my-el.html"]}))
    (root / "my-el.html").write_text("<script>\n  Polymer.foo = 1;\n</script>\n")
    (root / "index.html").write_text('<link rel="import" href="./my-el.html">\n')
    return root


class TestConvertCommand:
    def test_json_summary(self, runner, package, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(convert, [str(package), "--out", str(out), "--json"])

        assert result.exit_code == 0
        summary = json.loads(result.output)
        assert summary["files_written"] == 2
        assert summary["files_deleted"] == 1
        assert summary["diagnostics"] == []
        assert summary["output_dir"] == str(out.resolve())

    def test_output_tree(self, runner, package, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(convert, [str(package), "--out", str(out)])

        assert result.exit_code == 0
        assert "Conversion complete" in result.output
        assert (out / "my-el.js").read_text() == "export const foo = 1;\n"
        assert not (out / "my-el.html").exists()
        assert (out / "bower.json").is_file()
        assert (out / "index.html").read_text() == (
            '<script type="module" src="./my-el.js"></script>\n'
        )
        assert (package / "my-el.html").is_file()

    def test_clean_removes_stale_output(self, runner, package, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "stale.js").write_text("")

        result = runner.invoke(convert, [str(package), "--out", str(out), "--clean"])

        assert result.exit_code == 0
        assert not (out / "stale.js").exists()

    def test_settings_are_passed_through(self, runner, package, tmp_path):
        with patch("modulizer.cli.commands.convert.convert_package") as mock_convert:
            mock_convert.return_value = Err(UnresolvedIncludeError("x.html"))
            runner.invoke(convert, [
                str(package), "--out", str(tmp_path / "out"),
                "--namespace", "Foo", "--exclude", "a.html", "--include", "b.html",
                "--add-import-path", "--package-type", "application",
            ])

        _, kwargs = mock_convert.call_args
        settings = kwargs["settings"]
        assert settings.namespaces == frozenset({"Foo"})
        assert settings.excludes == frozenset({"a.html"})
        assert settings.includes == frozenset({"b.html"})
        assert settings.add_import_path
        assert kwargs["package_type"] == "application"

    def test_conversion_error_exits_nonzero(self, runner, package, tmp_path):
        (package / "my-el.html").write_text('<link rel="import" href="./missing.html">\n')

        result = runner.invoke(convert, [str(package), "--out", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Could not load missing.html" in result.output
        assert not (tmp_path / "out").exists()

    def test_conversion_error_as_json(self, runner, package, tmp_path):
        with patch("modulizer.cli.commands.convert.convert_package") as mock_convert:
            mock_convert.return_value = Err(UnresolvedIncludeError("x.html", "y.html"))
            result = runner.invoke(convert, [str(package), "--out", str(tmp_path / "out"), "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": "Could not load x.html (imported from y.html)"}


class TestMain:
    def test_help_lists_convert(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "convert" in result.output

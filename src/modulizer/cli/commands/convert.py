"""
Convert Command - Rewrite a bower package as JavaScript modules.

Copies the package into the output directory, then replaces every
converted HTML document with its module and rewrites the documents that
stay HTML.
"""

import logging
import shutil
import sys
from pathlib import Path
from typing import List, Tuple

import click
from pydantic import BaseModel

from ... import config
from ...conversion.converter import convert_package, write_results
from ...core.types import ConversionSettings, Diagnostic
from ..utils import echo_error, echo_info, echo_success, print_diagnostics

logger = logging.getLogger(__name__)


# --- API Models ---
class ConvertSummary(BaseModel):
    """
    Structured response for the convert command.
    """
    package_name: str
    output_dir: str
    files_written: int
    files_deleted: int
    diagnostics: List[Diagnostic]


class ConvertSummaryError(BaseModel):
    """Structured error response for the convert command."""
    error: str


def _copy_package(source: Path, target: Path) -> None:
    """Copy the package into `target`, skipping dependency directories."""
    skip = shutil.ignore_patterns(*config.SKIP_DIRECTORIES)

    def ignore(directory, names):
        ignored = set(skip(directory, names))
        ignored.update(n for n in names if Path(directory, n).resolve() == target)
        return ignored

    shutil.copytree(source, target, ignore=ignore, dirs_exist_ok=True)


@click.command()
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--out", "out_dir", default=config.DEFAULT_OUT_DIR, show_default=True,
              help="Directory the converted package is written to")
@click.option("--package-name", help="npm name of the package (default: bower.json name)")
@click.option("--package-type", type=click.Choice(config.PACKAGE_TYPES),
              default=config.DEFAULT_PACKAGE_TYPE, show_default=True)
@click.option("--namespace", "namespaces", multiple=True,
              help="Global namespace to convert (repeatable, default: Polymer)")
@click.option("--exclude", "excludes", multiple=True, help="Document to leave untouched")
@click.option("--reference-exclude", "reference_excludes", multiple=True,
              help="Namespace path rewritten to undefined instead of imported")
@click.option("--include", "includes", multiple=True,
              help="Document always converted to a module")
@click.option("--add-import-path", is_flag=True, help="Add importPath to element definitions")
@click.option("--clean", is_flag=True, help="Remove the output directory first")
@click.option("--delete-files", multiple=True, help="Glob of output files to delete")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def convert(
    directory: str,
    out_dir: str,
    package_name: str,
    package_type: str,
    namespaces: Tuple[str, ...],
    excludes: Tuple[str, ...],
    reference_excludes: Tuple[str, ...],
    includes: Tuple[str, ...],
    add_import_path: bool,
    clean: bool,
    delete_files: Tuple[str, ...],
    as_json: bool,
):
    """
    Convert the HTML documents of DIRECTORY to JavaScript modules.
    """
    package_dir = Path(directory).resolve()
    out_path = Path(out_dir).resolve()

    settings = ConversionSettings(
        namespaces=namespaces or config.DEFAULT_NAMESPACES,
        excludes=excludes,
        reference_excludes=reference_excludes,
        includes=includes,
        add_import_path=add_import_path,
    )

    if not as_json:
        click.echo(f"🔧 Converting {package_dir}")

    result = convert_package(
        package_dir,
        package_name=package_name,
        package_type=package_type,
        settings=settings,
    )
    if result.is_err():
        if as_json:
            click.echo(ConvertSummaryError(error=str(result.error)).model_dump_json(indent=2))
        else:
            echo_error(str(result.error))
        sys.exit(1)

    results = result.unwrap()
    if clean and out_path.exists() and out_path != package_dir:
        shutil.rmtree(out_path)
    if out_path != package_dir:
        _copy_package(package_dir, out_path)
    written = write_results(out_path, results, delete_files)

    summary = ConvertSummary(
        package_name=package_name or package_dir.name,
        output_dir=str(out_path),
        files_written=len(written),
        files_deleted=len(results.deleted()),
        diagnostics=results.diagnostics,
    )
    if as_json:
        click.echo(summary.model_dump_json(indent=2))
        return

    echo_success("Conversion complete")
    echo_info(f"Wrote {summary.files_written} files to {out_path}")
    echo_info(f"Replaced {summary.files_deleted} HTML documents")
    print_diagnostics(results.diagnostics)


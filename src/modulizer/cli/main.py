"""
modulizer CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging

import click

from .commands import convert


@click.group()
@click.version_option(package_name="modulizer")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug)")
def main(verbose: int):
    """modulizer: HTML imports to JavaScript modules.

    Rewrites a package built on <link rel="import"> and global namespace
    objects into ES modules with explicit imports and exports.

    \b
    Quick Start:
      modulizer convert ./my-element --out ./converted
      modulizer convert . --namespace Polymer --include my-element.html
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Register commands
main.add_command(convert.convert)

if __name__ == "__main__":
    main()

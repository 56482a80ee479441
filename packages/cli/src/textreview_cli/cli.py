"""CLI entry point for textreview.

Commands:
  review  : review one or more files (or directories) right now
  watch   : review text files under a directory as they appear and change
  init    : write a starter .textreview.yml
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from textreview_cli.commands.init import init_cmd
from textreview_cli.commands.review import review_cmd
from textreview_cli.commands.watch import watch_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("llm-text-review"),
    prog_name="textreview",
)
@click.option(
    "--config",
    "config_path",
    default=".textreview.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="TEXTREVIEW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Review prose with a local language model and report issues inline."""
    from textreview_core.config import load_config

    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["config"] = load_config(config_path)


main.add_command(review_cmd)
main.add_command(watch_cmd)
main.add_command(init_cmd)

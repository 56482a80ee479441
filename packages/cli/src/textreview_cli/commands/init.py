"""init command: write a starter configuration file."""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from textreview_core.config import DEFAULT_CONFIG

console = Console()


@click.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.option("--yes", "-y", is_flag=True, help="Accept all defaults without prompting.")
@click.pass_context
def init_cmd(ctx, force: bool, yes: bool):
    """Create a .textreview.yml with the default settings.

    Asks for the model server's port and model name unless --yes is given.
    """
    path = Path(ctx.obj["config_path"])
    if path.exists() and not force:
        raise click.UsageError(f"{path} already exists. Use --force to overwrite it.")

    config = {key: value for key, value in DEFAULT_CONFIG.items()}
    if not yes:
        config["port"] = click.prompt("Local model server port", type=int, default=DEFAULT_CONFIG["port"])
        config["model"] = click.prompt("Model identifier", default=DEFAULT_CONFIG["model"])
        instructions = click.prompt(
            "Custom instruction file (blank for none)", default="", show_default=False
        ).strip()
        config["custom_instruction_file"] = instructions or None

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, sort_keys=False, allow_unicode=True)

    console.print(f"[green]Wrote {path}[/green]")

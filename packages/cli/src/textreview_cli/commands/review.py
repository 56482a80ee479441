"""review command: review files on demand."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from textreview_cli.runtime import build_client, iter_candidates
from textreview_core.document import Document
from textreview_core.reviewer import ReviewService
from textreview_core.sink import ConsoleSink

console = Console()


@click.command("review")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--port", type=int, default=None, help="Port of the local model server. Overrides config file.")
@click.option("--model", default=None, help="Model identifier sent to the server. Overrides config file.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "text"]),
    default="rich",
    show_default=True,
    help="rich: coloured per-file report. text: one '[SEVERITY]message [Ln N, Col C]' line per issue.",
)
@click.pass_context
def review_cmd(ctx, paths: tuple[Path, ...], port: int | None, model: str | None, output_format: str):
    """Review text files with the local model.

    Directories are searched recursively for Markdown, plain text, LaTeX,
    reStructuredText and Org files. Manual reviews ignore the per-document
    cooldown; include/exclude patterns from the config still apply.
    """
    config = dict(ctx.obj["config"])
    for key, value in (("port", port), ("model", model)):
        if value is not None:
            config[key] = value

    documents = [Document.from_path(p) for p in iter_candidates(paths)]
    if not documents:
        console.print("[yellow]No reviewable files found.[/yellow]")
        return

    root = Path.cwd()
    client = build_client(config, root)
    service = ReviewService(config, client, ConsoleSink(console=console), roots=[str(root)])

    queued = []
    for doc in documents:
        if not service.is_reviewable(doc):
            console.print(f"  Skipping: {escape(doc.file_name)}")
            continue
        if output_format == "text":
            future = service.scheduler.review_now(doc.uri, lambda doc=doc: client.request_review(doc))
        else:
            future = service.review_now(doc)
        queued.append((doc, future))

    try:
        failed = 0
        for doc, future in queued:
            result = future.result()
            if output_format == "text":
                click.echo(f"# {doc.file_name}")
                click.echo(result.value if result.ok else "")
            elif not result.ok or result.value is None:
                failed += 1
                console.print(
                    f"[yellow]{escape(doc.file_name)}: no review result (is the model server running?)[/yellow]"
                )
    finally:
        service.deactivate()

    if output_format == "rich":
        console.print(f"\n[bold]Reviewed {len(queued) - failed} of {len(queued)} file(s).[/bold]")

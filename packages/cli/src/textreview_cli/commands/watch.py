"""watch command: review text files as they are created and saved.

Stands in for an editor: a file appearing under the root is treated as an
open, a modification-time change as a save, and a deletion as a close. The
cooldown and worker limits from the config apply exactly as they would for
editor events.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import click
from rich.console import Console

from textreview_cli.runtime import build_client, iter_candidates
from textreview_core.document import Document
from textreview_core.reviewer import ReviewService
from textreview_core.sink import ConsoleSink

console = Console()
logger = logging.getLogger(__name__)


class WorkspaceWatcher:
    """Polls a directory tree and forwards open/save/close events to a ReviewService."""

    def __init__(self, root: Path, service: ReviewService | None = None):
        self.root = root
        self.service = service
        self._mtimes: dict[Path, float] = {}

    def is_visible(self, uri: str) -> bool:
        return any(p.as_uri() == uri for p in self._mtimes)

    def _scan(self) -> dict[Path, float]:
        snapshot = {}
        for path in iter_candidates([self.root]):
            try:
                snapshot[path.resolve()] = path.stat().st_mtime
            except OSError:
                # Deleted between listing and stat.
                continue
        return snapshot

    def prime(self) -> None:
        """Record the current tree without firing events."""
        self._mtimes = self._scan()

    def poll(self) -> list[tuple[str, Path]]:
        """Diff the tree against the last poll and dispatch events; returns (event, path) pairs."""
        current = self._scan()
        previous, self._mtimes = self._mtimes, current
        events: list[tuple[str, Path]] = []
        for path, mtime in current.items():
            if path not in previous:
                events.append(("open", path))
            elif mtime != previous[path]:
                events.append(("save", path))
        for path in previous:
            if path not in current:
                events.append(("close", path))

        for event, path in events:
            logger.debug("%s: %s", event, path)
            if event == "close":
                self.service.on_close(Document(uri=path.as_uri(), text="", path=str(path)))
                continue
            try:
                document = Document.from_path(path)
            except OSError as e:
                logger.warning("Could not read %s: %s", path, e)
                continue
            if event == "open":
                self.service.on_open(document)
            else:
                self.service.on_save(document)
        return events


@click.command("watch")
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--interval", default=1.0, show_default=True, help="Seconds between directory scans.")
@click.option("--review-existing", is_flag=True, help="Treat files already present at startup as opened.")
@click.pass_context
def watch_cmd(ctx, root: Path, interval: float, review_existing: bool):
    """Watch ROOT and review text files whenever they are saved.

    Press Ctrl-C to stop.
    """
    config = ctx.obj["config"]
    root = root.resolve()

    watcher = WorkspaceWatcher(root)
    sink = ConsoleSink(console=console, is_visible=watcher.is_visible)
    service = ReviewService(config, build_client(config, root), sink, roots=[str(root)])
    watcher.service = service

    if not review_existing:
        watcher.prime()

    console.print(f"[bold cyan]Watching {root}[/bold cyan] [dim](Ctrl-C to stop)[/dim]")
    try:
        while True:
            watcher.poll()
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping; waiting for running reviews to finish...[/dim]")
    finally:
        service.deactivate()

"""Shared wiring for commands that run reviews."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from textreview_core.client import ReviewClient
from textreview_core.config import load_custom_instructions
from textreview_core.document import EXTENSION_LANGUAGE_IDS


def build_client(config: dict, root: Path) -> ReviewClient:
    custom = load_custom_instructions(config, root=str(root))
    return ReviewClient.from_config(config, custom_instructions=custom)


def is_candidate(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in EXTENSION_LANGUAGE_IDS


def iter_candidates(paths: Iterable[Path]) -> Iterator[Path]:
    """Yield reviewable files, expanding directories recursively in sorted order.

    Explicit file arguments are always yielded; the service decides later
    whether their language is reviewed.
    """
    for path in paths:
        if path.is_dir():
            yield from (p for p in sorted(path.rglob("*")) if is_candidate(p))
        elif path.is_file():
            yield path

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from textreview_core.utils.paths import DEFAULT_EXCLUDE_PATTERNS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "model": "local-model",
    "host": "localhost",
    "port": 8080,
    "threads": 2,  # reviews allowed to run at once across all documents
    "cooldown_seconds": 30,
    "custom_instruction_file": None,  # appended verbatim to the review prompt
    "exclude": list(DEFAULT_EXCLUDE_PATTERNS),
    "include": [],  # empty = every text document is eligible
    "auto_review": True,  # review on save
    "auto_review_on_open": True,
}

_LIST_KEYS = ("exclude", "include")

# Environment variables win over the config file but lose to CLI flags.
_ENV_OVERRIDES = {
    "TEXTREVIEW_MODEL": ("model", str),
    "TEXTREVIEW_PORT": ("port", int),
}

# Numeric settings and their lower bounds; bad values fall back to the default.
_NUMERIC_KEYS = {
    "port": (int, 1),
    "threads": (int, 1),
    "cooldown_seconds": (float, 0),
}


def load_config(config_path: str = ".textreview.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .textreview.yml in the current directory
      3. TEXTREVIEW_* environment variables
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)
    for key in _LIST_KEYS:
        config[key] = list(DEFAULT_CONFIG[key])

    path = Path(config_path)
    if path.exists():
        with open(path, encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for env_name, (key, cast) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            try:
                config[key] = cast(value)
            except ValueError:
                logger.warning("Ignoring invalid %s=%r", env_name, value)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # A null list in the YAML file means "none", not "use the default".
    for key in _LIST_KEYS:
        config[key] = list(config.get(key) or [])

    for key, (cast, minimum) in _NUMERIC_KEYS.items():
        value = config.get(key)
        try:
            if isinstance(value, bool) or cast(value) < minimum:
                raise ValueError(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid %s=%r, using %r", key, value, DEFAULT_CONFIG[key])
            config[key] = DEFAULT_CONFIG[key]

    return config


def load_custom_instructions(config: dict, root: Optional[str] = None) -> Optional[str]:
    """
    Read the optional custom instruction file.

    Relative paths resolve against ``root`` (the first workspace folder) when
    given. A missing or unreadable file is not an error: the review simply
    runs with the built-in prompt.
    """
    custom_path = config.get("custom_instruction_file")
    if not custom_path:
        return None

    p = Path(custom_path)
    if not p.is_absolute() and root is not None:
        p = Path(root) / p
    try:
        return p.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Could not read custom instruction file %s: %s", p, e)
        return None

import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "remote": "origin",
    "notes_ref_prefix": "refs/notes/devtools",
    "target_ref": "refs/heads/master",  # default target for new review requests
    "submit_strategy": "fast-forward",  # "fast-forward" | "merge" | "rebase"
    "author": None,  # None = use `git config user.email`
}

SUBMIT_STRATEGIES = ("fast-forward", "merge", "rebase")


def load_config(config_path: str = ".revnotes.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .revnotes.yml in the current directory
      3. CLI argument overrides
      4. REVNOTES_AUTHOR from the environment
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    author = os.environ.get("REVNOTES_AUTHOR")
    if author:
        config["author"] = author

    if config["submit_strategy"] not in SUBMIT_STRATEGIES:
        raise ValueError(
            f"Unknown submit_strategy: {config['submit_strategy']!r}. Choose one of {', '.join(SUBMIT_STRATEGIES)}."
        )

    return config

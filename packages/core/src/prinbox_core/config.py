from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from prinbox_core.compact import PRIORITY_ALL, CompactOptions
from prinbox_core.models import PRIORITIES

logger = logging.getLogger(__name__)

FORMATS = ("md", "json")

DEFAULT_CONFIG: dict = {
    "repo": None,
    "pr": 0,
    "format": "md",
    "all": False,
    "p0": False,  # True while `priority` comes from a p0 shorthand
    "priority": PRIORITY_ALL,
    "budget": 0,  # 0 = unlimited
    "include_diff": False,
    "include_times": False,
    "all_comments": False,
    "include_issue_comments": False,
    "no_update_check": False,
    "prompt": "",
    "prompt_file": "",
    "prompt_inline": "",  # CLI only
}

# Keys that live at the top level of the YAML file rather than under `defaults:`.
_TOP_LEVEL_KEYS = ("prompt", "prompt_file")

GLOBAL_CONFIG_PATH = Path(".config") / "gh" / "pr-inbox.yml"
REPO_CONFIG_PATH = Path(".github") / "pr-inbox.yml"


@dataclass(frozen=True)
class InboxConfig:
    """Settings for one invocation. Built once by load_config and never mutated."""

    repo: Optional[str] = None
    pr: int = 0
    format: str = "md"
    include_resolved: bool = False
    priority: str = PRIORITY_ALL
    budget: int = 0
    include_diff: bool = False
    include_times: bool = False
    all_comments: bool = False
    include_issue_comments: bool = False
    no_update_check: bool = False
    prompt: str = ""
    prompt_file: str = ""
    prompt_inline: str = ""

    def compact_options(self) -> CompactOptions:
        return CompactOptions(
            include_resolved=self.include_resolved,
            priority=self.priority,
            include_diff=self.include_diff,
            include_times=self.include_times,
            all_comments=self.all_comments,
            budget=self.budget,
        )

    def with_detected(self, repo: Optional[str] = None, pr: Optional[int] = None) -> InboxConfig:
        """Fill repo/PR from auto-detection, only where still unset."""
        changes = {}
        if not self.repo and repo:
            changes["repo"] = repo
        if not self.pr and pr:
            changes["pr"] = pr
        return dataclasses.replace(self, **changes) if changes else self


def _read_file(path: Path) -> dict:
    """Flatten one YAML config file into DEFAULT_CONFIG-shaped keys."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping.")

    values = {k: raw[k] for k in _TOP_LEVEL_KEYS if raw.get(k) is not None}
    defaults = raw.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ValueError(f"'defaults' in {path} must be a mapping.")
    for key, value in defaults.items():
        if key not in DEFAULT_CONFIG:
            logger.warning("Ignoring unknown key %r in %s", key, path)
            continue
        values[key] = value
    return values


def config_paths(repo_root: Optional[str] = None, home: Optional[str] = None) -> list[Path]:
    """Config files in increasing precedence: global, then repo."""
    home_dir = Path(home) if home else Path.home()
    paths = [home_dir / GLOBAL_CONFIG_PATH]
    if repo_root:
        paths.append(Path(repo_root) / REPO_CONFIG_PATH)
    return paths


def load_config(
    repo_root: Optional[str] = None,
    cli_overrides: Optional[dict] = None,
    home: Optional[str] = None,
) -> InboxConfig:
    """
    Build the invocation config by merging (in order of precedence):
      1. Built-in defaults
      2. ~/.config/gh/pr-inbox.yml
      3. <repo_root>/.github/pr-inbox.yml
      4. CLI argument overrides
    Auto-detected repo/PR values are applied later via InboxConfig.with_detected.
    """
    config = dict(DEFAULT_CONFIG)

    for path in config_paths(repo_root, home):
        if path.exists():
            logger.debug("Loading config from %s", path)
            _merge(config, _read_file(path))

    if cli_overrides:
        _merge(config, {k: v for k, v in cli_overrides.items() if v is not None})

    return _to_config(config)


def _merge(config: dict, values: dict) -> None:
    """Apply one source on top of ``config``, folding ``p0`` into ``priority``.

    Within a single source ``p0: true`` wins over ``priority``. ``p0: false``
    only clears a P0 filter that an earlier source set through ``p0``.
    """
    values = dict(values)
    p0 = values.pop("p0", None)
    if "priority" in values:
        config["p0"] = False
    if p0:
        values["priority"] = "P0"
        config["p0"] = True
    elif p0 is not None and "priority" not in values and config["p0"]:
        values["priority"] = PRIORITY_ALL
        config["p0"] = False
    config.update(values)


def _to_config(config: dict) -> InboxConfig:
    fmt = config["format"] or "md"
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt!r}. Choose 'md' or 'json'.")

    priority = str(config["priority"] or PRIORITY_ALL)
    if priority != PRIORITY_ALL:
        priority = priority.upper()
    if priority != PRIORITY_ALL and priority not in PRIORITIES:
        raise ValueError(f"Unknown priority: {config['priority']!r}. Choose 'all', 'P0', 'P1' or 'P2'.")

    try:
        budget = int(config["budget"] or 0)
        pr = int(config["pr"] or 0)
    except (TypeError, ValueError) as e:
        raise ValueError(f"budget and pr must be integers: {e}") from e
    if budget < 0:
        raise ValueError(f"budget must be >= 0, got {budget}")

    return InboxConfig(
        repo=config["repo"] or None,
        pr=pr,
        format=fmt,
        include_resolved=bool(config["all"]),
        priority=priority,
        budget=budget,
        include_diff=bool(config["include_diff"]),
        include_times=bool(config["include_times"]),
        all_comments=bool(config["all_comments"]),
        include_issue_comments=bool(config["include_issue_comments"]),
        no_update_check=bool(config["no_update_check"]),
        prompt=config["prompt"] or "",
        prompt_file=config["prompt_file"] or "",
        prompt_inline=config["prompt_inline"] or "",
    )

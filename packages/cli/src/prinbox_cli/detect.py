"""Auto-detect the repository and pull request from the current checkout.

Both lookups shell out to the GitHub CLI and return None when gh is missing,
not authenticated, or the current branch has no open PR.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def _gh_output(*args: str) -> str | None:
    try:
        result = subprocess.run(["gh", *args], capture_output=True, text=True, timeout=10)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh %s failed: %s", " ".join(args), e)
        return None
    if result.returncode != 0:
        logger.debug("gh %s exited %d: %s", " ".join(args), result.returncode, result.stderr.strip())
        return None
    return result.stdout.strip() or None


def current_repository() -> str | None:
    return _gh_output("repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner")


def current_pr_number() -> int | None:
    out = _gh_output("pr", "view", "--json", "number", "-q", ".number")
    if out is None:
        return None
    try:
        return int(out)
    except ValueError:
        logger.debug("Unexpected PR number from gh: %r", out)
        return None

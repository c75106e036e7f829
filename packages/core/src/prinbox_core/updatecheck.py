"""Background check for a newer prinbox release.

start() returns immediately with a Future; the caller polls it with
try_receive() once its own work is done and never waits on it. Any failure
(network, rate limit, unparsable tag) simply yields no message.
"""

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import Future
from typing import NamedTuple

from github import Github

logger = logging.getLogger(__name__)

RELEASE_REPO = "prinbox/prinbox"
DEFAULT_TIMEOUT = 2.0

_DIGITS_RE = re.compile(r"^[0-9]+$")


class Semver(NamedTuple):
    major: int
    minor: int
    patch: int


def parse_semver_tag(tag: str) -> Semver | None:
    """Parse a ``vMAJOR.MINOR.PATCH`` tag, ignoring pre-release/build suffixes."""
    tag = tag.strip()
    if not tag.startswith("v"):
        return None
    core = tag[1:].split("-", 1)[0].split("+", 1)[0]
    parts = core.split(".")
    if len(parts) != 3:
        return None
    for part in parts:
        if not _DIGITS_RE.match(part):
            return None
        if len(part) > 1 and part.startswith("0"):
            return None
    return Semver(*(int(p) for p in parts))


def is_newer(latest_tag: str, current_tag: str) -> bool:
    latest = parse_semver_tag(latest_tag)
    current = parse_semver_tag(current_tag)
    if latest is None or current is None:
        return False
    return latest > current


def latest_release_tag(repo: str = RELEASE_REPO, timeout: float = DEFAULT_TIMEOUT) -> str:
    gh = Github(timeout=timeout, retry=None)
    return gh.get_repo(repo).get_latest_release().tag_name.strip()


def check_once(current_version: str, timeout: float = DEFAULT_TIMEOUT) -> str | None:
    current = current_version.strip()
    if not current or current == "dev":
        return None
    if not current.startswith("v"):
        current = "v" + current

    latest = latest_release_tag(timeout=timeout)
    if not is_newer(latest, current):
        return None
    return f"Update available: {latest} (current {current}). Run: pip install --upgrade prinbox"


def _run(future: Future, current_version: str, timeout: float) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        future.set_result(check_once(current_version, timeout))
    except Exception as e:  # non-fatal: no notice is shown
        logger.debug("Update check failed: %s", e)
        future.set_exception(e)


def start(current_version: str, timeout: float = DEFAULT_TIMEOUT) -> Future:
    """Launch the check on a daemon thread and return its Future.

    The thread is a daemon so a slow network never delays process exit.
    """
    future: Future = Future()
    worker = threading.Thread(
        target=_run, args=(future, current_version, timeout), name="prinbox-update-check", daemon=True
    )
    worker.start()
    return future


def try_receive(future: Future | None) -> str | None:
    """Return the update message if the check already finished, else None. Never blocks."""
    if future is None or not future.done() or future.cancelled():
        return None
    if future.exception() is not None:
        return None
    return future.result()

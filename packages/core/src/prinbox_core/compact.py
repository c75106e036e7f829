"""Reduce threads to a prioritized, ordered list of inbox items."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from prinbox_core.models import PRIORITIES, Comment, InboxItem, Thread, priority_rank
from prinbox_core.utils.text import condense

logger = logging.getLogger(__name__)

HIGH_SIGNALS = ("must", "block", "blocking", "security", "crash", "bug", "failure", "incorrect")
LOW_SIGNALS = ("nit", "nitpick", "style", "optional", "suggest", "tiny")

# Threads with more comments than this are treated as contentious.
LONG_THREAD_THRESHOLD = 4

PRIORITY_ALL = "all"


@dataclass(frozen=True)
class CompactOptions:
    include_resolved: bool = False
    priority: str = PRIORITY_ALL  # "all" or one of PRIORITIES
    include_diff: bool = False
    include_times: bool = False
    all_comments: bool = False
    budget: int = 0  # max items, 0 = unlimited

    def __post_init__(self):
        if self.priority != PRIORITY_ALL and self.priority not in PRIORITIES:
            raise ValueError(f"Unknown priority filter: {self.priority!r}. Choose 'all', 'P0', 'P1' or 'P2'.")
        if self.budget < 0:
            raise ValueError(f"budget must be >= 0, got {self.budget}")


def determine_priority(thread: Thread, body: str) -> str:
    """Classify a thread from its root comment text.

    Order matters: high-signal words win even on long threads, and the
    long-thread rule is checked before low-signal words can demote to P2.
    """
    text = body.lower()
    if any(sig in text for sig in HIGH_SIGNALS):
        return "P0"
    if len(thread.comments) > LONG_THREAD_THRESHOLD:
        return "P1"
    if any(sig in text for sig in LOW_SIGNALS):
        return "P2"
    return "P1"


def _choose_url(thread: Thread, latest: Comment) -> str:
    return latest.url or thread.url


def _copy_comments(comments: tuple[Comment, ...], include_times: bool) -> tuple[Comment, ...]:
    if include_times:
        return tuple(comments)
    return tuple(
        Comment(id=c.id, body=c.body, author=c.author, created_at="", url=c.url) for c in comments
    )


def sort_key(item: InboxItem) -> tuple:
    """(priority rank, file path, line number, thread id)."""
    return (priority_rank(item.priority), item.file_path, item.line_number, item.thread_id)


class Compactor:
    """Transforms threads into prioritized inbox items."""

    def __init__(self, options: CompactOptions | None = None):
        self.options = options or CompactOptions()

    def compact(self, threads) -> list[InboxItem]:
        opts = self.options
        items: list[InboxItem] = []

        for thread in threads:
            if thread.resolved and not opts.include_resolved:
                continue
            if not thread.comments:
                continue

            root = thread.comments[0]
            latest = thread.comments[-1]

            item = InboxItem(
                thread_id=thread.id,
                priority=determine_priority(thread, root.body),
                file_path=thread.file_path,
                line_number=thread.line,
                author=root.author,
                summary=condense(root.body),
                latest=condense(latest.body),
                url=_choose_url(thread, latest),
                resolved=thread.resolved,
                diff_hunk=(thread.diff_hunk or None) if opts.include_diff else None,
                root_created_at=(root.created_at or None) if opts.include_times else None,
                latest_created_at=(latest.created_at or None) if opts.include_times else None,
                comments=_copy_comments(thread.comments, opts.include_times) if opts.all_comments else None,
            )

            if opts.priority != PRIORITY_ALL and item.priority != opts.priority:
                continue

            items.append(item)

        items.sort(key=sort_key)

        if opts.budget > 0 and len(items) > opts.budget:
            logger.debug("Budget %d applied; dropping %d item(s)", opts.budget, len(items) - opts.budget)
            items = items[: opts.budget]

        return items

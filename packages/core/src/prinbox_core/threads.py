"""Turn paged raw review data into the uniform Thread model.

Review threads and PR conversation comments are two independent paged
sequences; both are drained completely before anything is normalized, so a
failure on any page leaves no partial result behind.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from prinbox_core.models import Comment, PRMeta, Thread
from prinbox_core.utils.text import GOAL_LIMIT, truncate_runes

if TYPE_CHECKING:
    from prinbox_core.gh.pull_request import Page, ThreadSource

logger = logging.getLogger(__name__)

CONVERSATION_FILE_PATH = "PR conversation"
CONVERSATION_ID_PREFIX = "issue-"


def iter_nodes(fetch_page: Callable[[str | None], Page]) -> Iterator[dict]:
    """Yield every node of a paged connection, following cursors until exhausted."""
    cursor: str | None = None
    pages = 0
    while True:
        page = fetch_page(cursor)
        pages += 1
        yield from page.nodes
        if not page.has_next_page:
            break
        if not page.end_cursor:
            logger.warning("Page %d reported more data but no cursor; stopping pagination.", pages)
            break
        cursor = page.end_cursor
    logger.debug("Fetched %d page(s)", pages)


def _first_non_zero(*values) -> int:
    for v in values:
        if v:
            return v
    return 0


def _author(node: dict) -> str:
    # author is null for deleted accounts
    return (node.get("author") or {}).get("login") or ""


def _comment_id(node: dict) -> str:
    database_id = node.get("databaseId")
    return str(database_id) if database_id is not None else node.get("id") or ""


def normalize_comment(node: dict) -> Comment:
    return Comment(
        id=_comment_id(node),
        body=node.get("body") or "",
        author=_author(node),
        created_at=node.get("createdAt") or "",
        url=node.get("url") or "",
    )


def normalize_review_thread(node: dict) -> Thread:
    """Map one reviewThreads node to a Thread.

    The live ``line`` wins; ``originalLine`` covers threads whose line no
    longer exists in the current diff.
    """
    comment_nodes = (node.get("comments") or {}).get("nodes") or []
    first = comment_nodes[0] if comment_nodes else {}
    return Thread(
        id=node.get("id") or "",
        file_path=node.get("path") or "",
        line=_first_non_zero(node.get("line"), node.get("originalLine")),
        resolved=bool(node.get("isResolved")),
        comments=tuple(normalize_comment(c) for c in comment_nodes),
        diff_hunk=first.get("diffHunk") or "",
        url=first.get("url") or "",
    )


def normalize_conversation_comment(node: dict) -> Thread:
    """Wrap a PR conversation comment in a singleton, non-anchored Thread."""
    comment = normalize_comment(node)
    return Thread(
        id=CONVERSATION_ID_PREFIX + comment.id,
        file_path=CONVERSATION_FILE_PATH,
        line=0,
        resolved=False,
        comments=(comment,),
        url=comment.url,
    )


def normalize_pr_meta(node: dict, repo: str) -> PRMeta:
    return PRMeta(
        number=node.get("number") or 0,
        title=node.get("title") or "",
        url=node.get("url") or "",
        goal=truncate_runes(node.get("bodyText") or "", GOAL_LIMIT),
        repo=repo,
    )


def collect_threads(source: ThreadSource, include_conversation: bool = False) -> list[Thread]:
    """Fetch and normalize every thread of the pull request behind ``source``.

    Review threads come first, then (optionally) conversation comments.
    Threads without comments are dropped.
    """
    review_nodes = list(iter_nodes(source.fetch_review_threads_page))
    conversation_nodes = list(iter_nodes(source.fetch_conversation_comments_page)) if include_conversation else []

    threads = [normalize_review_thread(n) for n in review_nodes]
    threads.extend(normalize_conversation_comment(n) for n in conversation_nodes)

    kept = [t for t in threads if t.comments]
    if len(kept) != len(threads):
        logger.debug("Dropped %d thread(s) with no comments", len(threads) - len(kept))
    logger.debug(
        "Collected %d review thread(s) and %d conversation comment(s)", len(review_nodes), len(conversation_nodes)
    )
    return kept

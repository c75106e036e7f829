"""Review thread data models.

Threads and comments are produced once by the normalizer and never mutated
afterwards; the compactor only derives new InboxItem values from them.
"""

from __future__ import annotations

from dataclasses import dataclass

PRIORITIES = ("P0", "P1", "P2")

_PRIORITY_RANK = {p: rank for rank, p in enumerate(PRIORITIES)}


def priority_rank(priority: str) -> int:
    """Sort rank for a priority label; unknown labels sort last."""
    return _PRIORITY_RANK.get(priority, len(PRIORITIES))


@dataclass(frozen=True)
class PRMeta:
    """Pull request context attached to a render pass."""

    number: int
    title: str
    url: str
    goal: str  # PR description, already truncated
    repo: str


@dataclass(frozen=True)
class Comment:
    """A single comment inside a review thread or PR conversation."""

    id: str
    body: str
    author: str
    created_at: str = ""  # ISO-8601, empty when unknown or stripped
    url: str = ""

    def to_dict(self) -> dict:
        data = {"id": self.id, "body": self.body, "author": self.author}
        if self.created_at:
            data["createdAt"] = self.created_at
        data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        return cls(
            id=data.get("id", ""),
            body=data.get("body", ""),
            author=data.get("author", ""),
            created_at=data.get("createdAt", ""),
            url=data.get("url", ""),
        )


@dataclass(frozen=True)
class Thread:
    """Comments grouped at one location.

    ``line`` is 0 for threads that are not anchored to a line, such as the
    singleton threads built from PR conversation comments.
    """

    id: str
    file_path: str
    line: int
    resolved: bool
    comments: tuple[Comment, ...] = ()  # chronological
    diff_hunk: str = ""
    url: str = ""


@dataclass(frozen=True)
class InboxItem:
    """The compacted, prioritized projection of one thread."""

    thread_id: str
    priority: str  # "P0" | "P1" | "P2"
    file_path: str
    line_number: int
    author: str
    summary: str
    latest: str
    url: str
    resolved: bool
    diff_hunk: str | None = None
    root_created_at: str | None = None
    latest_created_at: str | None = None
    comments: tuple[Comment, ...] | None = None

    def to_dict(self) -> dict:
        """Structured form with lower-camel-case keys; unset optional fields are omitted."""
        data = {
            "threadId": self.thread_id,
            "priority": self.priority,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "author": self.author,
            "summary": self.summary,
            "latest": self.latest,
            "url": self.url,
            "resolved": self.resolved,
        }
        if self.diff_hunk:
            data["diffHunk"] = self.diff_hunk
        if self.root_created_at:
            data["rootCreatedAt"] = self.root_created_at
        if self.latest_created_at:
            data["latestCreatedAt"] = self.latest_created_at
        if self.comments:
            data["comments"] = [c.to_dict() for c in self.comments]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> InboxItem:
        comments = data.get("comments")
        return cls(
            thread_id=data.get("threadId", ""),
            priority=data.get("priority", ""),
            file_path=data.get("filePath", ""),
            line_number=data.get("lineNumber", 0),
            author=data.get("author", ""),
            summary=data.get("summary", ""),
            latest=data.get("latest", ""),
            url=data.get("url", ""),
            resolved=data.get("resolved", False),
            diff_hunk=data.get("diffHunk") or None,
            root_created_at=data.get("rootCreatedAt") or None,
            latest_created_at=data.get("latestCreatedAt") or None,
            comments=tuple(Comment.from_dict(c) for c in comments) if comments else None,
        )

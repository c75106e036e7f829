"""Render inbox items as a Markdown report or a JSON document."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from prinbox_core.models import PRIORITIES, InboxItem, PRMeta, priority_rank
from prinbox_core.utils.text import SUMMARY_LIMIT, truncate

HOT_FILES_LIMIT = 3


@dataclass
class SummaryCounts:
    counts: dict[str, int] = field(default_factory=lambda: {p: 0 for p in PRIORITIES})
    hot_files: list[str] = field(default_factory=list)


def build_summary(items: list[InboxItem]) -> SummaryCounts:
    """Count items per priority and pick the files with the most items."""
    summary = SummaryCounts()
    file_counts: dict[str, int] = {}
    for item in items:
        if item.priority in summary.counts:
            summary.counts[item.priority] += 1
        file_counts[item.file_path] = file_counts.get(item.file_path, 0) + 1

    # sorted() is stable, so equal counts keep discovery order.
    ranked = sorted(file_counts.items(), key=lambda kv: kv[1], reverse=True)
    summary.hot_files = [f"{path} ({count})" for path, count in ranked[:HOT_FILES_LIMIT]]
    return summary


def group_by_file(items: list[InboxItem]) -> dict[str, list[InboxItem]]:
    """Group items by file path (keys sorted), each group ordered by priority then line."""
    grouped: dict[str, list[InboxItem]] = {}
    for item in items:
        grouped.setdefault(item.file_path, []).append(item)
    return {
        path: sorted(grouped[path], key=lambda i: (priority_rank(i.priority), i.line_number))
        for path in sorted(grouped)
    }


def _item_lines(item: InboxItem) -> list[str]:
    location = f" L{item.line_number}" if item.line_number else ""
    lines = [
        f"- [{item.priority}]{location} by {item.author} — {item.summary}",
        f"  - Latest: {item.latest}",
    ]
    if item.root_created_at:
        lines.append(f"  - Created: {item.root_created_at}")
    if item.latest_created_at:
        lines.append(f"  - Updated: {item.latest_created_at}")
    lines.append(f"  - Link: {item.url}")

    if item.diff_hunk:
        lines.append("  - Diff:")
        lines.append("")
        lines.append("    ```diff")
        for diff_line in item.diff_hunk.rstrip("\n").split("\n"):
            lines.append(f"    {diff_line}")
        lines.append("    ```")

    if item.comments:
        lines.append(f"  - Comments ({len(item.comments)}):")
        for c in item.comments:
            body = truncate(c.body, SUMMARY_LIMIT)
            if c.created_at:
                lines.append(f"    - {c.author} ({c.created_at}): {body}")
            else:
                lines.append(f"    - {c.author}: {body}")
            if c.url and c.url != item.url:
                lines.append(f"      - {c.url}")
    return lines


def to_markdown(meta: PRMeta, items: list[InboxItem]) -> str:
    summary = build_summary(items)
    lines = [
        f"# PR Inbox for {meta.repo} #{meta.number}",
        "",
        f"[{meta.title}]({meta.url})",
        "",
    ]
    if meta.goal:
        lines += [f"> {truncate(meta.goal, SUMMARY_LIMIT)}", ""]

    counts = " | ".join(f"{p} {summary.counts[p]}" for p in PRIORITIES)
    lines += [f"Summary: {counts}", ""]
    if summary.hot_files:
        lines += [f"Hot files: {', '.join(summary.hot_files)}", ""]

    for path, group in group_by_file(items).items():
        lines += [f"## {path}", ""]
        for item in group:
            lines.extend(_item_lines(item))
        lines.append("")

    return "\n".join(lines) + "\n"


def to_payload(meta: PRMeta, items: list[InboxItem]) -> dict:
    return {
        "repo": meta.repo,
        "number": meta.number,
        "title": meta.title,
        "url": meta.url,
        "goal": meta.goal,
        "items": [item.to_dict() for item in items],
    }


def to_json(meta: PRMeta, items: list[InboxItem]) -> str:
    return json.dumps(to_payload(meta, items), indent=2, ensure_ascii=False)


def items_to_json(items: list[InboxItem]) -> str:
    """Compact JSON array of items, for embedding into prompts."""
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False, separators=(",", ":"))

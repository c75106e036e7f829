"""Core inbox pipeline: fetch, normalize, compact, render."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from prinbox_core.compact import Compactor
from prinbox_core.models import InboxItem, PRMeta
from prinbox_core.render import items_to_json, to_json, to_markdown
from prinbox_core.template import apply
from prinbox_core.threads import collect_threads, normalize_pr_meta

if TYPE_CHECKING:
    from prinbox_core.config import InboxConfig
    from prinbox_core.gh.pull_request import ThreadSource

logger = logging.getLogger(__name__)


@dataclass
class InboxResult:
    """Output of build_inbox: PR context plus the ordered items."""

    meta: PRMeta
    items: list[InboxItem] = field(default_factory=list)
    thread_count: int = 0  # threads fetched, before filtering


def build_inbox(source: ThreadSource, config: InboxConfig) -> InboxResult:
    """Run the full acquisition-and-compaction pipeline for one pull request.

    Any ThreadSourceError from the source propagates unchanged; nothing is
    returned for a partially fetched PR.
    """
    meta = normalize_pr_meta(source.fetch_pr_meta(), source.repo)
    threads = collect_threads(source, include_conversation=config.include_issue_comments)
    items = Compactor(config.compact_options()).compact(threads)
    logger.debug("Compacted %d thread(s) into %d item(s)", len(threads), len(items))
    return InboxResult(meta=meta, items=items, thread_count=len(threads))


def resolve_prompt(config: InboxConfig) -> str:
    """Pick the prompt template: inline override, then prompt file, then configured prompt."""
    if config.prompt_inline:
        return config.prompt_inline
    if config.prompt_file:
        p = Path(config.prompt_file).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"Prompt file not found: {config.prompt_file}")
        return p.read_text(encoding="utf-8")
    return config.prompt


def template_variables(meta: PRMeta, markdown: str, items: list[InboxItem]) -> dict[str, str]:
    return {
        "REPO": meta.repo,
        "PR_NUMBER": str(meta.number),
        "PR_TITLE": meta.title,
        "PR_URL": meta.url,
        "PR_GOAL": meta.goal,
        "THREADS_MD": markdown,
        "THREADS_JSON": items_to_json(items),
    }


def render_output(result: InboxResult, config: InboxConfig) -> str:
    """Render the inbox in the configured format.

    JSON output is never wrapped in a prompt; Markdown output is embedded in
    the prompt template when one is configured.
    """
    if config.format == "json":
        return to_json(result.meta, result.items)

    markdown = to_markdown(result.meta, result.items)
    prompt = resolve_prompt(config)
    if not prompt:
        return markdown
    return apply(prompt, template_variables(result.meta, markdown, result.items))

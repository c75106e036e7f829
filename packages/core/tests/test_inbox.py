"""Tests for the end-to-end inbox pipeline."""

import json

import pytest

from prinbox_core.config import InboxConfig
from prinbox_core.gh.pull_request import Page, ThreadSource, ThreadSourceError
from prinbox_core.inbox import InboxResult, build_inbox, render_output, resolve_prompt, template_variables
from prinbox_core.models import PRMeta


def _comment(db_id, body, login="alice"):
    return {
        "databaseId": db_id,
        "body": body,
        "author": {"login": login},
        "createdAt": f"2024-05-0{db_id % 9 + 1}T00:00:00Z",
        "url": f"https://github.com/acme/widgets/pull/42#c{db_id}",
        "diffHunk": "@@ -1 +1 @@\n-a\n+b",
    }


REVIEW_NODES = [
    {
        "id": "RT_1",
        "isResolved": False,
        "path": "api/service.py",
        "line": 12,
        "originalLine": 10,
        "comments": {"nodes": [_comment(1, "This must be fixed"), _comment(2, "done?", "bob")]},
    },
    {
        "id": "RT_2",
        "isResolved": True,
        "path": "api/service.py",
        "line": 30,
        "originalLine": 30,
        "comments": {"nodes": [_comment(3, "nit: typo")]},
    },
    {
        "id": "RT_3",
        "isResolved": False,
        "path": "ui/view.py",
        "line": 0,
        "originalLine": 4,
        "comments": {"nodes": [_comment(4, "nit: spacing")]},
    },
]


class StubSource(ThreadSource):
    def __init__(self, fail=False):
        self.fail = fail

    @property
    def repo(self):
        return "acme/widgets"

    def fetch_pr_meta(self):
        return {"number": 42, "title": "Add feature", "url": "https://github.com/acme/widgets/pull/42", "bodyText": "Goal"}

    def fetch_review_threads_page(self, cursor):
        if self.fail:
            raise ThreadSourceError("gh graphql failed")
        if cursor is None:
            return Page(nodes=REVIEW_NODES[:2], has_next_page=True, end_cursor="p2")
        return Page(nodes=REVIEW_NODES[2:])

    def fetch_conversation_comments_page(self, cursor):
        return Page(nodes=[_comment(7, "Thanks for the PR", "carol")])


def test_build_inbox_filters_and_orders():
    result = build_inbox(StubSource(), InboxConfig())
    assert result.meta.number == 42
    assert result.meta.goal == "Goal"
    assert result.thread_count == 3
    assert [i.thread_id for i in result.items] == ["RT_1", "RT_3"]
    assert result.items[0].priority == "P0"
    assert result.items[1].priority == "P2"
    assert result.items[1].line_number == 4


def test_build_inbox_with_conversation_and_resolved():
    config = InboxConfig(include_resolved=True, include_issue_comments=True)
    result = build_inbox(StubSource(), config)
    assert {i.thread_id for i in result.items} == {"RT_1", "RT_2", "RT_3", "issue-7"}


def test_build_inbox_propagates_source_errors():
    with pytest.raises(ThreadSourceError):
        build_inbox(StubSource(fail=True), InboxConfig())


def test_render_markdown_by_default():
    result = build_inbox(StubSource(), InboxConfig())
    out = render_output(result, InboxConfig())
    assert out.startswith("# PR Inbox for acme/widgets #42")
    assert "- [P0] L12 by alice — This must be fixed" in out


def test_render_json_ignores_prompt():
    config = InboxConfig(format="json", prompt_inline="ignored {{REPO}}")
    result = build_inbox(StubSource(), config)
    doc = json.loads(render_output(result, config))
    assert doc["repo"] == "acme/widgets"
    assert [i["threadId"] for i in doc["items"]] == ["RT_1", "RT_3"]


def test_render_with_prompt_template():
    config = InboxConfig(prompt="Review {{REPO}}#{{PR_NUMBER}}\n{{THREADS_MD}}")
    result = build_inbox(StubSource(), config)
    out = render_output(result, config)
    assert out.startswith("Review acme/widgets#42\n# PR Inbox for acme/widgets #42")


class TestResolvePrompt:
    def test_inline_wins(self, tmp_path):
        prompt_file = tmp_path / "p.txt"
        prompt_file.write_text("from file")
        config = InboxConfig(prompt="from config", prompt_file=str(prompt_file), prompt_inline="inline")
        assert resolve_prompt(config) == "inline"

    def test_file_beats_config(self, tmp_path):
        prompt_file = tmp_path / "p.txt"
        prompt_file.write_text("from file")
        assert resolve_prompt(InboxConfig(prompt="from config", prompt_file=str(prompt_file))) == "from file"

    def test_config_prompt(self):
        assert resolve_prompt(InboxConfig(prompt="from config")) == "from config"

    def test_no_prompt(self):
        assert resolve_prompt(InboxConfig()) == ""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            resolve_prompt(InboxConfig(prompt_file=str(tmp_path / "missing.txt")))


def test_template_variables():
    meta = PRMeta(number=7, title="T", url="U", goal="G", repo="a/b")
    result = InboxResult(meta=meta)
    variables = template_variables(result.meta, "MD", result.items)
    assert variables == {
        "REPO": "a/b",
        "PR_NUMBER": "7",
        "PR_TITLE": "T",
        "PR_URL": "U",
        "PR_GOAL": "G",
        "THREADS_MD": "MD",
        "THREADS_JSON": "[]",
    }

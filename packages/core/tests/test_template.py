"""Tests for prompt template substitution."""

from prinbox_core.template import apply


def test_replaces_known_placeholders():
    assert apply("PR {{PR_NUMBER}} in {{REPO}}", {"PR_NUMBER": "7", "REPO": "acme/widgets"}) == "PR 7 in acme/widgets"


def test_replaces_every_occurrence():
    assert apply("{{X}}-{{X}}", {"X": "a"}) == "a-a"


def test_template_without_placeholders_is_unchanged():
    template = "Summarize the review threads below."
    assert apply(template, {"X": "a"}) == template
    assert apply(apply(template, {}), {}) == template


def test_unknown_placeholders_left_verbatim():
    assert apply("{{KNOWN}} {{UNKNOWN}}", {"KNOWN": "yes"}) == "yes {{UNKNOWN}}"


def test_replacement_values_are_not_expanded_again():
    out = apply("{{A}} {{B}}", {"A": "{{B}}", "B": "b"})
    assert out == "{{B}} b"


def test_values_with_regex_metacharacters_inserted_literally():
    assert apply("{{X}}", {"X": r"\1 $0 \g<0>"}) == r"\1 $0 \g<0>"


def test_empty_template():
    assert apply("", {"X": "a"}) == ""

"""Placeholder substitution for prompt templates."""

from __future__ import annotations

import re

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")


def apply(template: str, variables: dict[str, str]) -> str:
    """Replace each ``{{NAME}}`` with ``variables[NAME]`` in one pass.

    Unknown placeholders stay as written. Replacement text is inserted
    literally and is not scanned again.
    """

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_substitute, template)

"""Display-budget helpers.

Python strings index by code point, so every cut here lands on a character
boundary and never leaves half of a multi-byte sequence behind.
"""

SUMMARY_LIMIT = 220
GOAL_LIMIT = 400

_ELLIPSIS = "..."


def truncate(text: str, limit: int = SUMMARY_LIMIT) -> str:
    """Cut ``text`` to at most ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: max(limit - len(_ELLIPSIS), 0)] + _ELLIPSIS


def condense(body: str) -> str:
    """Strip a comment body and fit it into the summary budget."""
    return truncate(body.strip(), SUMMARY_LIMIT)


def truncate_runes(text: str, limit: int = GOAL_LIMIT) -> str:
    """Keep the first ``limit`` characters with no marker."""
    return text[:limit]

"""Prompt normalization."""

import re
from typing import Optional

# A whole-string markdown link: [label](target)
_LINK_RE = re.compile(r'^\[([^\]]+)\]\([^)]*\)$')


def normalize_prompt(text: Optional[str]) -> str:
    """Trim a prompt and unwrap it if it is exactly one markdown link.

    Chat surfaces sometimes paste a command as a link; the label is the
    command text the user meant.

    Example:
        >>> normalize_prompt("  [Foo Bar](http://x)  ")
        'Foo Bar'
        >>> normalize_prompt("[a](b) extra")
        '[a](b) extra'
    """
    trimmed = (text or '').strip()
    match = _LINK_RE.match(trimmed)
    if match:
        return match.group(1).strip()
    return trimmed

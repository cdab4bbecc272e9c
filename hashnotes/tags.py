from __future__ import annotations
from typing import Optional
import re

# '#' + lowercase letters/digits/hyphens, ending on a letter or digit.
# A '(' or '"' right before the '#' means a markdown link target or an
# html attribute (`[x](#anchor)`, `href="#anchor"`), not a tag.
HASHTAG_RE = re.compile(r'(?<![("])#([-a-z0-9]*[a-z0-9])')
_HAS_LETTER_RE = re.compile(r"[a-z]")


def extract_tags(text: Optional[str]) -> list[str]:
    """
    Return the hashtags found in `text` without the '#', in the order they
    first appear and without duplicates.
    - tags shorter than 2 characters are skipped
    - tags need at least one letter (#123 is not a tag, #12a123 is)
    - uppercase is not part of a tag, so #HashTag yields nothing
    """
    if not text:
        return []
    seen: set[str] = set()
    out: list[str] = []
    for m in HASHTAG_RE.finditer(text):
        tag = m.group(1)
        if len(tag) < 2 or not _HAS_LETTER_RE.search(tag):
            continue
        if tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return out

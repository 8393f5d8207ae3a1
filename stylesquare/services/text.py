from __future__ import annotations

import re


_HASHTAG_RE = re.compile(r"(?<!\w)#(\w{1,40})")


def extract_hashtags(text: str | None) -> list[str]:
    if not text:
        return []
    return sorted({m.group(1).lower() for m in _HASHTAG_RE.finditer(text)})


def preview(text: str | None, limit: int = 50) -> str | None:
    if text is None:
        return None
    return text[:limit]

"""@username mention extraction."""

import re

# Links and e-mail addresses are blanked out before scanning so that
# "http://example.com/@someone" or "me@host.com" never produce a mention.
_URL_PATTERNS = (
    re.compile(r"https?://[^\s)]+", re.IGNORECASE),
    re.compile(r"\bwww\.[^\s)]+", re.IGNORECASE),
    re.compile(r"\b[^\s@]+@[^\s@]+\.[^\s@]+\b", re.IGNORECASE),
)

MENTION_PATTERN = re.compile(r"(?:(?<=\s)|^)@([A-Za-z0-9_-]{3,30})\b", re.ASCII)


def strip_links(text: str) -> str:
    """Replace URLs and e-mail addresses with a single space."""
    for pattern in _URL_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def extract_mentions(text: str | None) -> list[str]:
    """
    Return the distinct usernames mentioned in ``text``.

    A mention is an ``@`` at the start of the text or after whitespace,
    followed by 3-30 letters, digits, underscores or hyphens. Usernames are
    lower-cased and returned in first-seen order. Whether the accounts exist
    is up to the caller.
    """
    if not text:
        return []

    mentions: list[str] = []
    for match in MENTION_PATTERN.finditer(strip_links(text)):
        username = match.group(1).lower()
        if username not in mentions:
            mentions.append(username)
    return mentions

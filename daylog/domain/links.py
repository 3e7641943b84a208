from __future__ import annotations

from urllib.parse import urlsplit

from .errors import ValidationError

KNOWN_SERVICES = (
    (("jira", "atlassian"), "Jira"),
    (("figma",), "Figma"),
    (("github",), "GitHub"),
    (("notion",), "Notion"),
    (("linear",), "Linear"),
    (("asana",), "Asana"),
    (("trello",), "Trello"),
    (("slack",), "Slack"),
    (("google",), "Google"),
    (("dropbox",), "Dropbox"),
)


def normalize_link(value: str | None) -> str | None:
    """Trim a link, returning None for blank input.

    Raises ValidationError when the text is not an absolute URL.
    """
    if value is None:
        return None
    link = value.strip()
    if not link:
        return None
    parts = urlsplit(link)
    if not parts.scheme or any(ch.isspace() for ch in link):
        raise ValidationError(f"Invalid URL: {link!r}")
    if not (parts.netloc or parts.path):
        raise ValidationError(f"Invalid URL: {link!r}")
    return link


def link_label(url: str) -> str:
    hostname = urlsplit(url).hostname
    if not hostname:
        return "Link"
    hostname = hostname.removeprefix("www.")
    for needles, label in KNOWN_SERVICES:
        if any(needle in hostname for needle in needles):
            return label
    return hostname.split(".")[0]

"""HTML cleaning for site copy analysis."""

import re

from bs4 import BeautifulSoup, Comment

# Tags to completely remove (including content)
REMOVE_TAGS = frozenset(
    [
        "script",
        "style",
        "noscript",
        "iframe",
        "object",
        "embed",
        "svg",
        "canvas",
        "video",
        "audio",
        "source",
        "track",
        "template",
        "slot",
        "dialog",
    ]
)

# Boilerplate regions dropped before reading the copy
BOILERPLATE_TAGS = frozenset(["nav", "footer", "aside", "menu"])

_WHITESPACE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_page_copy(html: str, max_chars: int = 5000) -> str:
    """
    Extract the marketing copy of a page for tone analysis.

    Combines the title, the meta description and the visible body text
    (minus navigation and footer boilerplate), truncated to max_chars.

    Args:
        html: Raw HTML string
        max_chars: Upper bound on the returned text length

    Returns:
        Normalized text, empty when the page has no readable copy
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(REMOVE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    parts: list[str] = []

    if soup.title and soup.title.string:
        parts.append(_normalize(soup.title.string))

    meta = soup.find("meta", attrs={"name": "description"})
    if meta and meta.get("content"):
        parts.append(_normalize(str(meta["content"])))

    for tag in soup.find_all(BOILERPLATE_TAGS):
        tag.decompose()

    body = soup.body or soup
    body_text = _normalize(body.get_text(separator=" ", strip=True))
    if body_text:
        parts.append(body_text)

    text = ". ".join(p for p in parts if p)
    return text[:max_chars]

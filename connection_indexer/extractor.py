"""
Extractor - Recover a ConnectionRecord from a single listing card.

Cards come from several surfaces (connections list, search results, company
people tab) and several product releases, so every field is resolved through
an ordered list of fallbacks where the first hit wins.
"""

import logging
from collections.abc import Callable
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import Tag

from connection_indexer import config
from connection_indexer.headline import parse_headline
from connection_indexer.models import ConnectionRecord

logger = logging.getLogger(__name__)


def normalize_profile_url(href: str, base_url: str | None = None) -> str | None:
    """
    Normalize a profile URL.
    Returns the absolute URL without query string or fragment, or None if the
    href is not a usable profile link.
    """
    if not href or config.PROFILE_PATH_MARKER not in href:
        return None
    if any(marker in href for marker in config.PLACEHOLDER_PROFILE_MARKERS):
        return None

    absolute = urljoin((base_url or config.SITE_BASE_URL) + "/", href.strip())
    parts = urlsplit(absolute)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def is_plausible_name(text: str) -> bool:
    """Short label text that is not UI chrome or a decoding artifact."""
    if not (config.NAME_MIN_LENGTH < len(text) < config.NAME_MAX_LENGTH):
        return False
    if len(text.split(" ")) > config.NAME_MAX_WORDS:
        return False
    lowered = text.lower()
    if any(token in lowered for token in config.NAME_CHROME_TOKENS):
        return False
    return not any(marker in text for marker in config.MOJIBAKE_MARKERS)


def _first_plausible(spans: list[Tag]) -> str | None:
    for span in spans:
        text = span.get_text().strip()
        if text and is_plausible_name(text):
            return text
    return None


def name_from_hidden_label(link: Tag) -> str | None:
    """The aria-hidden span holds the visible name on most card versions."""
    return _first_plausible(link.select('span[aria-hidden="true"]'))


def name_from_any_span(link: Tag) -> str | None:
    return _first_plausible(link.find_all("span"))


def name_from_link_text(link: Tag) -> str | None:
    text = link.get_text().strip()
    if config.NAME_MIN_LENGTH < len(text) < config.NAME_MAX_LENGTH:
        return text.split("\n")[0].strip() or None
    return None


NAME_STRATEGIES: list[Callable[[Tag], str | None]] = [
    name_from_hidden_label,
    name_from_any_span,
    name_from_link_text,
]


def resolve_identity(card: Tag) -> tuple[str, str] | None:
    """
    Find the (profile_url, name) pair for a card.

    Profile links are tried in document order; the first one for which a name
    strategy succeeds decides both values.
    """
    for link in card.find_all("a", href=True):
        profile_url = normalize_profile_url(link.get("href", ""))
        if not profile_url:
            continue
        for strategy in NAME_STRATEGIES:
            if name := strategy(link):
                return profile_url, name
    return None


def find_headline(card: Tag, name: str) -> str:
    """Return the first non-chrome line following the line holding the name."""
    lines = [line.strip() for line in card.get_text().split("\n")]
    lines = [
        line
        for line in lines
        if config.HEADLINE_LINE_MIN_LENGTH < len(line) < config.HEADLINE_LINE_MAX_LENGTH
    ]

    for index, line in enumerate(lines):
        if name not in line:
            continue
        for candidate in lines[index + 1 : index + 1 + config.HEADLINE_LOOKAHEAD_LINES]:
            if len(candidate) <= config.HEADLINE_MIN_LENGTH:
                continue
            if any(token in candidate for token in config.HEADLINE_SKIP_TOKENS):
                continue
            return candidate
        break
    return ""


def find_image_url(card: Tag) -> str:
    """First CDN-hosted avatar that is not a ghost/placeholder/inline image."""
    for img in card.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src or not any(marker in src for marker in config.IMAGE_HOST_MARKERS):
            continue
        if any(marker in src for marker in config.IMAGE_REJECT_MARKERS):
            continue
        return urljoin("https:", src) if src.startswith("//") else src
    return ""


def extract(card: Tag) -> ConnectionRecord | None:
    """
    Extract a connection record from a card.

    Returns None when the card has no usable profile link or no name; a
    missing headline or photo only leaves those fields empty.
    """
    identity = resolve_identity(card)
    if identity is None:
        return None
    profile_url, name = identity

    headline = find_headline(card, name)
    title, company = parse_headline(headline)

    logger.debug(f"Found: {name} - {headline[:50]}")
    return ConnectionRecord(
        profile_url=profile_url,
        name=name,
        headline=headline,
        title=title,
        company=company,
        location="",
        image_url=find_image_url(card),
    )

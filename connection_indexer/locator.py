"""
Card Locator - Find the DOM nodes that each represent one person.
"""

import logging
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from connection_indexer import config
from connection_indexer.constants import LocatorStrategy

logger = logging.getLogger(__name__)


def find_scan_root(soup: BeautifulSoup) -> Tag:
    """Scan inside <main> when the page has one, else <body>, else the whole document."""
    return soup.find("main") or soup.body or soup


def _claim(cards: list[Tag], claimed: set[int], node: Tag) -> None:
    # Tags compare by content, so identity is tracked explicitly
    if id(node) not in claimed:
        claimed.add(id(node))
        cards.append(node)


def match_known_cards(root: Tag) -> list[Tag]:
    """Union of the container selectors seen across versions of the listing UI."""
    cards: list[Tag] = []
    claimed: set[int] = set()
    for node in root.select(", ".join(config.CARD_SELECTORS)):
        _claim(cards, claimed, node)
    return cards


def _count_profile_links(node: Tag) -> int:
    return len(node.select(config.PROFILE_LINK_SELECTOR))


def is_card_container(node: Tag) -> bool:
    """A list item/article, or a div wrapping exactly one profile link."""
    if node.name in config.CARD_CONTAINER_TAGS:
        return True
    return node.name == "div" and _count_profile_links(node) == 1


def walk_to_card(link: Tag, root: Tag, max_depth: int | None = None) -> Tag | None:
    """
    Walk up from a profile link to the closest plausible card container.

    Returns None if the scan root is reached first. When the depth bound runs
    out, the last ancestor visited is used.
    """
    max_depth = max_depth or config.CARD_WALK_MAX_DEPTH
    node = link
    for _ in range(max_depth):
        node = node.parent
        if node is None or node is root or isinstance(node, BeautifulSoup):
            return None
        if is_card_container(node):
            return node
    return node


def walk_from_profile_links(root: Tag) -> list[Tag]:
    """Anchor-walk fallback for pages without stable card wrappers."""
    cards: list[Tag] = []
    claimed: set[int] = set()
    links = root.select(config.PROFILE_LINK_SELECTOR)
    logger.debug(f"Profile links found: {len(links)}")
    for link in links:
        if (card := walk_to_card(link, root)) is not None:
            _claim(cards, claimed, card)
    return cards


CardStrategy = Callable[[Tag], list[Tag]]

DEFAULT_CARD_STRATEGIES: list[CardStrategy] = [match_known_cards, walk_from_profile_links]

STRATEGIES_BY_NAME: dict[LocatorStrategy, list[CardStrategy]] = {
    LocatorStrategy.SELECTORS: [match_known_cards],
    LocatorStrategy.ANCHOR_WALK: [walk_from_profile_links],
    LocatorStrategy.AUTO: DEFAULT_CARD_STRATEGIES,
}


def locate_cards(root: Tag, strategies: list[CardStrategy] | None = None) -> list[Tag]:
    """
    Return one node per candidate person, without duplicates.

    Strategies are tried in order and the first one that finds anything wins.
    An empty list means nothing looked like a card, which is not an error.
    """
    for strategy in strategies or DEFAULT_CARD_STRATEGIES:
        if cards := strategy(root):
            logger.debug(f"{strategy.__name__} located {len(cards)} cards")
            return cards
    return []

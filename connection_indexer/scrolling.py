"""Human-paced scrolling that makes the listing render more cards."""

import asyncio
import logging
import random
from typing import TYPE_CHECKING

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from connection_indexer import config

if TYPE_CHECKING:
    from connection_indexer.linkedin_client import LinkedInClient

logger = logging.getLogger(__name__)


async def random_delay(min_sec: float | None = None, max_sec: float | None = None):
    """Random delay to mimic human behavior."""
    await asyncio.sleep(
        random.uniform(
            config.SCROLL_DELAY_MIN if min_sec is None else min_sec,
            config.SCROLL_DELAY_MAX if max_sec is None else max_sec,
        )
    )


async def click_first_visible(page, selectors: list[str], timeout: int = 1000) -> bool:
    """Click the first visible element matched by a list of selectors."""
    for selector in selectors:
        try:
            element = page.locator(selector).first
            if await element.is_visible(timeout=timeout):
                await element.click()
                return True
        except (PlaywrightTimeoutError, AttributeError) as e:
            logger.debug(f"Failed to click element with selector {selector}: {e}")
            continue
    return False


async def scroll_for_more(client: "LinkedInClient") -> bool:
    """
    Scroll down by a random fraction of the viewport, then press the
    "Show more results" button if the list offers one.

    Returns True if the button was clicked. The scroll itself is what the
    page observer reacts to.
    """
    page = client.page
    fraction = random.uniform(0.6, 0.9)
    try:
        await page.evaluate(f"window.scrollBy(0, Math.round(window.innerHeight * {fraction:.2f}))")
    except Exception as e:
        logger.debug(f"Error scrolling page: {e}")
        return False

    return await click_first_visible(page, config.SHOW_MORE_SELECTORS)


async def browse_listing(client: "LinkedInClient", duration: float) -> int:
    """Keep scrolling for `duration` seconds. Returns the number of scroll steps."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + duration
    steps = 0
    while loop.time() < deadline:
        if await scroll_for_more(client):
            logger.debug("Clicked 'Show more results'")
        steps += 1
        await random_delay()
    return steps

"""
LinkedIn Client - Browser session hosting the pages being indexed.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page

from connection_indexer import config

logger = logging.getLogger(__name__)

# HTTP error messages mapping
HTTP_ERROR_MESSAGES = {
    403: " - Access forbidden (may be rate limited or blocked)",
    429: " - Rate limited (too many requests)",
    500: " - Server error",
    503: " - Service unavailable",
}


class LinkedInClientError(Exception):
    """Exception raised when browser setup, navigation or login fails."""
    pass


class LinkedInClient:
    """Playwright browser with a persistent LinkedIn login."""

    def __init__(self):
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    def load_cookies(self) -> Optional[List[dict]]:
        """Load saved cookies if they exist."""
        path = Path(config.COOKIES_FILE)
        if path.exists():
            return json.loads(path.read_text())
        return None

    def save_cookies(self, cookies: List[dict]):
        """Save cookies to file."""
        path = Path(config.COOKIES_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(cookies, indent=2))

    async def navigate_to(self, url: str):
        """Navigate to a URL. HTTP errors abort; slow loads are tolerated."""
        try:
            response = await self.page.goto(
                url, wait_until="domcontentloaded", timeout=config.NAVIGATION_TIMEOUT
            )
        except Exception as e:
            logger.warning(f"Navigation to {url} did not complete: {e}")
            return

        if response and response.status >= 400:
            error_msg = f"HTTP {response.status} error when accessing {url}"
            error_msg += HTTP_ERROR_MESSAGES.get(response.status, "")
            raise LinkedInClientError(error_msg)

        try:
            await self.page.wait_for_load_state("load", timeout=15000)
        except Exception as e:
            logger.debug(f"Load state not reached for {url}: {e}")

    async def is_logged_in(self) -> bool:
        """Check if we're logged in by looking for logged-in page indicators."""
        url = self.page.url
        if "linkedin.com/login" in url or "linkedin.com/uas/login" in url:
            return False

        for selector in config.LOGGED_IN_INDICATORS:
            try:
                if await self.page.locator(selector).first.count() > 0:
                    return True
            except Exception:
                continue

        return "linkedin.com/feed" in url or "linkedin.com/mynetwork" in url

    async def page_html(self) -> str:
        """Serialized DOM of the current page, as rendered right now."""
        return await self.page.content()

    async def _safe_close(self, close_method):
        try:
            await close_method()
        except Exception as e:
            logger.debug(f"Error while closing browser resource: {e}")

    async def setup_browser(self):
        """Launch Chromium with saved cookies and an automation-hiding init script."""
        if self.browser and self.browser.is_connected():
            return

        await self.close()

        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=config.BROWSER_HEADLESS,
            args=[
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
            ],
        )
        self.context = await self.browser.new_context(
            viewport={
                "width": config.BROWSER_VIEWPORT_WIDTH,
                "height": config.BROWSER_VIEWPORT_HEIGHT,
            },
            user_agent=config.USER_AGENT,
            locale=config.BROWSER_LOCALE,
        )

        if cookies := self.load_cookies():
            await self.context.add_cookies(cookies)

        self.page = await self.context.new_page()
        await self.page.add_init_script("""
            Object.defineProperty(navigator, 'webdriver', {
                get: () => undefined
            });
        """)

    async def ensure_logged_in(self) -> bool:
        """Check if we're logged in and wait for a manual login if needed."""
        await self.navigate_to(config.LINKEDIN_FEED_URL)

        if await self.is_logged_in():
            self.save_cookies(await self.context.cookies())
            return True

        print("Please log in to LinkedIn in the browser window.")
        print(f"Waiting for login (timeout: {config.LOGIN_TIMEOUT_SECONDS}s)...")

        check_interval = 2
        elapsed = 0
        while elapsed < config.LOGIN_TIMEOUT_SECONDS:
            await asyncio.sleep(check_interval)
            elapsed += check_interval

            if await self.is_logged_in():
                self.save_cookies(await self.context.cookies())
                print(f"✓ Login successful ({elapsed}s)")
                return True

            if elapsed % 10 == 0:
                print(f"Waiting... ({elapsed}/{config.LOGIN_TIMEOUT_SECONDS}s)")

        print(f"❌ Login timeout after {config.LOGIN_TIMEOUT_SECONDS}s")
        return False

    async def close(self):
        """Close browser and cleanup resources."""
        if self.browser:
            await self._safe_close(self.browser.close)
        if self.playwright:
            await self._safe_close(self.playwright.stop)
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

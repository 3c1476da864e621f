"""
Configuration constants for the connection indexer.
Centralized configuration for all modules.
Supports environment variable overrides.
"""

import os
from pathlib import Path


def _get_env_float(key: str, default: float, min_value: float = 0.0) -> float:
    """Get float from environment variable with validation."""
    if (value := os.getenv(key)) is None:
        return default
    try:
        float_value = float(value)
        if float_value < min_value:
            raise ValueError(f"{key} must be >= {min_value}")
        return float_value
    except ValueError as e:
        raise ValueError(f"Invalid value for {key}: {e}") from e


def _get_env_int(key: str, default: int, min_value: int = 0) -> int:
    """Get int from environment variable with validation."""
    if (value := os.getenv(key)) is None:
        return default
    try:
        int_value = int(value)
        if int_value < min_value:
            raise ValueError(f"{key} must be >= {min_value}")
        return int_value
    except ValueError as e:
        raise ValueError(f"Invalid value for {key}: {e}") from e


def _get_env_bool(key: str, default: bool) -> bool:
    """Get bool from environment variable."""
    if (value := os.getenv(key)) is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


# Find project root (directory containing pyproject.toml)
_PROJECT_ROOT = Path(__file__).parent.parent

# File paths (relative to project root)
COOKIES_FILE = str(_PROJECT_ROOT / "data" / "linkedin_cookies.json")
EXPORT_CSV = str(_PROJECT_ROOT / "data" / "connections.csv")

# Default URLs
SITE_BASE_URL = "https://www.linkedin.com"
LINKEDIN_FEED_URL = f"{SITE_BASE_URL}/feed"
CONNECTIONS_URL = f"{SITE_BASE_URL}/mynetwork/invite-connect/connections/"

# Logging
LOG_LEVEL = os.getenv("INDEXER_LOG_LEVEL", "INFO")

# Remote store (can be overridden via environment variables)
ENDPOINT_URL = os.getenv("INDEXER_ENDPOINT_URL") or None
API_KEY = os.getenv("INDEXER_API_KEY") or None
DELIVERY_MODE = os.getenv("INDEXER_DELIVERY_MODE", "upsert")
POCKETBASE_COLLECTION = os.getenv("INDEXER_POCKETBASE_COLLECTION", "connections_v2")
REQUEST_TIMEOUT = _get_env_float("INDEXER_REQUEST_TIMEOUT", 30.0, min_value=1.0)
HEALTH_CHECK_ATTEMPTS = _get_env_int("INDEXER_HEALTH_CHECK_ATTEMPTS", 3, min_value=1)
HEALTH_CHECK_DELAY = _get_env_float("INDEXER_HEALTH_CHECK_DELAY", 1.0, min_value=0.0)
SEARCH_PAGE_SIZE = _get_env_int("INDEXER_SEARCH_PAGE_SIZE", 200, min_value=1)

# Debounce intervals in seconds (can be overridden via environment variables)
SCAN_DEBOUNCE_SECONDS = _get_env_float("INDEXER_SCAN_DEBOUNCE", 0.5, min_value=0.0)
SCROLL_DEBOUNCE_SECONDS = _get_env_float("INDEXER_SCROLL_DEBOUNCE", 1.0, min_value=0.0)
INITIAL_SCAN_DELAY = _get_env_float("INDEXER_INITIAL_SCAN_DELAY", 1.5, min_value=0.0)
SYNC_DEBOUNCE_SECONDS = _get_env_float("INDEXER_SYNC_DEBOUNCE", 2.0, min_value=0.0)

# Pending queue bound, 0 keeps every record until it is delivered
MAX_PENDING_RECORDS = _get_env_int("INDEXER_MAX_PENDING_RECORDS", 0, min_value=0)

# Browser settings (can be overridden via environment variables)
BROWSER_HEADLESS = _get_env_bool("INDEXER_BROWSER_HEADLESS", False)
BROWSER_VIEWPORT_WIDTH = _get_env_int("INDEXER_BROWSER_VIEWPORT_WIDTH", 1920, min_value=1)
BROWSER_VIEWPORT_HEIGHT = _get_env_int("INDEXER_BROWSER_VIEWPORT_HEIGHT", 1080, min_value=1)
USER_AGENT = os.getenv(
    "INDEXER_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
BROWSER_LOCALE = os.getenv("INDEXER_BROWSER_LOCALE", "en-US")

# Timeouts (in milliseconds)
NAVIGATION_TIMEOUT = _get_env_int("INDEXER_NAVIGATION_TIMEOUT", 60000, min_value=1000)
LOGIN_TIMEOUT_SECONDS = _get_env_int("INDEXER_LOGIN_TIMEOUT", 300, min_value=10)

# Scrolling while indexing (seconds between scroll steps)
SCROLL_DELAY_MIN = _get_env_float("INDEXER_SCROLL_DELAY_MIN", 2.0, min_value=0.0)
SCROLL_DELAY_MAX = _get_env_float("INDEXER_SCROLL_DELAY_MAX", 4.0, min_value=0.0)

# Selectors - Login detection
LOGGED_IN_INDICATORS = [
    'nav[aria-label="Main navigation"]',
    'header[data-test-id="global-nav"]',
    'main[role="main"]',
]

# Selectors - Loading more cards
SHOW_MORE_SELECTORS = [
    'button.scaffold-finite-scroll__load-button',
    'button:has-text("Show more results")',
    'button[aria-label*="Show more"]',
]

# Selectors - Card location
PROFILE_LINK_SELECTOR = 'a[href*="/in/"]'
PROFILE_PATH_MARKER = "/in/"
CARD_SELECTORS = [
    "li.mn-connection-card",  # Connections list
    "div.mn-connection-card",
    "li.reusable-search__result-container",  # Search results
    'div[data-view-name="people-search-result"]',
    "li.org-people-profile-card__profile-card-spacing",  # Company people tab
    "div.discover-entity-type-card",  # My Network suggestions
]
CARD_CONTAINER_TAGS = ("li", "article")
CARD_WALK_MAX_DEPTH = _get_env_int("INDEXER_CARD_WALK_MAX_DEPTH", 10, min_value=1)

# Extraction heuristics
PLACEHOLDER_PROFILE_MARKERS = ["/in/ACoAAA"]
NAME_CHROME_TOKENS = ["view", "linkedin", "connect"]
MOJIBAKE_MARKERS = ["â€¢", "â€™", "Â·"]
NAME_MIN_LENGTH = 2  # exclusive
NAME_MAX_LENGTH = 50  # exclusive
NAME_MAX_WORDS = 5
HEADLINE_LINE_MIN_LENGTH = 5  # exclusive
HEADLINE_LINE_MAX_LENGTH = 200  # exclusive
HEADLINE_MIN_LENGTH = 10  # exclusive
HEADLINE_LOOKAHEAD_LINES = 3
HEADLINE_SKIP_TOKENS = ["Connect", "Follow", "mutual", "Message"]
HEADLINE_SPLIT_ON_COMMA = _get_env_bool("INDEXER_HEADLINE_SPLIT_ON_COMMA", False)
IMAGE_HOST_MARKERS = ["licdn"]
IMAGE_REJECT_MARKERS = ["ghost", "placeholder", "data:"]

# Validate that min delays are <= max delays
if SCROLL_DELAY_MIN > SCROLL_DELAY_MAX:
    raise ValueError("SCROLL_DELAY_MIN must be <= SCROLL_DELAY_MAX")
if DELIVERY_MODE not in ("upsert", "bulk"):
    raise ValueError("DELIVERY_MODE must be 'upsert' or 'bulk'")

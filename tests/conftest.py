"""
Pytest configuration and shared fixtures.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import BeautifulSoup

from connection_indexer.models import ConnectionRecord
from connection_indexer.remote import RemoteStoreError

CONNECTIONS_PAGE_HTML = """
<html>
<body>
<header><a href="/in/me/">Me</a></header>
<main>
<ul class="mn-connection-list">
<li class="mn-connection-card">
    <a class="mn-connection-card__link" href="/in/jane-doe/?miniProfileUrn=urn%3Ali%3Afs">
        <img src="https://media.licdn.com/dms/image/jane.jpg" alt="Jane Doe">
        <span class="mn-connection-card__name">
            Jane Doe
        </span>
    </a>
    <span class="mn-connection-card__occupation">
        Senior Engineer at Acme Corp
    </span>
    <button>Message</button>
</li>
<li class="mn-connection-card">
    <a class="mn-connection-card__link" href="https://www.linkedin.com/in/bob-stone?trk=people">
        <img src="https://static.licdn.com/sc/h/ghost-person.svg" alt="">
        <span class="mn-connection-card__name">
            Bob Stone
        </span>
    </a>
    <span class="mn-connection-card__occupation">
        Freelance photographer
    </span>
    <button>Message</button>
</li>
</ul>
</main>
</body>
</html>
"""

SEARCH_PAGE_HTML = """
<html>
<body>
<main>
<div class="search-results">
<ul role="list">
<li class="result-v3">
    <a href="https://www.linkedin.com/in/john-smith?trk=search"><img src="https://media.licdn.com/dms/image/john.jpg"></a>
    <a href="https://www.linkedin.com/in/john-smith?trk=search">
        <span aria-hidden="true">John Smith</span>
    </a>
    <span>2nd</span>
    <p>Data Scientist | Globex</p>
    <button>Connect</button>
</li>
<li class="result-v3">
    <a href="/in/ACoAAAxyz123">
        <span aria-hidden="true">LinkedIn Member</span>
    </a>
    <p>Consultant at Somewhere</p>
</li>
</ul>
</div>
</main>
</body>
</html>
"""


@pytest.fixture
def connections_html():
    return CONNECTIONS_PAGE_HTML


@pytest.fixture
def search_html():
    return SEARCH_PAGE_HTML


@pytest.fixture
def make_card():
    """Parse a snippet and return its first element."""

    def _make(html: str):
        soup = BeautifulSoup(html, "html.parser")
        return soup.find(True)

    return _make


@pytest.fixture
def make_record():
    """Build a valid ConnectionRecord for a slug."""

    def _make(slug: str, **fields) -> ConnectionRecord:
        defaults = {
            "profile_url": f"https://www.linkedin.com/in/{slug}",
            "name": slug.replace("-", " ").title(),
        }
        return ConnectionRecord(**{**defaults, **fields})

    return _make


class FakeUpsertStore:
    """In-memory stand-in for the per-record (PocketBase) backend."""

    supports_bulk = False
    base_url = "http://store.test"

    def __init__(self):
        self.existing: dict[str, str] = {}
        self.created = []
        self.updated = []
        self.fail_urls: set[str] = set()
        self.fail_all = False
        self.closed = False

    async def find_by_profile_url(self, profile_url):
        if self.fail_all or profile_url in self.fail_urls:
            raise RemoteStoreError("HTTP 500")
        return self.existing.get(profile_url)

    async def create(self, record):
        self.created.append(record)
        self.existing[record.profile_url] = f"rec{len(self.existing) + 1}"
        return {"id": self.existing[record.profile_url]}

    async def update(self, record_id, record):
        self.updated.append((record_id, record))
        return {"id": record_id}

    async def aclose(self):
        self.closed = True


class FakeBulkStore:
    """In-memory stand-in for the bulk POST backend."""

    supports_bulk = True
    base_url = "http://store.test"

    def __init__(self):
        self.batches = []
        self.fail = False
        self.gate = None
        self.closed = False

    async def bulk_create(self, records):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RemoteStoreError("POST /api/connections returned HTTP 503")
        self.batches.append(list(records))
        return len(records)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def upsert_store():
    return FakeUpsertStore()


@pytest.fixture
def bulk_store():
    return FakeBulkStore()


@pytest.fixture
def mock_page():
    """Create a mock Playwright page object."""
    page = AsyncMock()
    page.url = "https://www.linkedin.com/mynetwork/invite-connect/connections/"

    # Mock locator
    locator = AsyncMock()
    page.locator = MagicMock(return_value=locator)

    page.evaluate = AsyncMock()
    page.expose_binding = AsyncMock()
    page.add_init_script = AsyncMock()
    page.content = AsyncMock(return_value=CONNECTIONS_PAGE_HTML)

    return page


@pytest.fixture
def mock_client(mock_page):
    """Create a mock LinkedInClient."""
    from connection_indexer.linkedin_client import LinkedInClient

    client = LinkedInClient()
    client.page = mock_page
    client.context = AsyncMock()
    client.browser = AsyncMock()
    client.playwright = AsyncMock()

    client.navigate_to = AsyncMock()

    return client

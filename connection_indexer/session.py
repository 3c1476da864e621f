"""
Indexer Session - Everything that lives for one page load.

The session owns the dedup ledger, the batch dispatcher (and with it the
pending queue), the change watcher and the remote store configuration. It is
created when a page is attached and thrown away on navigation.
"""

import logging
from collections.abc import Awaitable, Callable

from bs4 import BeautifulSoup

from connection_indexer import config
from connection_indexer.constants import DeliveryMode, LocatorStrategy
from connection_indexer.dispatcher import BatchDispatcher
from connection_indexer.extractor import extract
from connection_indexer.ledger import DedupLedger
from connection_indexer.locator import STRATEGIES_BY_NAME, find_scan_root, locate_cards
from connection_indexer.models import ConnectionRecord, StatusReport
from connection_indexer.remote import RemoteStore, build_store
from connection_indexer.watcher import ChangeWatcher

logger = logging.getLogger(__name__)

HtmlSnapshot = Callable[[], Awaitable[str]]


class IndexerSession:
    """Scan pipeline plus the state it mutates."""

    def __init__(
        self,
        snapshot: HtmlSnapshot | None = None,
        store: RemoteStore | None = None,
        strategy: LocatorStrategy | str = LocatorStrategy.AUTO,
        dispatcher: BatchDispatcher | None = None,
        watcher: ChangeWatcher | None = None,
    ):
        self._snapshot = snapshot
        self.strategy = LocatorStrategy(strategy)
        self.ledger = DedupLedger()
        self.dispatcher = dispatcher or BatchDispatcher()
        if store is not None:
            self.dispatcher.set_store(store)
        self.watcher = watcher or ChangeWatcher(self.scan)

    @classmethod
    def from_config(cls, snapshot: HtmlSnapshot | None = None, **kwargs) -> "IndexerSession":
        """Session wired to the endpoint configured through the environment."""
        store = build_store(config.ENDPOINT_URL, config.API_KEY, config.DELIVERY_MODE)
        return cls(snapshot=snapshot, store=store, **kwargs)

    @property
    def store(self) -> RemoteStore | None:
        return self.dispatcher.store

    def scan_html(self, html: str) -> int:
        """
        Run one locate/extract/dedup pass over an HTML document.

        A card that fails to extract is dropped on its own; the pass goes on.
        Returns the number of records that were new to this session. Outside a
        running event loop the sync is deferred until the next scan().
        """
        root = find_scan_root(BeautifulSoup(html, "html.parser"))
        cards = locate_cards(root, STRATEGIES_BY_NAME[self.strategy])

        new_records: list[ConnectionRecord] = []
        for card in cards:
            try:
                record = extract(card)
            except Exception as e:
                logger.debug(f"Error extracting card: {e}")
                continue
            if record is None or not self.ledger.admit(record.profile_url):
                continue
            new_records.append(record)

        logger.info(f"New connections: {len(new_records)} ({len(cards)} cards scanned)")
        self.dispatcher.enqueue(new_records)
        return len(new_records)

    async def scan(self) -> int:
        """Snapshot the page and scan it."""
        self.dispatcher.resume()
        if self._snapshot is None:
            logger.warning("Scan requested before a page was attached")
            return 0
        try:
            html = await self._snapshot()
        except Exception as e:
            logger.warning(f"Could not read page content: {e}")
            return 0
        return self.scan_html(html)

    async def attach(self, page):
        """Start watching a Playwright page; its HTML becomes the scan source."""
        if self._snapshot is None:
            self._snapshot = page.content
        self.dispatcher.resume()
        await self.watcher.attach(page)

    def start(self):
        """Start watching without a page (notifications come from the host)."""
        self.dispatcher.resume()
        self.watcher.start()

    async def update_config(
        self,
        endpoint: str | None,
        api_key: str | None = None,
        mode: DeliveryMode | str | None = None,
    ):
        """
        Point delivery at a new backend. Held records are scheduled right away.

        Without a mode the configured default (INDEXER_DELIVERY_MODE) is used.
        """
        mode = mode or config.DELIVERY_MODE
        previous = self.dispatcher.store
        self.dispatcher.set_store(build_store(endpoint, api_key, mode))
        logger.info(f"Remote store set to {endpoint or 'none'} ({DeliveryMode(mode)})")
        if previous is not None:
            await self.dispatcher.wait_idle()
            await previous.aclose()

    def status(self) -> StatusReport:
        return StatusReport(
            processed=len(self.ledger),
            pending=self.dispatcher.pending_count,
            configured=self.dispatcher.configured,
        )

    async def close(self, flush: bool = False):
        """
        Tear the session down.

        With flush=True the pending queue gets one last delivery attempt;
        otherwise whatever is still queued is discarded.
        """
        self.watcher.stop()
        await self.watcher.wait_idle()
        await self.dispatcher.wait_idle()
        if flush:
            await self.dispatcher.flush()
        self.dispatcher.close()
        if self.dispatcher.store is not None:
            await self.dispatcher.store.aclose()

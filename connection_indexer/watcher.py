"""
Change Watcher - Coalesce page mutations and scrolling into single rescans.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from connection_indexer import config
from connection_indexer.constants import ChangeKind

logger = logging.getLogger(__name__)

BINDING_NAME = "__connectionIndexerNotify"

# Reports every subtree mutation of <main> (or <body>) and every scroll to Python.
OBSERVER_SCRIPT = """
(() => {
    const start = () => {
        if (window.__connectionIndexerObserver) return;
        const target = document.querySelector('main') || document.body;
        if (!target) return;
        const notify = (kind) => {
            const binding = window.__connectionIndexerNotify;
            if (binding) binding(kind).catch(() => {});
        };
        const observer = new MutationObserver(() => notify('mutation'));
        observer.observe(target, { childList: true, subtree: true });
        window.addEventListener('scroll', () => notify('scroll'), { passive: true });
        window.__connectionIndexerObserver = observer;
    };
    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', start);
    } else {
        start();
    }
})();
"""


class Debouncer:
    """
    Run a callback once a quiet period has passed since the last trigger.

    Every trigger cancels the scheduled call and schedules a new one, so a
    steady stream of triggers postpones the callback indefinitely. Coroutine
    callbacks are run as tasks; their errors are logged, never raised into
    the event loop.
    """

    def __init__(self, callback: Callable[[], Awaitable[Any] | Any], delay: float):
        self._callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._deferred_delay: float | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a call is scheduled (or waiting for a loop) and has not fired yet."""
        return self._handle is not None or self._deferred_delay is not None

    def trigger(self, delay: float | None = None):
        """
        Cancel any scheduled call and schedule a new one.

        Outside a running event loop the trigger is remembered and scheduled
        by the next resume().
        """
        self.cancel()
        delay = self.delay if delay is None else delay
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, call deferred until resumed")
            self._deferred_delay = delay
            return
        self._handle = loop.call_later(delay, self._fire)

    def resume(self):
        """Schedule a trigger that arrived while no event loop was running."""
        if self._deferred_delay is not None and self._handle is None:
            self.trigger(self._deferred_delay)

    def cancel(self):
        self._deferred_delay = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        try:
            result = self._callback()
        except Exception as e:
            logger.warning(f"Debounced callback failed: {e}")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and (exc := task.exception()) is not None:
            logger.warning(f"Debounced callback failed: {exc}")

    async def wait_idle(self):
        """Wait for callbacks that have already fired to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class ChangeWatcher:
    """
    Schedule exactly one rescan after the page settles.

    Mutations and scrolls share one debouncer, each with its own quiet
    interval. An initial scan is scheduled on start, on its own timer, to pick
    up cards that were rendered before the observer existed; page activity
    does not postpone it.
    """

    def __init__(
        self,
        on_change: Callable[[], Awaitable[Any] | Any],
        quiet_interval: float | None = None,
        scroll_interval: float | None = None,
        initial_delay: float | None = None,
    ):
        self.quiet_interval = config.SCAN_DEBOUNCE_SECONDS if quiet_interval is None else quiet_interval
        self.scroll_interval = (
            config.SCROLL_DEBOUNCE_SECONDS if scroll_interval is None else scroll_interval
        )
        self.initial_delay = config.INITIAL_SCAN_DELAY if initial_delay is None else initial_delay
        self._debouncer = Debouncer(on_change, self.quiet_interval)
        self._initial_scan = Debouncer(on_change, self.initial_delay)
        self._active = False
        self.page = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def scan_pending(self) -> bool:
        return self._debouncer.pending or self._initial_scan.pending

    def start(self):
        """Begin accepting notifications and schedule the initial scan."""
        self._active = True
        self._initial_scan.trigger()

    def notify(self, kind: ChangeKind | str = ChangeKind.MUTATION):
        """Re-debounce the pending rescan. Ignored once stopped."""
        if not self._active:
            return
        delay = self.scroll_interval if kind == ChangeKind.SCROLL else self.quiet_interval
        self._debouncer.trigger(delay)

    def _on_page_event(self, source, kind: str = ChangeKind.MUTATION):
        # source is Playwright's binding info (page/frame), unused
        self.notify(kind)

    async def attach(self, page):
        """Install the in-page observer on a Playwright page and start watching."""
        self.page = page
        await page.expose_binding(BINDING_NAME, self._on_page_event)
        await page.add_init_script(OBSERVER_SCRIPT)
        await page.evaluate(OBSERVER_SCRIPT)
        logger.info("Observer started")
        self.start()

    def stop(self):
        """Cancel the pending rescan and ignore later notifications."""
        self._active = False
        self._debouncer.cancel()
        self._initial_scan.cancel()

    async def wait_idle(self):
        await self._debouncer.wait_idle()
        await self._initial_scan.wait_idle()

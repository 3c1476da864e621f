"""
Batch Dispatcher - Debounced, requeue-on-failure delivery of new records.
"""

import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from connection_indexer import config
from connection_indexer.constants import DispatcherState
from connection_indexer.models import ConnectionRecord, SyncResult
from connection_indexer.remote import RemoteStore, RemoteStoreError
from connection_indexer.watcher import Debouncer

logger = logging.getLogger(__name__)

SyncListener = Callable[[SyncResult], Awaitable[Any] | Any]


class BatchDispatcher:
    """
    Owns the pending queue and delivers it to the remote store.

    Records are appended as scans find them; every append restarts the sync
    debounce, so several scans within the window leave as one batch. A failed
    batch goes back to the front of the queue and is retried with whatever
    arrived in the meantime. There is no backoff and no retry cap.
    """

    def __init__(
        self,
        store: RemoteStore | None = None,
        debounce: float | None = None,
        max_pending: int | None = None,
    ):
        self.store = store
        self.max_pending = config.MAX_PENDING_RECORDS if max_pending is None else max_pending
        self.state = DispatcherState.IDLE
        self._queue: deque[ConnectionRecord] = deque()
        self._debouncer = Debouncer(
            self.flush, config.SYNC_DEBOUNCE_SECONDS if debounce is None else debounce
        )
        self._listeners: list[SyncListener] = []
        self._sending = False
        self._flush_deferred = False

    @property
    def configured(self) -> bool:
        return self.store is not None

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def pending(self) -> list[ConnectionRecord]:
        """Copy of the queue in delivery order."""
        return list(self._queue)

    @property
    def sync_scheduled(self) -> bool:
        return self._debouncer.pending

    def add_listener(self, listener: SyncListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: SyncListener):
        self._listeners.remove(listener)

    def set_store(self, store: RemoteStore | None):
        """Swap the backend; records waiting for configuration are scheduled."""
        self.store = store
        if store is not None and self._queue and not self._sending:
            self._schedule(DispatcherState.DEBOUNCE_WAIT)

    def enqueue(self, records: Iterable[ConnectionRecord]):
        """Append new records and restart the sync debounce."""
        records = list(records)
        if not records:
            return
        self._queue.extend(records)
        self._enforce_bound()
        if not self._sending:
            self.state = DispatcherState.COLLECTING
        self._schedule(DispatcherState.DEBOUNCE_WAIT)

    def _schedule(self, state: DispatcherState):
        self._debouncer.trigger()
        if not self._sending:
            self.state = state

    def _enforce_bound(self):
        if self.max_pending <= 0:
            return
        overflow = len(self._queue) - self.max_pending
        if overflow > 0:
            for _ in range(overflow):
                self._queue.popleft()
            logger.warning(f"Pending queue over {self.max_pending} records, dropped {overflow} oldest")

    async def flush(self) -> SyncResult | None:
        """
        Snapshot the queue and deliver it.

        Returns None when nothing was sent: empty queue, no store configured,
        or a send already in flight (the flush is then retried after it).
        """
        if self._sending:
            self._flush_deferred = True
            return None
        if not self._queue:
            self.state = DispatcherState.IDLE
            return None
        if self.store is None:
            logger.debug(f"No remote store configured, holding {len(self._queue)} records")
            self.state = DispatcherState.COLLECTING
            return None

        snapshot = list(self._queue)
        self._queue.clear()
        self._debouncer.cancel()
        self._sending = True
        self.state = DispatcherState.SENDING
        try:
            result = await self._deliver(self.store, snapshot)
        except Exception as e:
            logger.exception(f"Unexpected error delivering {len(snapshot)} records: {e}")
            result = SyncResult(count=0, success=False)
        finally:
            self._sending = False

        if result.success:
            self.state = DispatcherState.IDLE
        else:
            self._queue.extendleft(reversed(snapshot))
            self._enforce_bound()
            self.state = DispatcherState.REQUEUED
            logger.warning(f"Delivery failed, requeued {len(snapshot)} records")

        await self._emit(result)

        if not result.success or self._flush_deferred:
            self._flush_deferred = False
            self._schedule(
                DispatcherState.DEBOUNCE_WAIT if result.success else DispatcherState.REQUEUED
            )
        elif self._debouncer.pending:
            self.state = DispatcherState.DEBOUNCE_WAIT
        elif self._queue:
            self._schedule(DispatcherState.DEBOUNCE_WAIT)
        return result

    async def _deliver(self, store: RemoteStore, records: list[ConnectionRecord]) -> SyncResult:
        if store.supports_bulk:
            return await self._deliver_bulk(store, records)
        return await self._deliver_each(store, records)

    async def _deliver_bulk(self, store: RemoteStore, records: list[ConnectionRecord]) -> SyncResult:
        try:
            count = await store.bulk_create(records)
        except RemoteStoreError as e:
            logger.warning(f"Bulk sync of {len(records)} records failed: {e}")
            return SyncResult(count=0, success=False)
        logger.info(f"Synced {count}/{len(records)}")
        return SyncResult(count=count, success=True)

    async def _deliver_each(self, store: RemoteStore, records: list[ConnectionRecord]) -> SyncResult:
        """Existence check then update-or-create, per record. Any success counts for the batch."""
        success_count = 0
        for record in records:
            try:
                if record_id := await store.find_by_profile_url(record.profile_url):
                    await store.update(record_id, record)
                else:
                    await store.create(record)
                success_count += 1
            except RemoteStoreError as e:
                logger.warning(f"Sync error for {record.profile_url}: {e}")

        logger.info(f"Synced {success_count}/{len(records)}")
        return SyncResult(count=success_count, success=success_count > 0)

    async def _emit(self, result: SyncResult):
        for listener in list(self._listeners):
            try:
                outcome = listener(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning(f"Sync listener failed: {e}")

    def resume(self):
        """Schedule a sync requested while no event loop was running."""
        self._debouncer.resume()

    async def wait_idle(self):
        """Wait for a flush fired by the debounce timer to finish."""
        await self._debouncer.wait_idle()

    def close(self):
        """Stop the timer. Pending records are discarded with the dispatcher."""
        self._debouncer.cancel()

"""
Connection Indexer
Watches a LinkedIn listing page while scrolling through it and syncs every
person found to the configured remote store.
"""
import argparse
import asyncio

from connection_indexer import config
from connection_indexer.constants import DeliveryMode, LocatorStrategy
from connection_indexer.logging_config import setup_logging
from connection_indexer.models import SyncResult
from connection_indexer.remote import RemoteStoreError, build_store, check_store
from connection_indexer.scrolling import browse_listing
from connection_indexer.session import IndexerSession
from connection_indexer.status import StatusChannel
from connection_indexer.utils import LinkedInClientError, print_banner, setup_linkedin_client


async def run_indexer(
    url: str,
    duration: float,
    endpoint: str | None,
    api_key: str | None,
    mode: DeliveryMode,
    strategy: LocatorStrategy,
) -> dict:
    """Index one listing page for `duration` seconds. Returns the final status."""
    store = build_store(endpoint, api_key, mode)
    if store is None:
        print("⚠️  No endpoint configured - records will be collected but not synced.\n")
    else:
        try:
            total = await check_store(store)
            print(f"✓ Remote store reachable ({total} connections stored)\n")
        except RemoteStoreError as e:
            print(f"❌ Could not reach remote store: {e}")
            await store.aclose()
            return {}

    synced = 0

    def on_sync(result: SyncResult):
        nonlocal synced
        if result.success:
            synced += result.count
            print(f"   ☁️  Synced {result.count} connection(s) (session total: {synced})")
        else:
            print("   ⚠ Sync failed - records requeued")

    try:
        async with setup_linkedin_client() as client:
            print(f"📍 Navigating to: {url}")
            await client.navigate_to(url)

            session = IndexerSession(snapshot=client.page_html, store=store, strategy=strategy)
            channel = StatusChannel(session)
            channel.subscribe(on_sync)
            await session.attach(client.page)

            print(f"📜 Scrolling for {duration:.0f}s...\n")
            try:
                steps = await browse_listing(client, duration)
                found = await channel.handle({"type": "FORCE_SCAN"})
                status = await channel.handle({"type": "GET_STATUS"})
            finally:
                await session.close(flush=True)
    finally:
        # Also reached when browser setup or login fails
        if store is not None:
            await store.aclose()

    print_banner("📊 SUMMARY")
    print(f"   • Scroll steps: {steps}")
    print(f"   • Found in final scan: {found['found']}")
    print(f"   • Connections seen: {status['processed']}")
    print(f"   • Synced this session: {synced}")
    print(f"   • Still pending: {session.dispatcher.pending_count}")
    return status


async def main():
    """Entry point."""
    parser = argparse.ArgumentParser(
        description="Index LinkedIn connections from a listing page into a remote store"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=config.CONNECTIONS_URL,
        metavar="URL",
        help=f"Listing page to index (default: {config.CONNECTIONS_URL})",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=120.0,
        metavar="SECONDS",
        help="How long to keep scrolling (default: 120)",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=config.ENDPOINT_URL,
        help="Remote store base URL (default: $INDEXER_ENDPOINT_URL)",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=config.API_KEY,
        help="Remote store credentials (default: $INDEXER_API_KEY)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in DeliveryMode],
        default=config.DELIVERY_MODE,
        help="upsert: per-record PocketBase upsert, bulk: one POST per batch",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in LocatorStrategy],
        default=LocatorStrategy.AUTO.value,
        help="How cards are located on the page",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    setup_logging("DEBUG" if args.debug else None)
    print_banner("LINKEDIN CONNECTION INDEXER")

    try:
        await run_indexer(
            url=args.url,
            duration=args.duration,
            endpoint=args.endpoint,
            api_key=args.api_key,
            mode=DeliveryMode(args.mode),
            strategy=LocatorStrategy(args.strategy),
        )
    except LinkedInClientError as e:
        print(f"\n❌ {e}")
        return


if __name__ == "__main__":
    asyncio.run(main())

"""
Export synced connections from the remote store to CSV.
"""

import argparse
import asyncio
from pathlib import Path

import pandas as pd

from connection_indexer import config
from connection_indexer.constants import DeliveryMode
from connection_indexer.logging_config import setup_logging
from connection_indexer.models import RECORD_FIELDS
from connection_indexer.remote import RemoteStore, RemoteStoreError, build_store

logger = setup_logging()


async def export_connections(store: RemoteStore, output_csv: str, query: str = "") -> int:
    """Write every record matching `query` to CSV. Returns the row count."""
    records = await store.search(query)
    logger.info(f"Fetched {len(records)} connections from {store.base_url}")

    df = pd.DataFrame(records)
    for column in RECORD_FIELDS:
        if column not in df.columns:
            df[column] = ""
    df = df[list(RECORD_FIELDS)].drop_duplicates(subset="profile_url").sort_values("name")

    output_path = Path(output_csv)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    logger.info(f"Wrote {len(df)} rows to {output_path}")
    return len(df)


async def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description="Export synced connections to CSV")
    parser.add_argument("--query", type=str, default="", help="Free-text search terms")
    parser.add_argument(
        "--output-csv",
        type=str,
        default=config.EXPORT_CSV,
        metavar="CSV",
        help=f"Output CSV file (default: {config.EXPORT_CSV})",
    )
    parser.add_argument("--endpoint", type=str, default=config.ENDPOINT_URL)
    parser.add_argument("--api-key", type=str, default=config.API_KEY)
    parser.add_argument(
        "--mode", choices=[m.value for m in DeliveryMode], default=config.DELIVERY_MODE
    )
    args = parser.parse_args()

    store = build_store(args.endpoint, args.api_key, args.mode)
    if store is None:
        logger.error("No endpoint configured (use --endpoint or INDEXER_ENDPOINT_URL)")
        return

    async with store:
        try:
            await export_connections(store, args.output_csv, args.query)
        except RemoteStoreError as e:
            logger.error(f"Export failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())

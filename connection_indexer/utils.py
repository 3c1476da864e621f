"""
Shared utility functions for the connection indexer scripts.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from connection_indexer import linkedin_client
from connection_indexer.linkedin_client import LinkedInClientError


def print_banner(title: str):
    """Print a formatted banner."""
    print(f"\n{'='*80}")
    print(title)
    print(f"{'='*80}\n")


@asynccontextmanager
async def setup_linkedin_client() -> AsyncGenerator[linkedin_client.LinkedInClient, None]:
    """
    Context manager for setting up and cleaning up LinkedIn client.

    Sets up browser, ensures login, and automatically cleans up on exit.
    Raises LinkedInClientError if setup or login fails.

    Usage:
        try:
            async with setup_linkedin_client() as client:
                # Use client here
        except LinkedInClientError as e:
            print(f"Failed to setup client: {e}")
            return
    """
    client = linkedin_client.LinkedInClient()

    try:
        print("🌐 Setting up browser...")
        await client.setup_browser()
        print("✓ Browser ready\n")

        print("🔐 Checking login status...")
        if not await client.ensure_logged_in():
            raise LinkedInClientError("Failed to log in to LinkedIn. Please check your credentials and try again.")
        print("✓ Logged in successfully\n")

        yield client

    finally:
        print("\n🔒 Closing browser...")
        await client.close()
        print("✓ Browser closed")


__all__ = ["LinkedInClientError", "print_banner", "setup_linkedin_client"]

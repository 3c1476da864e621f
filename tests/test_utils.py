"""
Tests for utility functions and the browser client.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from connection_indexer.linkedin_client import LinkedInClient
from connection_indexer.utils import LinkedInClientError, print_banner, setup_linkedin_client


def test_print_banner(capsys):
    print_banner("Indexing connections")
    out = capsys.readouterr().out
    assert "Indexing connections" in out
    assert "=" * 80 in out


@pytest.mark.asyncio
async def test_setup_linkedin_client_handles_login_failure(mock_client):
    """Test that setup_linkedin_client raises error and cleans up on login failure."""
    with patch('connection_indexer.linkedin_client.LinkedInClient') as mock_client_class:
        mock_client_class.return_value = mock_client
        mock_client.setup_browser = AsyncMock()
        mock_client.ensure_logged_in = AsyncMock(return_value=False)
        mock_client.close = AsyncMock()

        with pytest.raises(LinkedInClientError, match="Failed to log in"):
            async with setup_linkedin_client():
                pass

        # Should cleanup browser even on failure
        mock_client.close.assert_called_once()


@pytest.mark.asyncio
async def test_setup_linkedin_client_yields_logged_in_client(mock_client):
    with patch('connection_indexer.linkedin_client.LinkedInClient') as mock_client_class:
        mock_client_class.return_value = mock_client
        mock_client.setup_browser = AsyncMock()
        mock_client.ensure_logged_in = AsyncMock(return_value=True)
        mock_client.close = AsyncMock()

        async with setup_linkedin_client() as client:
            assert client is mock_client
            mock_client.close.assert_not_called()

        mock_client.close.assert_called_once()


@pytest.mark.asyncio
async def test_navigate_to_raises_on_http_error(mock_page):
    """Test that a blocked page aborts navigation with a readable message."""
    client = LinkedInClient()
    client.page = mock_page
    mock_page.goto = AsyncMock(return_value=MagicMock(status=429))

    with pytest.raises(LinkedInClientError, match="Rate limited"):
        await client.navigate_to("https://www.linkedin.com/mynetwork/")


@pytest.mark.asyncio
async def test_navigate_to_tolerates_slow_load(mock_page):
    client = LinkedInClient()
    client.page = mock_page
    mock_page.goto = AsyncMock(return_value=MagicMock(status=200))
    mock_page.wait_for_load_state = AsyncMock(side_effect=TimeoutError("load"))

    await client.navigate_to("https://www.linkedin.com/mynetwork/")
    mock_page.goto.assert_awaited_once()


@pytest.mark.asyncio
async def test_page_html_returns_page_content(mock_client, connections_html):
    assert await mock_client.page_html() == connections_html


@pytest.mark.asyncio
async def test_is_logged_in_false_on_login_page(mock_client):
    mock_client.page.url = "https://www.linkedin.com/login?session_redirect=x"
    assert await mock_client.is_logged_in() is False

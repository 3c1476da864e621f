"""
Tests for the status/command channel.
"""

from unittest.mock import AsyncMock

import pytest

from connection_indexer.dispatcher import BatchDispatcher
from connection_indexer.models import SyncResult
from connection_indexer.session import IndexerSession
from connection_indexer.status import StatusChannel


@pytest.fixture
def session(connections_html):
    return IndexerSession(
        snapshot=AsyncMock(return_value=connections_html),
        dispatcher=BatchDispatcher(debounce=60),
    )


@pytest.mark.asyncio
async def test_get_status(session):
    channel = StatusChannel(session)
    assert await channel.handle({"type": "GET_STATUS"}) == {
        "processed": 0,
        "pending": 0,
        "configured": False,
    }


@pytest.mark.asyncio
async def test_force_scan_reports_new_records(session):
    channel = StatusChannel(session)

    assert await channel.handle({"type": "FORCE_SCAN"}) == {"found": 2}
    status = await channel.handle({"type": "GET_STATUS"})
    assert status == {"processed": 2, "pending": 2, "configured": False}
    await session.close()


@pytest.mark.asyncio
async def test_force_scan_with_nothing_new_changes_nothing(session):
    """Test that a rescan of an unchanged page queues and emits nothing."""
    channel = StatusChannel(session)
    events = []
    channel.subscribe(events.append)

    await channel.handle({"type": "FORCE_SCAN"})
    pending_before = session.dispatcher.pending

    assert await channel.handle({"type": "FORCE_SCAN"}) == {"found": 0}
    assert session.dispatcher.pending == pending_before
    assert events == []
    await session.close()


@pytest.mark.asyncio
async def test_update_config_configures_delivery(session):
    channel = StatusChannel(session)

    response = await channel.handle(
        {"type": "UPDATE_CONFIG", "endpoint": "http://web.test", "api_key": "k", "mode": "bulk"}
    )

    assert response == {"success": True}
    assert session.store.supports_bulk
    assert (await channel.handle({"type": "GET_STATUS"}))["configured"] is True
    await session.close()


@pytest.mark.asyncio
async def test_update_config_with_empty_endpoint_unconfigures(session):
    channel = StatusChannel(session)
    assert await channel.handle({"type": "UPDATE_CONFIG", "endpoint": ""}) == {"success": True}
    assert session.store is None


@pytest.mark.asyncio
async def test_update_config_invalid_mode(session):
    channel = StatusChannel(session)
    response = await channel.handle(
        {"type": "UPDATE_CONFIG", "endpoint": "http://pb.test", "mode": "smoke-signals"}
    )
    assert response["success"] is False
    assert session.store is None


@pytest.mark.asyncio
async def test_unknown_command(session):
    channel = StatusChannel(session)
    response = await channel.handle({"type": "SELF_DESTRUCT"})
    assert response["success"] is False
    assert "SELF_DESTRUCT" in response["error"]

    response = await channel.handle({})
    assert response["success"] is False


@pytest.mark.asyncio
async def test_subscriber_gets_completion_event(session, bulk_store):
    channel = StatusChannel(session)
    events = []
    channel.subscribe(events.append)
    session.dispatcher.set_store(bulk_store)

    await channel.handle({"type": "FORCE_SCAN"})
    await session.dispatcher.flush()
    await session.close()

    assert events == [SyncResult(count=2, success=True)]


@pytest.mark.asyncio
async def test_update_config_without_mode_keeps_configured_mode(session, monkeypatch):
    """Test that omitting the mode does not switch a bulk deployment to upsert."""
    monkeypatch.setattr("connection_indexer.config.DELIVERY_MODE", "bulk")
    channel = StatusChannel(session)

    assert await channel.handle({"type": "UPDATE_CONFIG", "endpoint": "http://web.test"}) == {
        "success": True
    }
    assert session.store.supports_bulk
    await session.close()

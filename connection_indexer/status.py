"""
Status Channel - Command interface for the host (popup, CLI, tests).
"""

import logging

from connection_indexer.constants import CommandType
from connection_indexer.dispatcher import SyncListener
from connection_indexer.session import IndexerSession

logger = logging.getLogger(__name__)


class StatusChannel:
    """Translates command messages into session calls."""

    def __init__(self, session: IndexerSession):
        self.session = session

    def subscribe(self, listener: SyncListener):
        """Receive a SyncResult after every delivery attempt."""
        self.session.dispatcher.add_listener(listener)

    async def handle(self, message: dict) -> dict:
        try:
            command = CommandType(message.get("type"))
        except ValueError:
            logger.debug(f"Ignoring unknown command: {message.get('type')!r}")
            return {"success": False, "error": f"Unknown command: {message.get('type')}"}

        if command == CommandType.GET_STATUS:
            return self.session.status().model_dump()

        if command == CommandType.UPDATE_CONFIG:
            try:
                await self.session.update_config(
                    message.get("endpoint"),
                    api_key=message.get("api_key"),
                    mode=message.get("mode"),
                )
            except ValueError as e:
                return {"success": False, "error": str(e)}
            return {"success": True}

        found = await self.session.scan()
        return {"found": found}

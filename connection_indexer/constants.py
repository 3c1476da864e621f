"""
Constants for the connection indexer.
Centralized enums shared by the pipeline, the status channel and the scripts.
"""

from enum import StrEnum


class DeliveryMode(StrEnum):
    """Remote write protocol, chosen by what the backend supports."""

    UPSERT = "upsert"
    BULK = "bulk"


class LocatorStrategy(StrEnum):
    """How cards are found on a page."""

    SELECTORS = "selectors"
    ANCHOR_WALK = "anchor_walk"
    AUTO = "auto"


class DispatcherState(StrEnum):
    """Lifecycle of the pending batch."""

    IDLE = "idle"
    COLLECTING = "collecting"
    DEBOUNCE_WAIT = "debounce_wait"
    SENDING = "sending"
    REQUEUED = "requeued"


class CommandType(StrEnum):
    """Commands accepted by the status channel."""

    GET_STATUS = "GET_STATUS"
    UPDATE_CONFIG = "UPDATE_CONFIG"
    FORCE_SCAN = "FORCE_SCAN"


class ChangeKind(StrEnum):
    """Page events reported by the in-page observer."""

    MUTATION = "mutation"
    SCROLL = "scroll"

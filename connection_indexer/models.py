"""
Record shapes shared by the extractor, the dispatcher and the remote store.
"""

from pydantic import BaseModel, ConfigDict, field_validator

# Fields sent to the remote store, in wire order
RECORD_FIELDS = ("profile_url", "name", "headline", "title", "company", "location", "image_url")


class ConnectionRecord(BaseModel):
    """One person harvested from a listing card, keyed by profile_url."""

    profile_url: str
    name: str
    headline: str = ""
    title: str = ""
    company: str = ""
    location: str = ""
    image_url: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("profile_url", "name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    def to_payload(self) -> dict[str, str]:
        """Record shape crossing the remote boundary."""
        return self.model_dump(include=set(RECORD_FIELDS))


class SyncResult(BaseModel):
    """Completion event emitted after every delivery attempt."""

    count: int
    success: bool


class StatusReport(BaseModel):
    processed: int
    pending: int
    configured: bool

"""
Remote store clients - REST backends that hold the synced connections.

Two backend shapes are supported:
- PocketBase collection API: per-record lookup, create and update (upsert).
- Connections web API: one bulk POST that upserts server-side.
"""

import logging

import httpx

from connection_indexer import config
from connection_indexer.constants import DeliveryMode
from connection_indexer.models import ConnectionRecord
from connection_indexer.retry import retry_async

logger = logging.getLogger(__name__)

# Fields matched by free-text search
SEARCH_FIELDS = ("name", "company", "title", "headline")


class RemoteStoreError(Exception):
    """Raised when the remote store is unreachable or answers with a non-2xx status."""

    pass


class RemoteStore:
    """Base client. Subclasses declare whether they accept bulk submissions."""

    supports_bulk = False

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._auth_headers(),
            timeout=timeout or config.REQUEST_TIMEOUT,
            transport=transport,
        )

    def _auth_headers(self) -> dict[str, str]:
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(
                f"{method} {path} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {path} failed: {e}") from e
        return response

    async def _request_json(self, method: str, path: str, **kwargs) -> dict:
        response = await self._request(method, path, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteStoreError(f"{method} {path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise RemoteStoreError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    async def count(self) -> int:
        """Number of stored connections; doubles as a health check."""
        raise NotImplementedError

    async def search(self, query: str = "") -> list[dict]:
        raise NotImplementedError

    async def aclose(self):
        if not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


class PocketBaseStore(RemoteStore):
    """Records collection on a PocketBase server, keyed by profile_url."""

    def __init__(self, base_url: str, collection: str | None = None, **kwargs):
        self.collection = collection or config.POCKETBASE_COLLECTION
        super().__init__(base_url, **kwargs)

    @property
    def records_path(self) -> str:
        return f"/api/collections/{self.collection}/records"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": self.api_key} if self.api_key else {}

    async def find_by_profile_url(self, profile_url: str) -> str | None:
        """Return the remote id of the record with this profile_url, if any."""
        escaped = profile_url.replace("\\", "\\\\").replace("'", "\\'")
        data = await self._request_json(
            "GET",
            self.records_path,
            params={"filter": f"(profile_url='{escaped}')", "perPage": 1},
        )
        items = data.get("items") or []
        if not items:
            return None
        if not isinstance(items, list) or not isinstance(items[0], dict) or not items[0].get("id"):
            raise RemoteStoreError(f"Lookup for {profile_url} returned a record without an id")
        return items[0]["id"]

    async def create(self, record: ConnectionRecord) -> dict:
        return await self._request_json("POST", self.records_path, json=record.to_payload())

    async def update(self, record_id: str, record: ConnectionRecord) -> dict:
        return await self._request_json(
            "PATCH", f"{self.records_path}/{record_id}", json=record.to_payload()
        )

    async def count(self) -> int:
        data = await self._request_json("GET", self.records_path, params={"perPage": 1})
        return int(data.get("totalItems", 0))

    @staticmethod
    def build_search_filter(query: str) -> str:
        """Every term must match at least one of the searchable fields."""
        conditions = []
        for term in query.split():
            escaped = term.replace('"', '\\"')
            fields = " || ".join(f'{field} ~ "{escaped}"' for field in SEARCH_FIELDS)
            conditions.append(f"({fields})")
        return " && ".join(conditions)

    async def search(self, query: str = "") -> list[dict]:
        params = {"perPage": config.SEARCH_PAGE_SIZE, "sort": "name"}
        if search_filter := self.build_search_filter(query):
            params["filter"] = search_filter

        records: list[dict] = []
        page = 1
        while True:
            data = await self._request_json(
                "GET", self.records_path, params={**params, "page": page}
            )
            records.extend(data.get("items") or [])
            if page >= int(data.get("totalPages", 1)):
                return records
            page += 1


class ConnectionsApiStore(RemoteStore):
    """Connections web API: bulk upsert guarded by an API key."""

    supports_bulk = True
    connections_path = "/api/connections"

    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key} if self.api_key else {}

    async def bulk_create(self, records: list[ConnectionRecord]) -> int:
        """Submit the whole batch in one request. Returns the count the server reports."""
        data = await self._request_json(
            "POST", self.connections_path, json=[record.to_payload() for record in records]
        )
        return int(data.get("count", len(records)))

    async def count(self) -> int:
        data = await self._request_json("GET", self.connections_path, params={"count": "true"})
        return int(data.get("count", 0))

    async def search(self, query: str = "") -> list[dict]:
        data = await self._request_json("GET", self.connections_path, params={"q": query})
        return data.get("connections") or []


def build_store(
    endpoint: str | None,
    api_key: str | None = None,
    mode: DeliveryMode | str | None = None,
    **kwargs,
) -> RemoteStore | None:
    """Create the client for a backend, or None when no endpoint is configured."""
    if not endpoint or not endpoint.strip():
        return None
    if DeliveryMode(mode or config.DELIVERY_MODE) == DeliveryMode.BULK:
        return ConnectionsApiStore(endpoint.strip(), api_key=api_key, **kwargs)
    return PocketBaseStore(endpoint.strip(), api_key=api_key, **kwargs)


async def check_store(
    store: RemoteStore, max_attempts: int | None = None, delay: float | None = None
) -> int:
    """Validate configuration with a count query. Raises RemoteStoreError if unreachable."""
    total = await retry_async(
        store.count,
        max_attempts=max_attempts or config.HEALTH_CHECK_ATTEMPTS,
        delay=config.HEALTH_CHECK_DELAY if delay is None else delay,
        exceptions=(RemoteStoreError,),
    )
    logger.info(f"Remote store reachable at {store.base_url} ({total} connections)")
    return total

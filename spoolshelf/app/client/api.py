"""HTTP client for the inventory API used by the client state controller."""

import logging

import httpx

from spoolshelf.app.schemas.inventory import FilamentDraft, FilamentRecord, OperationSource

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call, tagged with the operation that issued it.

    ``status`` is None for transport failures (network error, non-JSON body).
    """

    def __init__(self, source: OperationSource, status: int | None, message: str):
        super().__init__(message)
        self.source = source
        self.status = status
        self.message = message

    def __repr__(self) -> str:
        return f"ApiError(source={self.source.value!r}, status={self.status!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiError):
            return NotImplemented
        return (self.source, self.status, self.message) == (other.source, other.status, other.message)

    def __hash__(self) -> int:
        return hash((self.source, self.status, self.message))


def _read_error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        return data.get("error") or data.get("message") or fallback
    return fallback


def _parse_record(data, source: OperationSource, fallback: str) -> FilamentRecord:
    try:
        return FilamentRecord.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ApiError(source, None, fallback) from e


class InventoryApiClient:
    """Thin async wrapper over the filament endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        """Initialize the client.

        Args:
            base_url: Where the API is served, without the /api prefix
            transport: Optional transport override (tests mount the ASGI app here)
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=self._timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request_json(
        self,
        method: str,
        path: str,
        source: OperationSource,
        fallback: str,
        token: str | None = None,
        payload: dict | None = None,
    ):
        headers = {}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"

        client = await self._get_client()
        try:
            response = await client.request(method, path, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(source, None, str(e) or fallback) from e

        if not response.is_success:
            message = _read_error_message(response, f"{fallback} ({response.status_code})")
            raise ApiError(source, response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(source, None, fallback) from e

    async def fetch_filaments(self) -> list[FilamentRecord]:
        data = await self._request_json("GET", "/api/filaments", OperationSource.LOAD, "Failed to load inventory")
        if not isinstance(data, list):
            raise ApiError(OperationSource.LOAD, None, "Failed to load inventory")
        return [_parse_record(item, OperationSource.LOAD, "Failed to load inventory") for item in data]

    async def verify_passcode(self, token: str) -> None:
        await self._request_json(
            "GET", "/api/auth/verify", OperationSource.AUTH_VERIFY, "Unable to verify passcode", token=token
        )

    async def create_filament(self, draft: FilamentDraft, token: str) -> FilamentRecord:
        data = await self._request_json(
            "POST",
            "/api/filaments",
            OperationSource.CREATE,
            "Create failed",
            token=token,
            payload=draft.to_payload(),
        )
        return _parse_record(data, OperationSource.CREATE, "Create failed")

    async def update_filament(self, filament_id: int, draft: FilamentDraft, token: str) -> FilamentRecord:
        data = await self._request_json(
            "PUT",
            f"/api/filaments/{filament_id}",
            OperationSource.UPDATE,
            "Update failed",
            token=token,
            payload=draft.to_payload(),
        )
        return _parse_record(data, OperationSource.UPDATE, "Update failed")

    async def delete_filament(self, filament_id: int, token: str) -> None:
        await self._request_json(
            "DELETE", f"/api/filaments/{filament_id}", OperationSource.DELETE, "Delete failed", token=token
        )

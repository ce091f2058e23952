"""
GraphQL client with a normalized response cache.

Requests go out as ``POST {"query", "variables"}`` with the session token
in the Authorization header. Objects in responses that carry both
``__typename`` and ``_id`` are cached under ``"<__typename>:<_id>"`` so a
single entity can be evicted after logout.
"""

from typing import Any, Callable, Optional

import httpx

from cartsession import config
from cartsession.errors import AuthError, RemoteError
from cartsession.events import EventEmitter
from cartsession.logging import get_logger

logger = get_logger(__name__)

UNAUTHENTICATED_CODES = ("UNAUTHENTICATED", "FORBIDDEN")


def cache_id(typename: str, entity_id: str) -> str:
    return f"{typename}:{entity_id}"


class GraphQLClient:
    """Minimal GraphQL-over-HTTP client.

    ``store_reset`` fires after ``reset_store()`` cleared the cache;
    queries that should stay fresh subscribe to it and refetch.
    """

    def __init__(
        self,
        url: str,
        token_getter: Callable[[], Optional[str]],
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = config.GRAPHQL_TIMEOUT,
    ):
        self.url = url
        self._token_getter = token_getter
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self.cache: dict[str, dict] = {}
        self.store_reset = EventEmitter("store_reset")

    async def query(self, document: str, variables: Optional[dict] = None) -> dict:
        """
        Run a query against the network, bypassing the cache.

        Returns:
            The ``data`` member of the response

        Raises:
            AuthError: token rejected (HTTP 401/403 or UNAUTHENTICATED)
            RemoteError: transport, HTTP or GraphQL failure
        """
        headers = {}
        token = self._token_getter()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._http.post(
                self.url,
                json={"query": document, "variables": variables or {}},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise RemoteError(f"GraphQL request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(status_code=response.status_code)
        if response.status_code >= 400:
            raise RemoteError(f"GraphQL HTTP {response.status_code}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteError("GraphQL response is not JSON") from e

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            errors = [err if isinstance(err, dict) else {"message": str(err)} for err in errors]
            message = "; ".join(str(err.get("message", err)) for err in errors)
            codes = {(err.get("extensions") or {}).get("code") for err in errors}
            if codes & set(UNAUTHENTICATED_CODES):
                raise AuthError(message)
            raise RemoteError(message)

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise RemoteError("GraphQL response has no data")

        self._normalize(data)
        return data

    def _normalize(self, value: Any) -> None:
        if isinstance(value, dict):
            typename = value.get("__typename")
            entity_id = value.get("_id")
            if typename and entity_id:
                self.cache[cache_id(typename, str(entity_id))] = value
            for child in value.values():
                self._normalize(child)
        elif isinstance(value, list):
            for child in value:
                self._normalize(child)

    def read(self, typename: str, entity_id: str) -> Optional[dict]:
        return self.cache.get(cache_id(typename, entity_id))

    def evict(self, typename: str, entity_id: str) -> bool:
        """Drop one entity from the cache. Returns whether it was cached."""
        return self.cache.pop(cache_id(typename, entity_id), None) is not None

    async def reset_store(self) -> None:
        """Clear the cache and let active queries refetch."""
        self.cache.clear()
        logger.debug(f"Response cache reset, {len(self.store_reset)} active queries")
        await self.store_reset.emit()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

"""Remote drive implementation over a Microsoft Graph style HTTP API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from vaultreader.exceptions import (
    AuthRequiredError,
    NotFoundError,
    RemoteError,
    TransientError,
)
from vaultreader.schemas.remote import RemoteItem, RemotePage

if TYPE_CHECKING:
    from vaultreader.remote.base import TokenProvider

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 200
_SELECT_FIELDS = ",".join(
    (
        "id",
        "name",
        "size",
        "eTag",
        "lastModifiedDateTime",
        "parentReference",
        "folder",
        "file",
    )
)
_TRANSIENT_STATUS = frozenset({408, 429})


class StaticTokenProvider:
    """Token provider returning a fixed bearer token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str:
        if not self._token:
            raise AuthRequiredError("No access token configured")
        return self._token


def raise_for_remote_status(response: httpx.Response) -> None:
    """Map an unsuccessful HTTP response onto the remote error taxonomy."""
    status = response.status_code
    if status < 400:
        return
    detail = f"{response.request.method} {response.request.url.path} -> {status}"
    if status in (401, 403):
        raise AuthRequiredError(detail, status_code=status)
    if status == 404:
        raise NotFoundError(detail, status_code=status)
    if status in _TRANSIENT_STATUS or status >= 500:
        raise TransientError(detail, status_code=status)
    raise RemoteError(detail, status_code=status)


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise TransientError(
            f"Malformed response from {response.request.url.path}: {exc}",
            status_code=response.status_code,
        ) from exc
    if not isinstance(data, dict):
        raise TransientError(
            f"Unexpected response from {response.request.url.path}: expected an object",
            status_code=response.status_code,
        )
    return data


def parse_item(response: httpx.Response) -> RemoteItem:
    """Build a ``RemoteItem`` from a response, treating an unreadable body as transient."""
    data = _json_object(response)
    try:
        return RemoteItem.from_graph(data)
    except (KeyError, TypeError, ValidationError) as exc:
        raise TransientError(
            f"Malformed drive item from {response.request.url.path}: {exc}",
            status_code=response.status_code,
        ) from exc


def parse_page(response: httpx.Response) -> RemotePage:
    """Build a listing page from a response, treating an unreadable body as transient."""
    data = _json_object(response)
    try:
        items = [RemoteItem.from_graph(entry) for entry in data.get("value", [])]
        return RemotePage(items=items, continuation=data.get("@odata.nextLink"))
    except (KeyError, TypeError, AttributeError, ValidationError) as exc:
        raise TransientError(
            f"Malformed listing from {response.request.url.path}: {exc}",
            status_code=response.status_code,
        ) from exc


class GraphDrive:
    """Read-only client for ``/me/drive`` endpoints."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GraphDrive:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        token = await self._token_provider.get_token()
        try:
            response = await self._client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as exc:
            logger.warning("Remote drive request failed: %s %s", url, exc)
            raise TransientError(f"GET {url} failed: {exc}") from exc
        raise_for_remote_status(response)
        return response

    def _continuation_url(self, continuation: str) -> str:
        # Next links are absolute; keep them relative to the configured base.
        if continuation.startswith(self.base_url):
            return continuation[len(self.base_url) :]
        return continuation

    async def list_children(
        self, path: str = "", continuation: str | None = None
    ) -> RemotePage:
        """List one page of *path* (drive root when empty) or follow *continuation*."""
        if continuation:
            response = await self._get(self._continuation_url(continuation))
        else:
            clean = path.strip("/")
            url = (
                f"/me/drive/root:/{quote(clean)}:/children" if clean else "/me/drive/root/children"
            )
            response = await self._get(
                url, params={"$top": self.page_size, "$select": _SELECT_FIELDS}
            )
        return parse_page(response)

    async def fetch_content(self, remote_id: str) -> bytes:
        response = await self._get(f"/me/drive/items/{quote(remote_id)}/content")
        return response.content

    async def get_item(self, remote_id: str) -> RemoteItem:
        response = await self._get(f"/me/drive/items/{quote(remote_id)}")
        return parse_item(response)

    async def get_item_by_path(self, path: str) -> RemoteItem:
        clean = path.strip("/")
        if not clean:
            response = await self._get("/me/drive/root")
        else:
            response = await self._get(f"/me/drive/root:/{quote(clean)}")
        return parse_item(response)

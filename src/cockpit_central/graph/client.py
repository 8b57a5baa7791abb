# src/cockpit_central/graph/client.py

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..core.errors import GraphHTTPError, GraphTransportError
from ..core.ports import TokenProvider

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_PAGE_SIZE = 500


def make_timeout(connect_s: float = 5.0, read_s: float = 30.0) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _seg(value: str) -> str:
    return quote(str(value), safe="")


class ListEndpoints:
    """URLs for one SharePoint list under Microsoft Graph."""

    def __init__(self, site_id: str, list_id: str, *, base_url: str = GRAPH_BASE_URL) -> None:
        self.base = f"{base_url.rstrip('/')}/sites/{_seg(site_id)}/lists/{_seg(list_id)}"

    def columns(self) -> str:
        return f"{self.base}/columns?$select=name,displayName"

    def items(self, *, top: int = DEFAULT_PAGE_SIZE) -> str:
        # $expand needs its "$" prefix, Graph silently ignores a bare "expand".
        return f"{self.base}/items?$top={int(top)}&$expand=fields"

    def create_item(self) -> str:
        return f"{self.base}/items"

    def item(self, item_id: str) -> str:
        return f"{self.base}/items/{_seg(item_id)}"

    def item_fields(self, item_id: str) -> str:
        return f"{self.item(item_id)}/fields"


class GraphClient:
    """
    Authenticated JSON calls to Microsoft Graph.

    - adds the bearer token and Accept header to every request
    - Content-Type only on requests with a body
    - 204 No Content -> None
    - any non-2xx -> GraphHTTPError carrying status and raw body text
    - connection failures and timeouts -> GraphTransportError
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._tokens = token_provider
        self._http = httpx.AsyncClient(
            timeout=timeout or make_timeout(),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        json_body: Any | None = None,
    ) -> Any:
        token = await self._tokens.get_token()

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        kwargs: dict[str, Any] = {}
        if json_body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = json_body

        logger.debug("Graph %s %s", method, url)
        try:
            resp = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Graph %s %s failed: %s", method, url, e)
            raise GraphTransportError(f"{e.__class__.__name__}: {e}") from e

        if resp.is_error:
            body = resp.text
            logger.debug("Graph %s %s -> %s %s", method, url, resp.status_code, body[:500])
            raise GraphHTTPError(resp.status_code, resp.reason_phrase, body)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

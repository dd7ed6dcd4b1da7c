"""HTTP client for the BeanRoute ``/api/push/*`` endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from beanroute.configs import PushConfig, configs
from beanroute.core.push.errors import NetworkError

logger = logging.getLogger(__name__)

CONFIG_PATH = "/api/push/config"
USER_STATUS_PATH = "/api/push/user-status"
SUBSCRIBE_PATH = "/api/push/subscribe"
UNSUBSCRIBE_PATH = "/api/push/unsubscribe"
SEND_PATH = "/api/push/send"


class PushApiClient:
    """Thin async wrapper over the push endpoints.

    Returns raw responses so each caller applies its own status policy
    (a 401 means different things to the prober and the reconciler).
    Transport failures and timeouts are raised as :class:`NetworkError`.
    """

    def __init__(self, http: httpx.AsyncClient | None = None, settings: PushConfig | None = None) -> None:
        self.settings = settings or configs.Push
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=self.settings.BaseUrl,
            timeout=self.settings.RequestTimeoutSeconds,
        )

    async def __aenter__(self) -> PushApiClient:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def get_config(self) -> httpx.Response:
        return await self._request("GET", CONFIG_PATH)

    async def get_user_status(self) -> httpx.Response:
        return await self._request("GET", USER_STATUS_PATH)

    async def register(self, body: dict[str, Any]) -> httpx.Response:
        return await self._request("POST", SUBSCRIBE_PATH, json=body)

    async def unregister(self, body: dict[str, Any]) -> httpx.Response:
        return await self._request("POST", UNSUBSCRIBE_PATH, json=body)

    async def send(self, body: dict[str, Any]) -> httpx.Response:
        return await self._request("POST", SEND_PATH, json=body)

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} {path} timed out", cause=e) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {e}", cause=e) from e

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp


def error_detail(resp: httpx.Response, fallback: str) -> str:
    """Pull the backend's ``{"error": "..."}`` message out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback

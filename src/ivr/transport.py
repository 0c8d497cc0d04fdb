"""HTTP transport for the IVR API."""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping

import httpx

from ivr.errors import ApiFailure, MalformedResponse, TransportFailure

LOGGER = logging.getLogger(__name__)

Method = Literal["GET", "POST"]


class IvrTransport:
    """Performs exactly one request/response cycle per call.

    Non-2xx responses are read and decoded like any other; the status code is
    classified afterwards so API failures keep the server's error message.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _headers() -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def request(
        self,
        method: Method,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        kwargs: dict[str, Any] = {"headers": self._headers()}
        if method == "GET" and params:
            kwargs["params"] = dict(params)
        if method == "POST" and data is not None:
            kwargs["json"] = dict(data)

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.warning("%s %s failed: %s", method, path, exc)
            raise TransportFailure(f"API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            LOGGER.warning("%s %s returned HTTP %s", method, path, response.status_code)
            raise ApiFailure(response.status_code, str(message) if message else None)

        if not isinstance(body, dict):
            raise MalformedResponse(
                f"Expected a JSON object from {path} (HTTP {response.status_code})."
            )
        return body

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> IvrTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

"""Async client for the IVR call API."""

from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from config.settings import Settings, get_settings
from ivr.errors import IvrConfigurationError, MalformedResponse
from ivr.poller import (
    DEFAULT_ERROR_DELAY,
    DEFAULT_INTERVAL,
    DEFAULT_MAX_ATTEMPTS,
    CallPoller,
    PollObserver,
    PollSession,
)
from ivr.schemas import CallHandle, CallRequest, CallStatus
from ivr.transport import IvrTransport

LOGGER = logging.getLogger(__name__)

MAKE_CALL_PATH = "/api/make_call"
CALL_STATUS_PATH = "/api/call_status"


class IvrClient:
    """Places calls and tracks their status.

    Example::

        async with IvrClient("https://api.example.com", "secret") as client:
            request_id = await client.initiate_call("+41441234567", "https://example.com/a.mp3")
            final = await client.poll_status(request_id, interval=5, max_attempts=24)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        poll_interval: float = DEFAULT_INTERVAL,
        poll_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        poll_error_delay: float = DEFAULT_ERROR_DELAY,
    ) -> None:
        self._api_key = api_key
        self._transport = IvrTransport(base_url, timeout=timeout, transport=transport)
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self.poll_error_delay = poll_error_delay

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> IvrClient:
        settings = settings or get_settings()
        if not settings.ivr_base_url:
            raise IvrConfigurationError("IVR_BASE_URL is not configured.")
        if not settings.ivr_api_key:
            raise IvrConfigurationError("IVR_API_KEY is not configured.")
        return cls(
            settings.ivr_base_url,
            settings.ivr_api_key,
            timeout=settings.ivr_request_timeout,
            transport=transport,
            poll_interval=settings.ivr_poll_interval,
            poll_max_attempts=settings.ivr_poll_max_attempts,
            poll_error_delay=settings.ivr_poll_error_delay,
        )

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    async def initiate_call(self, phone_number: str, audio_url: str | None = None) -> CallHandle:
        """Start a call and return its request id."""

        try:
            request = CallRequest(number=phone_number, audio_url=audio_url)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

        LOGGER.info("Placing call to %s", request.number)
        data = await self._transport.request(
            "POST",
            MAKE_CALL_PATH,
            data=request.to_payload(self._api_key),
        )

        request_id = data.get("request_id")
        if not request_id:
            raise MalformedResponse(str(data.get("message") or "Response contains no request_id."))
        LOGGER.info("Call to %s accepted with request_id=%s", request.number, request_id)
        return str(request_id)

    async def get_status(self, handle: CallHandle) -> CallStatus:
        data = await self._transport.request(
            "GET",
            CALL_STATUS_PATH,
            params={"api_key": self._api_key, "request_id": handle},
        )
        try:
            return CallStatus.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponse(f"Unexpected call status payload: {exc.error_count()} error(s)") from exc

    def poller(
        self,
        *,
        interval: float | None = None,
        max_attempts: int | None = None,
        error_delay: float | None = None,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> CallPoller:
        """Build a poller; unset options fall back to the client's poll defaults."""

        return CallPoller(
            self,
            interval=self.poll_interval if interval is None else interval,
            max_attempts=self.poll_max_attempts if max_attempts is None else max_attempts,
            error_delay=self.poll_error_delay if error_delay is None else error_delay,
            cancel_event=cancel_event,
            deadline=deadline,
        )

    def watch(self, handle: CallHandle, **poller_options) -> PollSession:
        """Return an async iterator of poll events for ``handle``."""

        return self.poller(**poller_options).session(handle)

    async def poll_status(
        self,
        handle: CallHandle,
        interval: float | None = None,
        max_attempts: int | None = None,
        observer: PollObserver | None = None,
        *,
        error_delay: float | None = None,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> CallStatus | None:
        """Poll until a terminal state; ``None`` when no terminal state was seen."""

        poller = self.poller(
            interval=interval,
            max_attempts=max_attempts,
            error_delay=error_delay,
            cancel_event=cancel_event,
            deadline=deadline,
        )
        result = await poller.run(handle, observer)
        return result.status

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> IvrClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

"""Client SDK for the IVR call API: place calls and follow their status."""

from ivr.client import IvrClient
from ivr.errors import (
    ApiFailure,
    IvrConfigurationError,
    IvrError,
    MalformedResponse,
    TransportFailure,
)
from ivr.poller import (
    CallPoller,
    PollEvent,
    PollOutcome,
    PollResult,
    PollSession,
    StatusUpdate,
    TransientFault,
)
from ivr.schemas import TERMINAL_STATES, CallHandle, CallRequest, CallStatus

__all__ = [
    "ApiFailure",
    "CallHandle",
    "CallPoller",
    "CallRequest",
    "CallStatus",
    "IvrClient",
    "IvrConfigurationError",
    "IvrError",
    "MalformedResponse",
    "PollEvent",
    "PollOutcome",
    "PollResult",
    "PollSession",
    "StatusUpdate",
    "TERMINAL_STATES",
    "TransientFault",
    "TransportFailure",
]

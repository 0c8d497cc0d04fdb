"""Pydantic schemas for the IVR call API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CallHandle = str

TERMINAL_STATES: frozenset[str] = frozenset(
    {"completed", "error", "no_answer", "timeout", "disconnected"}
)


class CallRequest(BaseModel):
    """Outbound call to place; lives for a single initiate-call request."""

    model_config = ConfigDict(frozen=True)

    number: str = Field(..., min_length=1, description="Destination phone number.")
    audio_url: str | None = Field(default=None, description="Audio to play; server default when absent.")

    @field_validator("number")
    @classmethod
    def number_not_blank(cls, value: str) -> str:
        number = value.strip()
        if not number:
            raise ValueError("Phone number may not be empty.")
        return number

    def to_payload(self, api_key: str) -> dict[str, Any]:
        payload: dict[str, Any] = {"api_key": api_key, "number": self.number}
        if self.audio_url:
            payload["audio_url"] = self.audio_url
        return payload


class CallStatus(BaseModel):
    """Snapshot of a call as reported by ``/api/call_status``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str
    duration: float | None = Field(default=None, ge=0.0)
    message: str | None = None
    audio_played: bool | None = None
    audio_completed: bool | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

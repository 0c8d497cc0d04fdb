from __future__ import annotations

import argparse
import asyncio

import pytest

from ivr import cli
from ivr.errors import ApiFailure
from ivr.poller import TransientFault
from ivr.schemas import CallStatus


def _args(**overrides) -> argparse.Namespace:
    values = {
        "number": "+41441234567",
        "audio_url": "https://example.com/a.mp3",
        "interval": 0.0,
        "max_attempts": 3,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_format_summary_includes_audio_flags():
    status = CallStatus(status="completed", duration=12, audio_played=True, audio_completed=False)

    assert cli.format_summary(status).splitlines() == [
        "Call Summary:",
        "  Status: completed",
        "  Duration: 12s",
        "  Message: N/A",
        "  Audio Played: Yes",
        "  Audio Completed: No",
    ]


def test_format_summary_without_optional_fields():
    summary = cli.format_summary(CallStatus(status="no_answer", message="Nobody picked up"))

    assert "  Duration: N/A\n" in summary
    assert "  Message: Nobody picked up" in summary
    assert "Audio Played" not in summary


def test_print_event_shows_fault_message(capsys):
    cli.print_event(TransientFault(attempt=1, error=ApiFailure(500, "database busy")))

    assert capsys.readouterr().out == "Status: error - API error (500): database busy\n"


def test_run_tracks_call_to_completion(stub_api, make_client, capsys):
    stub_api.reply(200, {"request_id": "abc123"})
    stub_api.reply(200, {"status": "ringing"})
    stub_api.reply(200, {"status": "completed", "duration": 7, "audio_played": True})

    async def go():
        async with make_client() as client:
            return await cli.run(_args(), client, error_delay=0)

    assert asyncio.run(go()) == 0
    out = capsys.readouterr().out
    assert "Call initiated with request ID: abc123" in out
    assert "Status: ringing\n" in out
    assert "Status: completed\n" in out
    assert "  Duration: 7s" in out
    assert "  Audio Played: Yes" in out


def test_run_reports_exhaustion(stub_api, make_client, capsys):
    stub_api.reply(200, {"request_id": "abc123"})
    for _ in range(3):
        stub_api.reply(200, {"status": "ringing"})

    async def go():
        async with make_client() as client:
            return await cli.run(_args(), client, error_delay=0)

    assert asyncio.run(go()) == 1
    assert "Failed to get final call status after multiple attempts." in capsys.readouterr().out


def test_run_reports_initiate_error(stub_api, make_client, capsys):
    stub_api.reply(401, {"message": "invalid api key"})

    async def go():
        async with make_client() as client:
            return await cli.run(_args(), client, error_delay=0)

    assert asyncio.run(go()) == 1
    assert "Error: API error (401): invalid api key" in capsys.readouterr().out
    assert len(stub_api.requests) == 1


def test_parse_args_requires_credentials(monkeypatch, clear_settings_cache):
    monkeypatch.delenv("IVR_BASE_URL", raising=False)
    monkeypatch.delenv("IVR_API_KEY", raising=False)
    settings = cli.Settings(_env_file=None)

    with pytest.raises(SystemExit):
        cli._parse_args(["+1555"], settings)


def test_parse_args_uses_settings_defaults(monkeypatch, clear_settings_cache):
    monkeypatch.setenv("IVR_BASE_URL", "https://ivr.example.com/")
    monkeypatch.setenv("IVR_API_KEY", "secret")
    monkeypatch.setenv("IVR_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("IVR_POLL_MAX_ATTEMPTS", "24")
    settings = cli.get_settings()

    args = cli._parse_args(["+1555", "--audio-url", "https://example.com/a.mp3"], settings)

    assert args.base_url == "https://ivr.example.com"
    assert args.api_key == "secret"
    assert args.interval == 2.5
    assert args.max_attempts == 24
    assert args.audio_url == "https://example.com/a.mp3"

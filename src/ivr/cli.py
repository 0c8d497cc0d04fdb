"""Command line entry point: place a call and follow it until it ends."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from config.settings import Settings, get_settings
from ivr.client import IvrClient
from ivr.errors import IvrError
from ivr.poller import PollEvent
from ivr.schemas import CallStatus

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Place a call through the IVR API and track its progress")
    parser.add_argument("number", help="Destination phone number, e.g. +41441234567")
    parser.add_argument("--audio-url", default=None, help="Audio file to play once the call connects")
    parser.add_argument("--base-url", default=settings.ivr_base_url)
    parser.add_argument("--api-key", default=settings.ivr_api_key)
    parser.add_argument("--interval", type=float, default=settings.ivr_poll_interval)
    parser.add_argument("--max-attempts", type=int, default=settings.ivr_poll_max_attempts)
    parser.add_argument("--timeout", type=float, default=settings.ivr_request_timeout)
    args = parser.parse_args(argv)
    if not args.base_url:
        parser.error("--base-url or IVR_BASE_URL is required")
    if not args.api_key:
        parser.error("--api-key or IVR_API_KEY is required")
    return args


def print_event(event: PollEvent) -> None:
    line = f"Status: {event.state}"
    if event.message:
        line += f" - {event.message}"
    print(line)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def format_summary(status: CallStatus) -> str:
    duration = "N/A" if status.duration is None else f"{status.duration:g}s"
    lines = [
        "Call Summary:",
        f"  Status: {status.status}",
        f"  Duration: {duration}",
        f"  Message: {status.message or 'N/A'}",
    ]
    if status.audio_played is not None:
        lines.append(f"  Audio Played: {_yes_no(status.audio_played)}")
    if status.audio_completed is not None:
        lines.append(f"  Audio Completed: {_yes_no(status.audio_completed)}")
    return "\n".join(lines)


async def run(args: argparse.Namespace, client: IvrClient, *, error_delay: float) -> int:
    print(f"Making call to {args.number}...")
    try:
        request_id = await client.initiate_call(args.number, args.audio_url)
    except IvrError as exc:
        print(f"Error: {exc}")
        return 1
    print(f"Call initiated with request ID: {request_id}\n")

    print("Tracking call progress...")
    final = await client.poll_status(
        request_id,
        interval=args.interval,
        max_attempts=args.max_attempts,
        observer=print_event,
        error_delay=error_delay,
    )
    if final is None:
        print("Failed to get final call status after multiple attempts.")
        return 1

    print()
    print(format_summary(final))
    return 0


async def _amain(argv: Sequence[str] | None) -> int:
    settings = get_settings()
    args = _parse_args(argv, settings)
    async with IvrClient(args.base_url, args.api_key, timeout=args.timeout) as client:
        return await run(args, client, error_delay=settings.ivr_poll_error_delay)


def main(argv: Sequence[str] | None = None) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(_amain(argv)))


if __name__ == "__main__":
    main()

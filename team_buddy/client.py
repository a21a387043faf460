"""
Terminal client: join a room and talk to the AI assistant.

Usage:
    python -m team_buddy.client --room standup --name Alex [--relay URL] [--no-playback]

Press Enter to mute or unmute the microphone, type ``q`` then Enter (or
Ctrl+C) to leave.
"""

import argparse
import asyncio
import sys
import uuid

from team_buddy.config.logging_config import configure_logging
from team_buddy.config.settings import get_settings, load_env_file
from team_buddy.errors import TeamBuddyError
from team_buddy.realtime import BlackholeAudioSink, RealtimeConnectionManager, SpeakerAudioSink
from team_buddy.services import RelayClient, SignalingClient

load_env_file()
logger = configure_logging(get_settings().log_level)

POLL_INTERVAL = 0.5


def parse_args(argv=None):
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Join an AI Team Buddy voice room")
    parser.add_argument("--room", required=True, help="Room ID to join")
    parser.add_argument("--name", required=True, help="Your display name")
    parser.add_argument(
        "--relay",
        default=settings.relay_url,
        help=f"Credential relay base URL (default: {settings.relay_url} or RELAY_URL env var)",
    )
    parser.add_argument(
        "--model",
        default=settings.realtime_model,
        help="Realtime model used for the SDP exchange",
    )
    parser.add_argument(
        "--no-playback",
        action="store_true",
        help="Discard the assistant's audio instead of playing it",
    )
    return parser.parse_args(argv)


async def print_messages(manager: RealtimeConnectionManager) -> None:
    """Print chat entries as they are appended."""
    printed = 0
    while True:
        messages = manager.connection_state.messages
        for entry in messages[printed:]:
            print(f"[{entry.display_name}] {entry.text}")
        printed = len(messages)
        await asyncio.sleep(POLL_INTERVAL)


async def run_client(args) -> int:
    settings = get_settings()
    manager = RealtimeConnectionManager(
        room_id=args.room,
        user_id=str(uuid.uuid4()),
        user_name=args.name,
        relay=RelayClient(args.relay, timeout=settings.upstream_timeout),
        signaling=SignalingClient(model=args.model, timeout=settings.upstream_timeout),
        audio_sink_factory=BlackholeAudioSink if args.no_playback else SpeakerAudioSink,
    )

    printer = None
    try:
        state = await manager.start()
        if not state.is_connected:
            print(f"Error: {state.error}")
            return 1

        print(f"Connected to room {args.room}. Enter toggles the microphone, q quits.")
        printer = asyncio.create_task(print_messages(manager))
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line or line.strip().lower() == "q":
                break
            try:
                await manager.toggle_microphone()
            except TeamBuddyError as e:
                print(f"Error: {e}")
                manager.dismiss_error()
        return 0
    finally:
        if printer is not None:
            printer.cancel()
        await manager.close()


def main(argv=None):
    args = parse_args(argv)
    try:
        sys.exit(asyncio.run(run_client(args)))
    except KeyboardInterrupt:
        logger.info("Client stopped by user")


if __name__ == "__main__":
    main()

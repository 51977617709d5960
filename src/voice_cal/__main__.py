"""Entry point for ``python -m voice_cal``.

Provides a CLI around the voice-to-calendar session.  Uses stdlib
:mod:`argparse` for argument parsing.

Subcommands:
    create     -- Default. Extract an event from text, a text file, an audio
                  file or a recorded recognition log, review it and save it.
    transcribe -- Print the transcription of an audio file.
    history    -- List, remove or clear committed events.
    share      -- Email a committed event or print a mailto link.

Exit codes:
    0 -- Success (including a discarded event).
    1 -- An error occurred (file not found, config error, service failure).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path

from voice_cal.config import ConfigError, Settings, load_settings
from voice_cal.exceptions import VoiceCalError
from voice_cal.history import HistoryStore
from voice_cal.llm import GeminiClient
from voice_cal.log import get_logger, setup_logging
from voice_cal.output import print_committed, print_event, print_history
from voice_cal.session import VoiceCalendarSession, build_session
from voice_cal.share import build_mailto_link, send_invite
from voice_cal.speech import ReplaySource
from voice_cal.storage import LocalStorage

logger = get_logger(__name__)

_SUBCOMMANDS = {"create", "transcribe", "history", "share"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="voice-cal",
        description="Turn spoken or typed descriptions into calendar files.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- "create" subcommand (default) --------------------------------
    create_parser = subparsers.add_parser(
        "create",
        help="Extract an event, review it and save an .ics file.",
    )
    create_parser.add_argument(
        "text",
        nargs="*",
        help="Event description, e.g. 'lunch with Sam tomorrow at noon'.",
    )
    source = create_parser.add_mutually_exclusive_group()
    source.add_argument("--file", type=str, help="Read the description from a text file.")
    source.add_argument("--audio", type=str, help="Transcribe the description from audio.")
    source.add_argument(
        "--replay",
        type=str,
        help="Replay recorded speech-recognition batches (JSON lines).",
    )
    create_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        default=False,
        help="Save the extracted event without reviewing it.",
    )
    _add_verbose(create_parser)

    # --- "transcribe" subcommand --------------------------------------
    transcribe_parser = subparsers.add_parser(
        "transcribe",
        help="Print the transcription of an audio file.",
    )
    transcribe_parser.add_argument("audio", type=str, help="Path to the audio file.")
    _add_verbose(transcribe_parser)

    # --- "history" subcommand -----------------------------------------
    history_parser = subparsers.add_parser("history", help="Manage committed events.")
    history_parser.add_argument(
        "action",
        nargs="?",
        choices=("list", "remove", "clear"),
        default="list",
        help="What to do (default: list).",
    )
    history_parser.add_argument("item_id", nargs="?", help="Item id for 'remove'.")
    _add_verbose(history_parser)

    # --- "share" subcommand -------------------------------------------
    share_parser = subparsers.add_parser("share", help="Share a committed event by email.")
    share_parser.add_argument("item_id", help="Id of the history item to share.")
    share_parser.add_argument(
        "--mailto",
        action="store_true",
        default=False,
        help="Print a mailto: link instead of sending.",
    )
    share_parser.add_argument("--to", dest="recipient", help="Recipient address.")
    share_parser.add_argument("--from", dest="sender", help="Sender address.")
    _add_verbose(share_parser)

    return parser


def _add_verbose(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv*, routing unknown first tokens to ``create``.

    ``voice-cal lunch tomorrow at noon`` is treated as
    ``voice-cal create lunch tomorrow at noon``.
    """
    if not argv:
        argv = ["create"]
    elif argv[0] in {"-h", "--help"}:
        pass
    elif argv[0] not in _SUBCOMMANDS:
        argv = ["create", *argv]

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _handle_create(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the ``create`` subcommand."""
    replay = None
    if args.replay:
        replay_path = Path(args.replay)
        if not replay_path.is_file():
            print(f"Error: File not found: {replay_path}", file=sys.stderr)
            return 1
        replay = ReplaySource.from_file(replay_path)

    session = build_session(settings, source=replay)
    _report_notice(session)

    # --- Collect the transcript ---------------------------------------
    if replay is not None:
        if not session.start_recording():
            print(f"Error: {session.error}", file=sys.stderr)
            return 1
        session.stop_recording()
    elif args.audio:
        text = _transcribe(Path(args.audio), session.extractor)
        if text is None:
            return 1
        session.edit_transcript(text)
    elif args.file:
        text = _read_text(Path(args.file))
        if text is None:
            return 1
        session.edit_transcript(text)
    else:
        session.edit_transcript(" ".join(args.text))

    if not session.transcript:
        print("Error: No event description given.", file=sys.stderr)
        return 1

    print(f'Transcript: "{session.transcript}"')

    # --- Extract and review -------------------------------------------
    if session.create_event() is None:
        print(f"Error: {session.error}", file=sys.stderr)
        return 1

    # An encoding failure keeps the event under review, so loop back to it.
    while True:
        if not args.yes:
            try:
                confirmed = _review(session)
            except EOFError:
                session.cancel_event()
                print("\nError: Input closed before the event was confirmed.", file=sys.stderr)
                return 1
            if not confirmed:
                print("Event discarded.")
                return 0

        item = session.confirm_event()
        if item is not None:
            break
        print(f"Error: {session.error}", file=sys.stderr)
        if args.yes:
            return 1

    print_committed(item)
    _report_notice(session)
    return 0


def _review(session: VoiceCalendarSession) -> bool:
    """Interactively confirm, edit or cancel the pending event.

    Returns:
        ``True`` when the user confirms, ``False`` when they cancel.

    Raises:
        EOFError: If standard input closes before an answer is given.
    """
    while True:
        print_event(session.pending_event)
        answer = input("Save this event? [y]es / [e]dit / [n]o: ").strip().lower()
        if answer in {"y", "yes"}:
            return True
        if answer in {"n", "no"}:
            session.cancel_event()
            return False
        if answer in {"e", "edit"}:
            _edit_pending(session)
            continue
        print("Please answer y, e or n.")


def _edit_pending(session: VoiceCalendarSession) -> None:
    """Prompt for each field; an empty answer keeps the current value."""
    current = session.pending_event
    prompts = {
        "title": current.title,
        "description": current.description,
        "start": current.start_datetime.strftime("%Y-%m-%dT%H:%M"),
        "end": current.end_datetime.strftime("%Y-%m-%dT%H:%M"),
        "location": current.location or "",
    }
    changes = {}
    for field_name, value in prompts.items():
        answer = input(f"{field_name.capitalize()} [{value}]: ").strip()
        if answer:
            changes[field_name] = answer

    if changes and not session.edit_event(**changes):
        print(f"Error: {session.error}", file=sys.stderr)


def _handle_transcribe(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the ``transcribe`` subcommand."""
    client = GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout=settings.extraction_timeout,
    )
    text = _transcribe(Path(args.audio), client)
    if text is None:
        return 1
    print(text)
    return 0


def _handle_history(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the ``history`` subcommand."""
    history = HistoryStore(LocalStorage(settings.storage_path))
    if history.last_error:
        print(f"Warning: {history.last_error}", file=sys.stderr)

    if args.action == "list":
        print_history(history.items)
        return 0

    if args.action == "clear":
        history.clear()
        print("History cleared.")
    else:
        if not args.item_id:
            print("Error: 'history remove' needs an item id.", file=sys.stderr)
            return 1
        if not history.remove(args.item_id):
            print(f"Error: No history item with id {args.item_id}", file=sys.stderr)
            return 1
        print(f"Removed {args.item_id}.")

    if not history.persistent:
        print(f"Warning: History could not be saved: {history.last_error}", file=sys.stderr)
        return 1
    return 0


def _handle_share(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the ``share`` subcommand."""
    history = HistoryStore(LocalStorage(settings.storage_path))
    item = history.get(args.item_id)
    if item is None:
        print(f"Error: No history item with id {args.item_id}", file=sys.stderr)
        return 1

    if args.mailto:
        print(build_mailto_link(item))
        return 0

    if not args.recipient or not args.sender:
        print("Error: --to and --from are required unless --mailto is given.", file=sys.stderr)
        return 1

    try:
        send_invite(item, sender=args.sender, recipient=args.recipient, settings=settings)
    except VoiceCalError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Invite sent to {args.recipient}.")
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_text(path: Path) -> str | None:
    """Read a text file, printing an error and returning ``None`` on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: Cannot read {path}: {exc}", file=sys.stderr)
    return None


def _transcribe(path: Path, client: GeminiClient) -> str | None:
    """Transcribe an audio file, printing an error and returning ``None`` on failure."""
    try:
        audio = path.read_bytes()
    except OSError as exc:
        print(f"Error: Cannot read {path}: {exc}", file=sys.stderr)
        return None

    mime_type = mimetypes.guess_type(path.name)[0] or "audio/wav"
    try:
        return client.transcribe_audio(audio, mime_type=mime_type)
    except VoiceCalError as exc:
        logger.error("Transcription error: %s", exc)
        print(f"Error: Error transcribing audio: {exc}", file=sys.stderr)
        return None


def _report_notice(session: VoiceCalendarSession) -> None:
    if session.notice:
        print(f"Warning: {session.notice}", file=sys.stderr)
        session.notice = ""


def main(argv: list[str] | None = None) -> int:
    """Run the voice-cal CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    needs_api_key = args.command in {"create", "transcribe"}
    try:
        settings = load_settings(require_api_key=needs_api_key)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Configure logging --------------------------------------------
    log_level = "DEBUG" if getattr(args, "verbose", False) else settings.log_level
    try:
        setup_logging(log_level)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Dispatch to subcommand handler -------------------------------
    try:
        if args.command == "transcribe":
            return _handle_transcribe(args, settings)
        if args.command == "history":
            return _handle_history(args, settings)
        if args.command == "share":
            return _handle_share(args, settings)
        return _handle_create(args, settings)
    except VoiceCalError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

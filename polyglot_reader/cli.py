"""CLI interface with subcommand routing."""

import argparse
import asyncio
import logging
import os
import shutil
import sys

from polyglot_reader.classifier import annotate
from polyglot_reader.constants import PLAYER_COMMAND, SAMPLE_TEXT, SETTINGS_FILE, VERSION
from polyglot_reader.engine import EdgeSpeechEngine, player_available
from polyglot_reader.exporter import export
from polyglot_reader.languages import Language, describe, is_supported
from polyglot_reader.models import PlaybackStatus
from polyglot_reader.scheduler import PlaybackListener, PlaybackScheduler
from polyglot_reader.session import ReaderSession
from polyglot_reader.settings import ReaderSettings, clamp_speed, load_settings, save_settings
from polyglot_reader.voices import VoiceCatalog, load_edge_voices


def _fail(message: str, hint: str | None = None):
    print(f"Error: {message}", file=sys.stderr)
    if hint:
        print(hint, file=sys.stderr)
    raise SystemExit(1)


def _check_ffmpeg():
    """Verify ffmpeg is installed (needed to decode and encode MP3)."""
    if not shutil.which("ffmpeg"):
        _fail("ffmpeg is required but not found.", "Install with: brew install ffmpeg")


def _check_player():
    if not player_available():
        _fail(f"{PLAYER_COMMAND[0]} is required but not found.", "It ships with ffmpeg: brew install ffmpeg")


def _load_text(file_path: str | None) -> str:
    """Text to read: the sample when no file is given, stdin for "-"."""
    if file_path is None:
        return SAMPLE_TEXT
    if file_path == "-":
        text = sys.stdin.read()
    else:
        if not os.path.exists(file_path):
            _fail(f"File not found: {file_path}")
        with open(file_path, encoding="utf-8") as f:
            text = f.read()
    if not text.strip():
        _fail(f"Nothing to read in: {file_path}")
    return text


def _parse_languages(value: str) -> list[str]:
    codes = [c.strip().lower() for c in value.split(",") if c.strip()]
    if not codes:
        _fail("--languages needs at least one language code")
    for code in codes:
        if not is_supported(code):
            _fail(f"Unsupported language: {code}", f"Supported: {', '.join(l.value for l in Language)}")
    return codes


def _resolve_settings(args) -> ReaderSettings:
    """Settings file overlaid with command-line options."""
    settings = load_settings(args.settings)
    if args.languages:
        settings.active_languages = _parse_languages(args.languages)
    for item in args.voice or []:
        language, sep, voice_id = item.partition("=")
        if not sep or not voice_id or not is_supported(language):
            _fail(f"Invalid --voice value: {item}", "Expected <language>=<voice id>, e.g. fr=fr-FR-DeniseNeural")
        settings.voices[language] = voice_id
    if args.speed is not None:
        try:
            settings.speed = clamp_speed(args.speed)
        except ValueError:
            _fail(f"Invalid speed: {args.speed}")
    return settings


class TerminalHighlighter(PlaybackListener):
    """Prints each word as it is spoken and signals the end of the run."""

    def __init__(self, session: ReaderSession):
        self._session = session
        self.finished = asyncio.Event()

    def on_highlight(self, index: int) -> None:
        line = self._session.describe_current()
        if line:
            print(f"  {line}")

    def on_status(self, status: PlaybackStatus) -> None:
        if status is PlaybackStatus.IDLE:
            self.finished.set()


async def _read_aloud(text: str, settings: ReaderSettings) -> None:
    catalog = VoiceCatalog()
    engine = EdgeSpeechEngine()
    scheduler = PlaybackScheduler(engine, catalog)
    session = ReaderSession(catalog, scheduler, settings, text=text)
    highlighter = TerminalHighlighter(session)
    scheduler.subscribe(highlighter)
    try:
        catalog.update(await load_edge_voices())
        for language in session.active_languages:
            if language not in session.voice_selection:
                print(f"Warning: no voice for {describe(language)}, its words will be skipped", file=sys.stderr)

        print(f"Reading {len(session.tokens)} words at {session.speed}x...")
        session.toggle()
        if session.is_playing:
            await highlighter.finished.wait()
    finally:
        session.close()
        engine.close()


def cmd_read(args):
    """Read text aloud word by word."""
    _check_player()
    text = _load_text(args.file)
    settings = _resolve_settings(args)
    try:
        asyncio.run(_read_aloud(text, settings))
    except KeyboardInterrupt:
        print("\nStopped.")
        return
    print("Done.")


def cmd_classify(args):
    """Show the language detected for each word."""
    text = _load_text(args.file)
    settings = _resolve_settings(args)
    tokens = annotate(text, settings.active_languages)
    primary = settings.active_languages[0]

    counts = {code: 0 for code in settings.active_languages}
    for token in tokens:
        counts[token.language] += 1
        marker = " " if token.language == primary else "*"
        print(f"{token.index:>5} {marker} {token.language}  {token.text}")

    summary = ", ".join(f"{describe(code)}: {n}" for code, n in counts.items())
    print(f"\n{len(tokens)} words ({summary})")


def cmd_voices(args):
    """List available voices for the supported languages."""
    voices = asyncio.run(load_edge_voices())
    if args.language:
        voices = [v for v in voices if v.language == args.language.lower()]
    if args.filter:
        needle = args.filter.lower()
        voices = [v for v in voices if needle in v.id.lower() or needle in v.display_name.lower()]
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v.id:<32} {v.display_name}")


def cmd_export(args):
    """Render a text to a read-along MP3 with word timings."""
    _check_ffmpeg()
    text = _load_text(args.file)
    settings = _resolve_settings(args)

    catalog = VoiceCatalog(asyncio.run(load_edge_voices()))
    selection = catalog.default_selection(settings.active_languages, current=settings.voices)
    tokens = annotate(text, settings.active_languages)
    source = args.file if args.file not in (None, "-") else "sample"
    output_path = args.output or os.path.splitext(os.path.basename(source))[0] + ".mp3"

    print(f"Rendering {len(tokens)} words...")
    path = export(
        tokens,
        selection,
        catalog,
        settings.speed,
        output_path,
        active_languages=settings.active_languages,
        title=args.title or "",
    )
    print(f"Done: {path}")


def cmd_set(args):
    """Update the settings file."""
    settings = load_settings(args.settings)
    key = args.key
    values = args.values
    valid_keys = {"languages", "voice", "speed"}

    if key not in valid_keys:
        print(f"Error: Invalid setting key: {key}", file=sys.stderr)
        print(f"Valid keys: {', '.join(sorted(valid_keys))}", file=sys.stderr)
        raise SystemExit(1)

    if key == "languages":
        if not values:
            _fail("'set languages' requires one or more language codes")
        settings.active_languages = _parse_languages(",".join(values))
        print(f"Updated: languages → {', '.join(settings.active_languages)}")

    elif key == "voice":
        if len(values) < 2:
            _fail("'set voice' requires <language> and <voice_id>")
        language, voice_id = values[0].lower(), values[1]
        if not is_supported(language):
            _fail(f"Unsupported language: {language}")
        settings.voices[language] = voice_id
        print(f"Updated: {language} voice → {voice_id}")

    elif key == "speed":
        if not values:
            _fail("'set speed' requires <float>")
        try:
            settings.speed = clamp_speed(values[0])
        except ValueError:
            _fail(f"Invalid speed: {values[0]}")
        print(f"Updated: speed → {settings.speed}x")

    save_settings(args.settings, settings)


def _add_reading_options(parser):
    parser.add_argument("--languages", help="Comma-separated active languages, fallback first (e.g. pt,fr)")
    parser.add_argument("--voice", action="append", metavar="LANG=VOICE", help="Voice for a language (repeatable)")
    parser.add_argument("--speed", type=float, help="Speech rate multiplier (0.5–2.0)")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="polyglot-reader",
        description="Polyglot Reader — read multilingual text aloud, one word at a time",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("--settings", default=SETTINGS_FILE, help="Settings file (default: %(default)s)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # read
    read_parser = subparsers.add_parser("read", help="Read text aloud with word highlighting")
    read_parser.add_argument("file", nargs="?", help="Text file, '-' for stdin (default: built-in sample)")
    _add_reading_options(read_parser)
    read_parser.set_defaults(func=cmd_read)

    # classify
    classify_parser = subparsers.add_parser("classify", help="Show the detected language of each word")
    classify_parser.add_argument("file", nargs="?", help="Text file, '-' for stdin (default: built-in sample)")
    _add_reading_options(classify_parser)
    classify_parser.set_defaults(func=cmd_classify)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--language", help="Only voices for this language code")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # export
    export_parser = subparsers.add_parser("export", help="Render a read-along MP3 with word timings")
    export_parser.add_argument("file", nargs="?", help="Text file, '-' for stdin (default: built-in sample)")
    export_parser.add_argument("-o", "--output", help="Output MP3 path")
    export_parser.add_argument("--title", help="Title tag for the MP3")
    _add_reading_options(export_parser)
    export_parser.set_defaults(func=cmd_export)

    # set
    set_parser = subparsers.add_parser("set", help="Update saved settings")
    set_parser.add_argument("key", help="Setting key: languages, voice, speed")
    set_parser.add_argument("values", nargs="*", help="Setting value(s)")
    set_parser.set_defaults(func=cmd_set)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)

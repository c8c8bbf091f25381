"""Render a whole text to one MP3 plus a word timing manifest."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Sequence

from pydub import AudioSegment

from polyglot_reader.constants import EXPORT_BITRATE, EXPORT_PAUSE_MS, TTS_RETRY_COUNT, VERSION
from polyglot_reader.models import AnnotatedToken, SpeechRequest
from polyglot_reader.settings import limit_speed
from polyglot_reader.tts import synthesize
from polyglot_reader.voices import VoiceCatalog

logger = logging.getLogger(__name__)


def render(
    tokens: Sequence[AnnotatedToken],
    voice_selection: dict[str, str],
    catalog: VoiceCatalog,
    speed: float,
    work_dir: str,
    pause_ms: int = EXPORT_PAUSE_MS,
    retries: int = TTS_RETRY_COUNT,
) -> tuple[AudioSegment, list[dict]]:
    """Synthesize every voiced token and join them with short pauses.

    Tokens without a voice, or whose synthesis keeps failing, are left out
    of the audio and the timings. Returns (audio, timings) where each timing
    entry is {index, text, language, voice, start_ms, end_ms}.
    """
    speed = limit_speed(speed)
    os.makedirs(work_dir, exist_ok=True)
    total = len(tokens)
    result = AudioSegment.silent(duration=0)
    timings = []

    for token in tokens:
        voice = catalog.resolve(token.language, voice_selection.get(token.language))
        if voice is None:
            logger.info("No voice for %s, skipping word %d %r", token.language, token.index, token.text)
            continue

        path = os.path.join(work_dir, f"{token.index:05d}.mp3")
        request = SpeechRequest(text=token.text, voice=voice.id, rate=speed)
        print(f"  Rendering word {token.index + 1}/{total}: {token.text}")
        try:
            synthesize(request, path, retries=retries)
            clip = AudioSegment.from_file(path, format="mp3")
        except Exception as e:
            logger.warning("Skipping word %d %r: %s", token.index, token.text, e)
            continue

        if timings:
            result += AudioSegment.silent(duration=pause_ms)
        start_ms = len(result)
        result += clip
        timings.append({
            "index": token.index,
            "text": token.text,
            "language": token.language,
            "voice": voice.id,
            "start_ms": start_ms,
            "end_ms": len(result),
        })

    return result, timings


def export(
    tokens: Sequence[AnnotatedToken],
    voice_selection: dict[str, str],
    catalog: VoiceCatalog,
    speed: float,
    output_path: str,
    active_languages: Sequence[str],
    title: str = "",
) -> str:
    """Render tokens and write the MP3 and its timing manifest.

    Creates:
      - <output_path> (the read-along audio)
      - <output_path without .mp3>.json (word timings and settings)

    Returns path to the MP3 file.
    """
    output_dir = os.path.dirname(os.path.abspath(output_path))
    base = os.path.splitext(output_path)[0]
    work_dir = os.path.join(output_dir, os.path.basename(base) + "_words")

    audio, timings = render(tokens, voice_selection, catalog, speed, work_dir)

    tags = {"title": title} if title else {}
    audio.export(output_path, format="mp3", bitrate=EXPORT_BITRATE, tags=tags)

    manifest = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "reader_version": VERSION,
        "audio": os.path.basename(output_path),
        "settings": {
            "active_languages": list(active_languages),
            "voices": dict(voice_selection),
            "speed": limit_speed(speed),
        },
        "stats": {
            "words": len(tokens),
            "voiced_words": len(timings),
            "duration_seconds": round(len(audio) / 1000, 1),
        },
        "words": timings,
    }
    manifest_path = base + ".json"
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    return output_path

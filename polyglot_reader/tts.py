"""Word synthesis via edge-tts with retry logic."""

import asyncio
import os

import edge_tts

from polyglot_reader.constants import NEUTRAL_PITCH, TTS_RETRY_COUNT, TTS_RETRY_BASE_DELAY
from polyglot_reader.models import SpeechRequest


class SpeechError(Exception):
    """Synthesis or playback of a single request failed."""


def format_rate(rate: float) -> str:
    """Speed multiplier as an edge-tts relative rate: 1.3 → "+30%", 0.5 → "-50%"."""
    return f"{round((rate - 1.0) * 100):+d}%"


def format_volume(volume: float) -> str:
    """Volume multiplier as an edge-tts relative volume: 1.0 → "+0%"."""
    return f"{round((volume - 1.0) * 100):+d}%"


def format_pitch(pitch: float) -> str:
    """Pitch multiplier as an edge-tts pitch shift: 1.0 → "+0Hz"."""
    return f"{round((pitch - 1.0) * 100):+d}Hz"


def speech_options(request: SpeechRequest) -> dict:
    """Keyword arguments for edge_tts.Communicate; pitch only when shifted."""
    options = {
        "rate": format_rate(request.rate),
        "volume": format_volume(request.volume),
    }
    if request.pitch != NEUTRAL_PITCH:
        options["pitch"] = format_pitch(request.pitch)
    return options


async def synthesize_async(
    request: SpeechRequest,
    output_path: str,
    retries: int = TTS_RETRY_COUNT,
) -> None:
    """Synthesize one request to an MP3 file, retrying on failure.

    Retries on network errors, service errors, or 0-byte output files with
    exponential backoff. Raises the last error once attempts run out.
    """
    last_error = None
    for attempt in range(retries):
        try:
            communicate = edge_tts.Communicate(request.text, request.voice, **speech_options(request))
            await communicate.save(output_path)

            # Validate output: 0-byte file counts as failure
            if os.path.exists(output_path) and os.path.getsize(output_path) > 0:
                return

            last_error = SpeechError(f"TTS produced 0-byte file for: {request.text[:50]}")
        except Exception as e:
            last_error = e

        if attempt < retries - 1:
            await asyncio.sleep(TTS_RETRY_BASE_DELAY * (2 ** attempt))

    if last_error is None:
        last_error = SpeechError("No synthesis attempts were made")
    raise last_error


def synthesize(request: SpeechRequest, output_path: str, retries: int = TTS_RETRY_COUNT) -> None:
    """Blocking wrapper around synthesize_async() for offline rendering."""
    asyncio.run(synthesize_async(request, output_path, retries=retries))

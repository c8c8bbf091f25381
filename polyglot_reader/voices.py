"""Voice catalog, default voice selection, and edge-tts voice discovery."""

import logging
from typing import Callable, Iterable, Sequence

import edge_tts

from polyglot_reader.languages import language_for_tag, profile_for
from polyglot_reader.models import Voice

logger = logging.getLogger(__name__)

# Known edge-tts voices, used when the voice list can't be fetched
FALLBACK_VOICES = [
    ("pt-BR-FranciscaNeural", "pt-BR"),
    ("pt-BR-AntonioNeural", "pt-BR"),
    ("it-IT-ElsaNeural", "it-IT"),
    ("it-IT-DiegoNeural", "it-IT"),
    ("es-ES-ElviraNeural", "es-ES"),
    ("es-ES-AlvaroNeural", "es-ES"),
    ("en-US-AriaNeural", "en-US"),
    ("en-US-GuyNeural", "en-US"),
    ("fr-FR-DeniseNeural", "fr-FR"),
    ("fr-FR-HenriNeural", "fr-FR"),
    ("de-DE-KatjaNeural", "de-DE"),
    ("de-DE-ConradNeural", "de-DE"),
]


class VoiceCatalog:
    """Voices available for the supported languages.

    Contents can be replaced at any time with update(); subscribers are
    called after every change so they can recompute their selections.
    """

    def __init__(self, voices: Iterable[Voice] = ()):
        self._voices: dict[str, Voice] = {}
        self._listeners: list[Callable[[], None]] = []
        self._store(voices)

    def _store(self, voices: Iterable[Voice]) -> None:
        self._voices = {v.id: v for v in voices if v.language is not None}

    def list_voices(self) -> list[Voice]:
        return sorted(self._voices.values(), key=lambda v: v.id)

    def voices_for(self, language: str) -> list[Voice]:
        return [v for v in self.list_voices() if v.language == language]

    def update(self, voices: Iterable[Voice]) -> None:
        """Replace the catalog contents and notify subscribers."""
        self._store(voices)
        logger.debug("Voice catalog updated: %d voices", len(self._voices))
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Voice catalog subscriber failed")

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def resolve(self, language: str, voice_id: str | None) -> Voice | None:
        """Voice for voice_id if it exists and speaks language, else None."""
        if not voice_id:
            return None
        voice = self._voices.get(voice_id)
        if voice is None or voice.language != language:
            return None
        return voice

    def default_selection(
        self,
        active_languages: Sequence[str],
        current: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Voice per active language.

        Priority: current choice if it still resolves → first catalog voice
        for the language → no entry.
        """
        if current is None:
            current = {}

        selection = {}
        for language in active_languages:
            chosen = current.get(language)
            if self.resolve(language, chosen):
                selection[language] = chosen
                continue
            candidates = self.voices_for(language)
            if candidates:
                selection[language] = candidates[0].id
        return selection


def _voice_from_edge(entry: dict) -> Voice | None:
    """Convert one edge-tts voice listing entry; None for unsupported locales."""
    tag = entry.get("Locale", "")
    short_name = entry.get("ShortName", "")
    if not short_name or language_for_tag(tag) is None:
        return None
    profile = profile_for(language_for_tag(tag))
    friendly = entry.get("FriendlyName") or short_name
    return Voice(id=short_name, language_tag=tag, display_name=f"{profile.flag} {friendly}")


def fallback_voices() -> list[Voice]:
    voices = []
    for voice_id, tag in FALLBACK_VOICES:
        profile = profile_for(language_for_tag(tag))
        voices.append(Voice(id=voice_id, language_tag=tag, display_name=f"{profile.flag} {voice_id}"))
    return voices


async def load_edge_voices(use_fallback: bool = True) -> list[Voice]:
    """Fetch the edge-tts voice list, keeping supported languages only.

    On network or service errors, returns the fallback voice pool (or an
    empty list when use_fallback is False).
    """
    try:
        entries = await edge_tts.list_voices()
    except Exception as e:
        logger.warning("Could not fetch edge-tts voices: %s", e)
        return fallback_voices() if use_fallback else []

    voices = [v for v in (_voice_from_edge(entry) for entry in entries) if v is not None]
    logger.info("Loaded %d voices for supported languages", len(voices))
    return voices

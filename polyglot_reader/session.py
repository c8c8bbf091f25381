"""Reading session: text, language slots, voices and speed around one scheduler."""

import logging

from polyglot_reader.classifier import annotate
from polyglot_reader.languages import describe, is_supported
from polyglot_reader.models import AnnotatedToken
from polyglot_reader.scheduler import PlaybackScheduler
from polyglot_reader.settings import ReaderSettings, clamp_speed
from polyglot_reader.voices import VoiceCatalog

logger = logging.getLogger(__name__)


class ReaderSession:
    """Everything a reading front end edits, kept consistent.

    Tokens are re-annotated whenever the text or the language slots change.
    Voice choices are recomputed whenever the catalog or the language slots
    change, keeping explicit choices that still resolve. Playback state lives
    only in the scheduler; the session starts and stops it.
    """

    def __init__(
        self,
        catalog: VoiceCatalog,
        scheduler: PlaybackScheduler,
        settings: ReaderSettings | None = None,
        text: str = "",
    ):
        if settings is None:
            settings = ReaderSettings()
        if not settings.active_languages:
            raise ValueError("At least one active language is required")

        self._catalog = catalog
        self._scheduler = scheduler
        self._active_languages = list(settings.active_languages)
        self._speed = clamp_speed(settings.speed)
        self._preferred_voices = dict(settings.voices)
        self._voice_selection: dict[str, str] = {}
        self._text = text
        self._tokens: list[AnnotatedToken] = []

        self._reannotate()
        self._refresh_voices()
        self._unsubscribe = catalog.subscribe(self._refresh_voices)

    def close(self) -> None:
        self._scheduler.stop()
        self._unsubscribe()

    # --- text ---

    @property
    def text(self) -> str:
        return self._text

    @property
    def tokens(self) -> list[AnnotatedToken]:
        return list(self._tokens)

    def set_text(self, text: str) -> None:
        self._text = text
        self._reannotate()

    def _reannotate(self) -> None:
        self._tokens = annotate(self._text, self._active_languages)

    # --- languages ---

    @property
    def active_languages(self) -> list[str]:
        return list(self._active_languages)

    def set_language(self, slot: int, code: str) -> None:
        """Put a language in one of the active slots (slot 0 is the fallback)."""
        if not is_supported(code):
            raise ValueError(f"Unsupported language: {code}")
        if not 0 <= slot < len(self._active_languages):
            raise ValueError(f"No language slot {slot}")
        self._active_languages[slot] = code
        self._reannotate()
        self._refresh_voices()

    # --- voices ---

    @property
    def voice_selection(self) -> dict[str, str]:
        return dict(self._voice_selection)

    def select_voice(self, language: str, voice_id: str) -> None:
        if self._catalog.resolve(language, voice_id) is None:
            logger.warning("Voice %s is not available for %s", voice_id, language)
        self._preferred_voices[language] = voice_id
        self._voice_selection[language] = voice_id

    def _refresh_voices(self) -> None:
        self._voice_selection = self._catalog.default_selection(
            self._active_languages, current=self._preferred_voices,
        )
        for language in self._active_languages:
            if language not in self._voice_selection:
                logger.info("No voice available for %s", language)

    # --- speed ---

    @property
    def speed(self) -> float:
        return self._speed

    def set_speed(self, value) -> None:
        self._speed = clamp_speed(value)

    # --- playback ---

    @property
    def is_playing(self) -> bool:
        return self._scheduler.is_playing

    def toggle(self) -> None:
        """Play from the first word, or stop if already playing."""
        self._scheduler.start(self._tokens, self._voice_selection, self._speed)

    def stop(self) -> None:
        self._scheduler.stop()

    def describe_current(self) -> str | None:
        """Status line for the word being read, None when idle."""
        state = self._scheduler.state
        if state.current_index < 0 or state.current_index >= len(state.tokens):
            return None
        token = state.tokens[state.current_index]
        return (
            f'Reading word {state.current_index + 1} of {len(state.tokens)}: '
            f'"{token.text}" ({describe(token.language)})'
        )

    def settings(self) -> ReaderSettings:
        voices = dict(self._preferred_voices)
        voices.update(self._voice_selection)
        return ReaderSettings(
            active_languages=list(self._active_languages),
            voices=voices,
            speed=self._speed,
        )

"""Data models for word-by-word multilingual reading."""

from dataclasses import dataclass
from enum import Enum

from polyglot_reader.constants import NEUTRAL_PITCH, FULL_VOLUME
from polyglot_reader.languages import language_for_tag


@dataclass(frozen=True)
class Token:
    text: str
    index: int         # position in reading order, from 0


@dataclass(frozen=True)
class AnnotatedToken:
    token: Token
    language: str      # member of the active language set at annotation time

    @property
    def text(self) -> str:
        return self.token.text

    @property
    def index(self) -> int:
        return self.token.index


@dataclass(frozen=True)
class Voice:
    id: str            # e.g. "fr-FR-DeniseNeural"
    language_tag: str  # e.g. "fr-FR"
    display_name: str

    @property
    def language(self) -> str | None:
        """Supported language code for this voice, by tag prefix."""
        return language_for_tag(self.language_tag)


@dataclass(frozen=True)
class SpeechRequest:
    text: str
    voice: str         # voice id
    rate: float        # multiplier, 1.0 = normal
    pitch: float = NEUTRAL_PITCH
    volume: float = FULL_VOLUME


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"


@dataclass
class PlaybackState:
    status: PlaybackStatus = PlaybackStatus.IDLE
    tokens: tuple[AnnotatedToken, ...] = ()
    current_index: int = -1
    generation: int = 0

"""Sequential word-by-word playback.

PlaybackScheduler keeps exactly one speech request outstanding, advances
through a frozen list of annotated tokens, and reports progress to
listeners. Runs are cancelled through a generation counter: every callback
carries the generation it was issued under and is ignored once that run is
over.

The speech engine is any object with:

    submit(request, on_complete, on_error)   # exactly one callback per request
    cancel_all()                             # stop audio, no further callbacks

All methods must be called from the event loop thread.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Sequence

from polyglot_reader.constants import COMPLETE_DELAY_S, ERROR_DELAY_S, SKIP_DELAY_S
from polyglot_reader.models import AnnotatedToken, PlaybackState, PlaybackStatus, SpeechRequest
from polyglot_reader.settings import limit_speed
from polyglot_reader.voices import VoiceCatalog

logger = logging.getLogger(__name__)


class PlaybackListener:
    """Receives playback events. Override only what you need."""

    def on_highlight(self, index: int) -> None:
        pass

    def on_status(self, status: PlaybackStatus) -> None:
        pass

    def on_progress(self, current_index: int, total: int) -> None:
        pass


def _loop_call_later(delay: float, callback: Callable[[], None]):
    return asyncio.get_running_loop().call_later(delay, callback)


class PlaybackScheduler:
    def __init__(
        self,
        engine,
        catalog: VoiceCatalog,
        *,
        call_later: Callable | None = None,
        complete_delay: float = COMPLETE_DELAY_S,
        error_delay: float = ERROR_DELAY_S,
        skip_delay: float = SKIP_DELAY_S,
    ):
        self._engine = engine
        self._catalog = catalog
        self._call_later = call_later or _loop_call_later
        self._complete_delay = complete_delay
        self._error_delay = error_delay
        self._skip_delay = skip_delay

        self._state = PlaybackState()
        self._listeners: list[PlaybackListener] = []
        self._voice_selection: dict[str, str] = {}
        self._speed = 1.0
        self._pending = None        # timer handle for the next step
        self._awaiting = False      # a submitted request has not called back yet

    # --- observation ---

    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def status(self) -> PlaybackStatus:
        return self._state.status

    @property
    def is_playing(self) -> bool:
        return self._state.status is PlaybackStatus.PLAYING

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def generation(self) -> int:
        return self._state.generation

    def subscribe(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, *args) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, event)(*args)
            except Exception:
                logger.exception("Playback listener failed on %s", event)

    # --- control ---

    def start(
        self,
        tokens: Sequence[AnnotatedToken],
        voice_selection: dict[str, str],
        speed: float,
    ) -> None:
        """Begin reading tokens, or stop if a run is already in progress.

        While playing this is a full stop-and-reset; call start() again to
        begin a fresh run. An empty token list is a no-op.
        """
        if self.is_playing:
            self.stop()
            return

        frozen = tuple(tokens)
        if not frozen:
            logger.debug("Nothing to read")
            return

        self._voice_selection = dict(voice_selection)
        self._speed = limit_speed(speed)
        self._awaiting = False
        self._state = PlaybackState(
            status=PlaybackStatus.PLAYING,
            tokens=frozen,
            current_index=0,
            generation=self._state.generation + 1,
        )
        logger.info("Reading %d words (run %d)", len(frozen), self._state.generation)
        self._emit("on_status", PlaybackStatus.PLAYING)
        self._step(self._state.generation)

    def stop(self) -> None:
        """End the current run. Safe to call at any time."""
        if not self.is_playing:
            return
        logger.info("Stopped at word %d", self._state.current_index)
        self._finish()

    def on_complete(self, generation: int) -> None:
        """Engine callback: the request issued under generation finished."""
        if self._accepts(generation):
            self._advance(generation, self._complete_delay)

    def on_error(self, generation: int) -> None:
        """Engine callback: the request issued under generation failed."""
        if self._accepts(generation):
            token = self._state.tokens[self._state.current_index]
            logger.debug("Engine error on word %d %r, skipping", token.index, token.text)
            self._advance(generation, self._error_delay)

    # --- internals ---

    def _is_current(self, generation: int) -> bool:
        return self.is_playing and generation == self._state.generation

    def _accepts(self, generation: int) -> bool:
        if not self._is_current(generation) or not self._awaiting:
            logger.debug("Ignoring stale callback from run %d", generation)
            return False
        self._awaiting = False
        return True

    def _advance(self, generation: int, delay: float) -> None:
        self._state.current_index += 1
        if self._state.current_index >= len(self._state.tokens):
            self._finish()
            return
        self._pending = self._call_later(delay, lambda: self._step(generation))

    def _step(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        self._pending = None

        index = self._state.current_index
        token = self._state.tokens[index]
        voice = self._catalog.resolve(token.language, self._voice_selection.get(token.language))
        if voice is None:
            logger.debug("No voice for %s, skipping word %d %r", token.language, index, token.text)
            self._advance(generation, self._skip_delay)
            return

        self._emit("on_progress", index, len(self._state.tokens))
        self._emit("on_highlight", index)
        # A listener may have stopped playback
        if not self._is_current(generation):
            return

        request = SpeechRequest(text=token.text, voice=voice.id, rate=self._speed)
        self._awaiting = True
        self._engine.submit(
            request,
            lambda: self.on_complete(generation),
            lambda: self.on_error(generation),
        )

    def _finish(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._awaiting = False
        self._engine.cancel_all()
        self._state.status = PlaybackStatus.IDLE
        self._state.current_index = -1
        self._emit("on_status", PlaybackStatus.IDLE)

"""Speech engine: synthesize one word with edge-tts, play it with ffplay."""

import asyncio
import itertools
import logging
import os
import shutil
import tempfile
from typing import Callable

from polyglot_reader.constants import PLAYER_COMMAND, PLAYBACK_RETRY_COUNT
from polyglot_reader.models import SpeechRequest
from polyglot_reader.tts import SpeechError, synthesize_async

logger = logging.getLogger(__name__)


def player_available(player: tuple[str, ...] = PLAYER_COMMAND) -> bool:
    return shutil.which(player[0]) is not None


class EdgeSpeechEngine:
    """Asynchronous single-word speech engine.

    submit() schedules synthesis and playback on the running event loop and
    calls exactly one of on_complete / on_error when it ends. cancel_all()
    kills the player right away; requests submitted before it never call
    back.
    """

    def __init__(
        self,
        player: tuple[str, ...] = PLAYER_COMMAND,
        retries: int = PLAYBACK_RETRY_COUNT,
        work_dir: str | None = None,
    ):
        self._player = tuple(player)
        self._retries = retries
        self._owns_work_dir = work_dir is None
        self._work_dir = work_dir or tempfile.mkdtemp(prefix="polyglot_reader_")
        self._counter = itertools.count()
        self._epoch = 0
        self._tasks: set[asyncio.Task] = set()
        self._processes: set[asyncio.subprocess.Process] = set()

    def submit(
        self,
        request: SpeechRequest,
        on_complete: Callable[[], None],
        on_error: Callable[[], None],
    ) -> None:
        epoch = self._epoch
        task = asyncio.get_running_loop().create_task(self._speak(request))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, epoch, on_complete, on_error))

    def cancel_all(self) -> None:
        self._epoch += 1
        for proc in list(self._processes):
            _kill(proc)
        for task in list(self._tasks):
            task.cancel()

    def close(self) -> None:
        """Cancel everything and remove temporary audio files."""
        self.cancel_all()
        if self._owns_work_dir:
            shutil.rmtree(self._work_dir, ignore_errors=True)

    def _finished(self, task: asyncio.Task, epoch: int, on_complete, on_error) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if epoch != self._epoch:
            return
        if error is not None:
            logger.warning("Speech request failed: %s", error)
            on_error()
        else:
            on_complete()

    async def _speak(self, request: SpeechRequest) -> None:
        path = os.path.join(self._work_dir, f"{next(self._counter):06d}.mp3")
        try:
            await synthesize_async(request, path, retries=self._retries)
            await self._play(path)
        finally:
            if os.path.exists(path):
                os.remove(path)

    async def _play(self, path: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._player,
                path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise SpeechError(f"Audio player not found: {self._player[0]}")

        self._processes.add(proc)
        try:
            code = await proc.wait()
        finally:
            self._processes.discard(proc)
            if proc.returncode is None:
                _kill(proc)
        if code != 0:
            raise SpeechError(f"{self._player[0]} exited with status {code}")


def _kill(proc) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass

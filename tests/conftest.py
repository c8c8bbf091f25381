"""Shared fixtures and fakes for polyglot reader tests."""

import pytest

from polyglot_reader.models import AnnotatedToken, Token, Voice
from polyglot_reader.scheduler import PlaybackListener, PlaybackScheduler
from polyglot_reader.voices import VoiceCatalog


class FakeHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Stands in for loop.call_later; timers run only when asked."""

    def __init__(self):
        self.pending = []
        self.delays = []

    def call_later(self, delay, callback):
        handle = FakeHandle()
        self.pending.append((callback, handle))
        self.delays.append(delay)
        return handle

    def run_next(self):
        callback, handle = self.pending.pop(0)
        if not handle.cancelled:
            callback()

    def run_all(self, limit=1000):
        while self.pending and limit:
            self.run_next()
            limit -= 1


class FakeEngine:
    """Records submitted requests; resolves them on demand or immediately.

    Words listed in failing call on_error instead of on_complete.
    """

    def __init__(self, auto=False, failing=()):
        self.auto = auto
        self.failing = set(failing)
        self.requests = []
        self.outstanding = []
        self.cancel_count = 0

    def submit(self, request, on_complete, on_error):
        self.requests.append(request)
        entry = (request, on_complete, on_error)
        if self.auto:
            self._resolve(entry)
        else:
            self.outstanding.append(entry)

    def cancel_all(self):
        self.cancel_count += 1
        self.outstanding.clear()

    def resolve_next(self):
        self._resolve(self.outstanding.pop(0))

    def _resolve(self, entry):
        request, on_complete, on_error = entry
        if request.text in self.failing:
            on_error()
        else:
            on_complete()


class RecordingListener(PlaybackListener):
    def __init__(self):
        self.highlights = []
        self.statuses = []
        self.progress = []

    def on_highlight(self, index):
        self.highlights.append(index)

    def on_status(self, status):
        self.statuses.append(status)

    def on_progress(self, current_index, total):
        self.progress.append((current_index, total))


def make_tokens(*pairs):
    """make_tokens(("Pai:", "pt"), ("Père", "fr")) → annotated tokens."""
    return [
        AnnotatedToken(token=Token(text=text, index=i), language=language)
        for i, (text, language) in enumerate(pairs)
    ]


@pytest.fixture
def voices():
    return [
        Voice(id="pt-BR-FranciscaNeural", language_tag="pt-BR", display_name="🇧🇷 Francisca"),
        Voice(id="pt-BR-AntonioNeural", language_tag="pt-BR", display_name="🇧🇷 Antonio"),
        Voice(id="fr-FR-DeniseNeural", language_tag="fr-FR", display_name="🇫🇷 Denise"),
        Voice(id="en-US-AriaNeural", language_tag="en-US", display_name="🇺🇸 Aria"),
    ]


@pytest.fixture
def catalog(voices):
    return VoiceCatalog(voices)


@pytest.fixture
def selection():
    return {"pt": "pt-BR-FranciscaNeural", "fr": "fr-FR-DeniseNeural"}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def scheduler(engine, catalog, clock, listener):
    sched = PlaybackScheduler(engine, catalog, call_later=clock.call_later)
    sched.subscribe(listener)
    return sched

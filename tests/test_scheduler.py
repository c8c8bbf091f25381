"""Tests for the playback scheduler."""

from conftest import FakeClock, FakeEngine, RecordingListener, make_tokens

from polyglot_reader.constants import COMPLETE_DELAY_S, ERROR_DELAY_S, SKIP_DELAY_S
from polyglot_reader.models import PlaybackStatus
from polyglot_reader.scheduler import PlaybackListener, PlaybackScheduler


THREE_WORDS = make_tokens(("Pai:", "pt"), ("Père", "fr"), ("Mãe:", "pt"))


def _auto_scheduler(catalog, failing=()):
    engine = FakeEngine(auto=True, failing=failing)
    clock = FakeClock()
    listener = RecordingListener()
    scheduler = PlaybackScheduler(engine, catalog, call_later=clock.call_later)
    scheduler.subscribe(listener)
    return scheduler, engine, clock, listener


# --- Full runs ---

def test_full_run_highlights_in_order(catalog, selection):
    scheduler, engine, clock, listener = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS, selection, 1.3)
    clock.run_all()
    assert listener.highlights == [0, 1, 2]
    assert [r.text for r in engine.requests] == ["Pai:", "Père", "Mãe:"]
    assert scheduler.status is PlaybackStatus.IDLE
    assert scheduler.current_index == -1


def test_requests_use_selected_voice_and_speed(catalog, selection):
    scheduler, engine, clock, _ = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS, selection, 1.3)
    clock.run_all()
    assert [r.voice for r in engine.requests] == [
        "pt-BR-FranciscaNeural", "fr-FR-DeniseNeural", "pt-BR-FranciscaNeural",
    ]
    assert all(r.rate == 1.3 and r.pitch == 1.0 and r.volume == 1.0 for r in engine.requests)


def test_error_in_middle_still_reaches_every_word(catalog, selection):
    """The second word always errors; the run still covers all three in order."""
    scheduler, engine, clock, listener = _auto_scheduler(catalog, failing={"Père"})
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert [r.text for r in engine.requests] == ["Pai:", "Père", "Mãe:"]
    assert listener.highlights == [0, 1, 2]
    assert listener.statuses == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]
    assert scheduler.status is PlaybackStatus.IDLE


def test_pacing_delays(catalog, selection):
    """Longer pause after a clean word, shorter after an error."""
    scheduler, _, clock, _ = _auto_scheduler(catalog, failing={"Père"})
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert clock.delays == [COMPLETE_DELAY_S, ERROR_DELAY_S]


def test_progress_events(catalog, selection):
    scheduler, _, clock, listener = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert listener.progress == [(0, 3), (1, 3), (2, 3)]


def test_missing_voice_skips_word(catalog):
    """No French voice selected: French words are skipped, the run continues."""
    scheduler, engine, clock, listener = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS, {"pt": "pt-BR-FranciscaNeural"}, 1.0)
    clock.run_all()
    assert listener.highlights == [0, 2]
    assert [r.text for r in engine.requests] == ["Pai:", "Mãe:"]
    assert SKIP_DELAY_S in clock.delays
    assert scheduler.status is PlaybackStatus.IDLE


def test_unresolvable_voice_skips_word(catalog):
    scheduler, engine, clock, listener = _auto_scheduler(catalog)
    selection = {"pt": "pt-BR-FranciscaNeural", "fr": "fr-FR-GoneNeural"}
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert listener.highlights == [0, 2]


def test_no_voices_at_all_still_finishes(catalog):
    scheduler, engine, clock, listener = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS, {}, 1.0)
    clock.run_all()
    assert engine.requests == []
    assert listener.highlights == []
    assert listener.statuses == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]


def test_speed_is_clamped(catalog, selection):
    scheduler, engine, clock, _ = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS[:1], selection, 3.0)
    assert engine.requests[0].rate == 2.0


def test_in_range_speed_passes_through(catalog, selection):
    """Speeds between the bounds reach the engine unrounded."""
    scheduler, engine, clock, _ = _auto_scheduler(catalog)
    scheduler.start(THREE_WORDS[:1], selection, 1.25)
    assert engine.requests[0].rate == 1.25


# --- Single flight ---

def test_one_request_outstanding(scheduler, engine, clock, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    assert len(engine.requests) == 1
    clock.run_all()
    assert len(engine.requests) == 1   # nothing happens until the engine calls back
    engine.resolve_next()
    assert len(engine.requests) == 1   # next word waits for the pacing delay
    clock.run_next()
    assert len(engine.requests) == 2


def test_duplicate_callback_ignored(scheduler, engine, clock, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    _, on_complete, _ = engine.outstanding[0]
    on_complete()
    on_complete()
    assert scheduler.current_index == 1
    assert len(clock.pending) == 1


def test_empty_input_is_noop(scheduler, engine, listener, selection):
    scheduler.start([], selection, 1.0)
    assert scheduler.status is PlaybackStatus.IDLE
    assert scheduler.generation == 0
    assert listener.statuses == []
    assert engine.requests == []


def test_tokens_frozen_at_start(scheduler, engine, clock, selection):
    tokens = list(THREE_WORDS)
    scheduler.start(tokens, selection, 1.0)
    tokens.clear()
    assert len(scheduler.state.tokens) == 3
    engine.resolve_next()
    clock.run_next()
    assert engine.requests[1].text == "Père"


def test_selection_frozen_at_start(scheduler, engine, clock, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    selection.clear()
    engine.resolve_next()
    clock.run_next()
    assert engine.requests[1].voice == "fr-FR-DeniseNeural"


# --- Cancellation ---

def test_stop_goes_idle_and_cancels(scheduler, engine, listener, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    scheduler.stop()
    assert scheduler.status is PlaybackStatus.IDLE
    assert scheduler.current_index == -1
    assert engine.cancel_count == 1
    assert listener.statuses == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]


def test_stop_when_idle_is_noop(scheduler, engine, listener):
    scheduler.stop()
    assert engine.cancel_count == 0
    assert listener.statuses == []


def test_stale_callback_after_stop_is_noop(scheduler, engine, clock, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    _, on_complete, on_error = engine.outstanding[0]
    scheduler.stop()
    on_complete()
    on_error()
    assert scheduler.status is PlaybackStatus.IDLE
    assert scheduler.current_index == -1
    assert clock.pending == []


def test_stale_callback_from_previous_run(scheduler, engine, clock, listener, selection):
    """A late completion from run 1 can't advance run 2."""
    scheduler.start(THREE_WORDS, selection, 1.0)
    old_generation = scheduler.generation
    _, old_complete, _ = engine.outstanding[0]
    scheduler.stop()
    scheduler.start(THREE_WORDS, selection, 1.0)
    assert scheduler.generation > old_generation
    old_complete()
    scheduler.on_complete(old_generation)
    assert scheduler.current_index == 0
    assert clock.pending == []
    assert listener.highlights == [0, 0]


def test_generation_increases_across_runs(scheduler, selection):
    generations = []
    for _ in range(3):
        scheduler.start(THREE_WORDS, selection, 1.0)
        generations.append(scheduler.generation)
        scheduler.stop()
        assert scheduler.generation == generations[-1]
    assert generations == sorted(set(generations))


def test_start_while_playing_stops_without_restarting(scheduler, engine, clock, listener, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    _, on_complete, _ = engine.outstanding[0]
    scheduler.start(THREE_WORDS, selection, 1.0)
    assert scheduler.status is PlaybackStatus.IDLE
    on_complete()
    clock.run_all()
    assert listener.highlights == [0]
    assert len(engine.requests) == 1


def test_stop_during_pacing_delay(scheduler, engine, clock, listener, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    engine.resolve_next()
    assert len(clock.pending) == 1
    scheduler.stop()
    clock.run_all()
    assert listener.highlights == [0]
    assert len(engine.requests) == 1


def test_old_timer_cannot_drive_new_run(scheduler, engine, clock, listener, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    engine.resolve_next()
    stale_timer, _ = clock.pending[0]
    scheduler.stop()
    scheduler.start(THREE_WORDS, selection, 1.0)
    stale_timer()
    assert scheduler.current_index == 0
    assert len(engine.requests) == 2


# --- Listeners ---

def test_listener_errors_do_not_stop_playback(catalog, selection):
    class Broken(PlaybackListener):
        def on_highlight(self, index):
            raise RuntimeError("boom")

    scheduler, engine, clock, listener = _auto_scheduler(catalog)
    scheduler.subscribe(Broken())
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert listener.highlights == [0, 1, 2]


def test_listener_can_stop_on_highlight(catalog, selection):
    scheduler, engine, clock, listener = _auto_scheduler(catalog)

    class Stopper(PlaybackListener):
        def on_highlight(self, index):
            scheduler.stop()

    scheduler.subscribe(Stopper())
    scheduler.start(THREE_WORDS, selection, 1.0)
    clock.run_all()
    assert engine.requests == []
    assert scheduler.status is PlaybackStatus.IDLE


def test_unsubscribe(scheduler, listener, selection):
    other = RecordingListener()
    unsubscribe = scheduler.subscribe(other)
    unsubscribe()
    scheduler.start(THREE_WORDS, selection, 1.0)
    assert other.highlights == []
    assert listener.highlights == [0]


def test_state_is_a_snapshot(scheduler, selection):
    scheduler.start(THREE_WORDS, selection, 1.0)
    snapshot = scheduler.state
    snapshot.current_index = 2
    assert scheduler.current_index == 0

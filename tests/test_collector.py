"""Tests for focus interval aggregation and the heartbeat protocol."""

import asyncio

import pytest

from i3tracker.collector import FocusCollector
from i3tracker.errors import EventSourceError, LogIOError
from i3tracker.logfile import iter_entries
from i3tracker.models import (
    Flush,
    SourceFailed,
    Tick,
    WindowActivated,
    WindowInfo,
    WindowRetitled,
)
from i3tracker.ticks import TickScheduler

HEARTBEAT = 10


def activated(window_id, **meta):
    return WindowActivated(WindowInfo(window_id=window_id, **meta))


def retitled(window_id, **meta):
    return WindowRetitled(WindowInfo(window_id=window_id, **meta))


@pytest.fixture
def collector(writer, scheduler, clock):
    return FocusCollector(writer, 1, scheduler, clock=clock)


class TestTransitions:
    def test_first_activation_writes_nothing(self, collector, scheduler, log_path):
        collector.handle(activated(1, title="a"))
        assert list(iter_entries(log_path)) == []
        assert collector.active.window.window_id == 1
        assert scheduler.armed == [1]

    def test_transition_closes_previous_interval(self, collector, scheduler, clock, log_path):
        collector.handle(activated(1, title="a"))
        clock.advance(7)
        collector.handle(activated(2, title="b"))
        (entry,) = iter_entries(log_path)
        assert entry.sequence_id == 1
        assert entry.window_id == 1
        assert entry.duration_seconds == 7
        assert collector.next_id == 2
        assert scheduler.armed == [1, 2]

    def test_identical_event_is_ignored(self, collector, scheduler, clock, log_path):
        collector.handle(activated(1, title="a"))
        opened = clock.now
        clock.advance(3)
        collector.handle(activated(1, title="a"))
        assert list(iter_entries(log_path)) == []
        assert collector.next_id == 1
        assert scheduler.armed == [1]
        assert collector.active.start_time == opened

    def test_retitle_of_same_window_is_a_transition(self, collector, clock, log_path):
        collector.handle(activated(1, title="doc"))
        clock.advance(4)
        collector.handle(retitled(1, title="doc*"))
        (entry,) = iter_entries(log_path)
        assert entry.title == "doc"
        assert collector.active.window.title == "doc*"

    def test_distinct_intervals_get_consecutive_ids(self, collector, clock, log_path):
        for window_id in (1, 2, 3, 1, 2):
            collector.handle(activated(window_id))
            clock.advance(2)
        collector.handle(Flush())
        ids = [entry.sequence_id for entry in iter_entries(log_path)]
        assert ids == [1, 2, 3, 4, 5]

    def test_recovered_counter_is_used(self, writer, scheduler, clock, log_path):
        collector = FocusCollector(writer, 41, scheduler, clock=clock)
        collector.handle(activated(1))
        collector.handle(activated(2))
        assert [entry.sequence_id for entry in iter_entries(log_path)] == [41]
        assert scheduler.armed == [41, 42]


class TestHeartbeat:
    def test_tick_persists_and_rolls_forward(self, collector, scheduler, clock, log_path):
        collector.handle(activated(1, title="a"))
        clock.advance(HEARTBEAT)
        collector.handle(Tick(1))
        (entry,) = iter_entries(log_path)
        assert entry.sequence_id == 1
        assert entry.duration_seconds == HEARTBEAT
        assert collector.next_id == 1
        assert collector.active.start_time == clock.now
        assert collector.active.window.title == "a"
        assert scheduler.armed == [1, 1]

    def test_three_heartbeats_then_transition(self, collector, clock, log_path):
        collector.handle(activated(1))
        for _ in range(3):
            clock.advance(HEARTBEAT)
            collector.handle(Tick(1))
        clock.advance(4)
        collector.handle(activated(2))
        entries = list(iter_entries(log_path))
        assert len(entries) == 4
        assert {entry.sequence_id for entry in entries} == {1}
        assert [entry.duration_seconds for entry in entries] == [10, 10, 10, 4]
        for previous, current in zip(entries, entries[1:]):
            assert current.start_time == previous.end_time

    def test_stale_tick_is_dropped(self, collector, scheduler, clock, log_path):
        collector.handle(activated(1))
        clock.advance(2)
        collector.handle(activated(2))
        clock.advance(HEARTBEAT)
        collector.handle(Tick(1))
        assert len(list(iter_entries(log_path))) == 1
        assert scheduler.armed == [1, 2]

    def test_tick_without_interval_is_dropped(self, collector, scheduler, log_path):
        collector.handle(Tick(1))
        assert list(iter_entries(log_path)) == []
        assert scheduler.armed == []


class TestFlush:
    def test_flush_writes_final_row_with_pending_id(self, collector, clock, log_path):
        collector.handle(activated(1))
        clock.advance(HEARTBEAT)
        collector.handle(Tick(1))
        clock.advance(3)
        assert collector.handle(Flush()) is False
        entries = list(iter_entries(log_path))
        assert [entry.sequence_id for entry in entries] == [1, 1]
        assert entries[-1].duration_seconds == 3
        assert collector.active is None

    def test_flush_without_interval_writes_nothing(self, collector, log_path):
        assert collector.handle(Flush()) is False
        assert list(iter_entries(log_path)) == []

    def test_window_manager_sequence(self, collector, clock, log_path):
        collector.handle(activated(8, title="Editor"))
        clock.advance(5)
        collector.handle(retitled(8, title="Editor*"))
        clock.advance(6)
        collector.handle(Flush())
        entries = list(iter_entries(log_path))
        assert [(e.sequence_id, e.title, e.duration_seconds) for e in entries] == [
            (1, "Editor", 5),
            (2, "Editor*", 6),
        ]


class TestFailures:
    def test_source_failure_is_fatal(self, collector):
        with pytest.raises(EventSourceError):
            collector.handle(SourceFailed(ConnectionError("socket closed")))

    def test_write_failure_is_fatal(self, collector, writer):
        collector.handle(activated(1))
        writer.close()
        with pytest.raises(LogIOError):
            collector.handle(activated(2))


class TestRunLoop:
    @pytest.mark.asyncio
    async def test_run_stops_after_flush(self, writer, scheduler, clock, log_path):
        queue = asyncio.Queue()
        collector = FocusCollector(writer, 1, scheduler, queue=queue, clock=clock)
        queue.put_nowait(activated(1))
        queue.put_nowait(activated(2))
        queue.put_nowait(Flush())
        await asyncio.wait_for(collector.run(), timeout=1)
        assert [entry.window_id for entry in iter_entries(log_path)] == [1, 2]

    @pytest.mark.asyncio
    async def test_real_ticks_reach_the_collector(self, writer, log_path):
        queue = asyncio.Queue()
        scheduler = TickScheduler(queue, delay=0.01)
        collector = FocusCollector(writer, 1, scheduler, queue=queue)
        collector.handle(activated(1))

        message = await asyncio.wait_for(queue.get(), timeout=1)
        assert message == Tick(1)
        collector.handle(message)
        assert [entry.sequence_id for entry in iter_entries(log_path)] == [1]
        assert scheduler.pending >= 1
        scheduler.cancel_all()
        assert scheduler.pending == 0


class TestClock:
    def test_default_clock_is_timezone_aware(self, writer, scheduler):
        collector = FocusCollector(writer, 1, scheduler)
        collector.handle(activated(1))
        assert collector.active.start_time.tzinfo is not None

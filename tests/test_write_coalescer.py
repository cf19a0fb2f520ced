"""Tests for WriteCoalescer - per-key write throttling."""

import asyncio

import pytest

from podcast_player.application.services.write_coalescer import WriteCoalescer


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def writes():
    return []


@pytest.fixture
def coalescer(clock, writes):
    async def write(key, value):
        writes.append((key, value))

    return WriteCoalescer(interval=0.05, write=write, clock=clock)


class TestWriteCoalescer:
    """Unit tests for the leading-edge throttle."""

    async def test_first_submit_writes_immediately(self, coalescer, writes):
        """Should write the first value for a key without waiting."""
        coalescer.submit("a", 1)
        await coalescer.drain()

        assert writes == [("a", 1)]
        assert not coalescer.has_pending("a")

    async def test_submits_within_interval_are_coalesced(self, coalescer, writes):
        """Should write only the newest value once the interval elapses."""
        coalescer.submit("a", 1)
        coalescer.submit("a", 2)
        coalescer.submit("a", 3)
        await coalescer.drain()

        assert writes == [("a", 1)]
        assert coalescer.has_pending("a")

        await asyncio.sleep(0.1)
        await coalescer.drain()

        assert writes == [("a", 1), ("a", 3)]
        assert not coalescer.has_pending("a")

    async def test_submit_after_interval_writes_immediately(self, coalescer, clock, writes):
        """Should write at once when the interval has already elapsed."""
        coalescer.submit("a", 1)
        clock.advance(0.05)
        coalescer.submit("a", 2)
        await coalescer.drain()

        assert writes == [("a", 1), ("a", 2)]

    async def test_keys_are_independent(self, coalescer, writes):
        """Should throttle each key separately."""
        coalescer.submit("a", 1)
        coalescer.submit("b", 1)
        await coalescer.drain()

        assert sorted(writes) == [("a", 1), ("b", 1)]

    async def test_flush_supersedes_pending(self, coalescer, writes):
        """Should write the flushed value and drop the trailing one."""
        coalescer.submit("a", 1)
        await coalescer.drain()
        coalescer.submit("a", 2)
        await coalescer.flush("a", 3)
        await asyncio.sleep(0.1)
        await coalescer.drain()

        assert writes == [("a", 1), ("a", 3)]

    async def test_flush_restarts_window(self, coalescer, writes):
        """Should treat a flush as the last write for throttling."""
        await coalescer.flush("a", 1)
        coalescer.submit("a", 2)
        await coalescer.drain()

        assert writes == [("a", 1)]
        assert coalescer.has_pending("a")
        coalescer.cancel_all()

    async def test_cancel_drops_pending(self, coalescer, writes):
        """Should discard a pending value without writing it."""
        coalescer.submit("a", 1)
        coalescer.submit("a", 2)
        coalescer.cancel("a")
        await asyncio.sleep(0.1)
        await coalescer.drain()

        assert writes == [("a", 1)]

    async def test_cancel_unknown_key(self, coalescer):
        """Should ignore keys it has never seen."""
        coalescer.cancel("missing")

    async def test_discard_releases_idle_slot(self, coalescer, writes):
        """Should drop the slot and its pending value for a finished key."""
        coalescer.submit("a", 1)
        coalescer.submit("a", 2)
        await coalescer.drain()

        coalescer.discard("a")
        await asyncio.sleep(0.1)

        assert writes == [("a", 1)]
        assert "a" not in coalescer._slots

    async def test_discard_waits_for_in_flight_write(self, clock):
        """Should keep the slot until a running write finishes, so drain still waits."""
        release = asyncio.Event()
        writes = []

        async def slow_write(key, value):
            await release.wait()
            writes.append((key, value))

        coalescer = WriteCoalescer(interval=0.05, write=slow_write, clock=clock)
        coalescer.submit("a", 1)
        await asyncio.sleep(0)

        coalescer.discard("a")
        assert "a" in coalescer._slots

        release.set()
        await coalescer.drain()

        assert writes == [("a", 1)]
        assert "a" not in coalescer._slots

    async def test_submit_after_discard_starts_fresh(self, coalescer, writes):
        """Should write immediately for a key that was released."""
        coalescer.submit("a", 1)
        await coalescer.drain()
        coalescer.discard("a")

        coalescer.submit("a", 2)
        await coalescer.drain()

        assert writes == [("a", 1), ("a", 2)]

    async def test_discard_unknown_key(self, coalescer):
        """Should ignore keys it has never seen."""
        coalescer.discard("missing")
        assert coalescer._slots == {}

    def test_interval_property(self, coalescer):
        """Should expose the configured interval."""
        assert coalescer.interval == 0.05

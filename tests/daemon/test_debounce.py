"""Tests for per-path debouncing (daemon/debounce.py)."""

from __future__ import annotations

import pytest

from peekmd.daemon.debounce import ChangeKind, Debouncer, coalesce

C, M, D = ChangeKind.CREATED, ChangeKind.MODIFIED, ChangeKind.DELETED


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def debouncer(clock: FakeClock) -> Debouncer:
    return Debouncer(stability=0.1, max_wait=1.0, clock=clock)


class TestCoalesce:
    @pytest.mark.parametrize(
        ("previous", "latest", "expected"),
        [
            (C, M, C),
            (C, D, None),
            (D, C, M),
            (D, M, M),
            (M, D, D),
            (M, M, M),
            (M, C, C),
        ],
    )
    def test_table(
        self, previous: ChangeKind, latest: ChangeKind, expected: ChangeKind | None
    ) -> None:
        assert coalesce(previous, latest) == expected


class TestDebouncer:
    """Tests for Debouncer."""

    def test_nothing_before_stability(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("a.md", M)
        clock.advance(0.05)
        assert debouncer.pop_settled() == []
        assert "a.md" in debouncer

    def test_released_after_stability(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("a.md", M)
        clock.advance(0.11)
        assert debouncer.pop_settled() == [("a.md", M)]
        assert len(debouncer) == 0

    def test_burst_yields_one_change(self, debouncer: Debouncer, clock: FakeClock) -> None:
        for _ in range(5):
            debouncer.record("a.md", M)
            clock.advance(0.02)
        assert debouncer.pop_settled() == []

        clock.advance(0.11)
        assert debouncer.pop_settled() == [("a.md", M)]

    def test_max_wait_releases_busy_path(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("busy.md", M)
        for _ in range(30):
            clock.advance(0.05)
            debouncer.record("busy.md", M)
            settled = debouncer.pop_settled()
            if settled:
                break
        assert settled == [("busy.md", M)]
        assert clock.now - 100.0 <= 1.1

    def test_create_then_delete_cancels(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("tmp.md", C)
        debouncer.record("tmp.md", D)
        clock.advance(1.0)
        assert debouncer.pop_settled() == []
        assert len(debouncer) == 0

    def test_atomic_replace_is_modified(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("a.md", D)
        debouncer.record("a.md", C)
        clock.advance(0.2)
        assert debouncer.pop_settled() == [("a.md", M)]

    def test_order_follows_last_change(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("a.md", M)
        debouncer.record("b.md", M)
        debouncer.record("a.md", M)
        clock.advance(0.2)
        assert [k for k, _ in debouncer.pop_settled()] == ["b.md", "a.md"]

    def test_independent_paths(self, debouncer: Debouncer, clock: FakeClock) -> None:
        debouncer.record("old.md", M)
        clock.advance(0.08)
        debouncer.record("new.md", C)
        clock.advance(0.03)
        assert debouncer.pop_settled() == [("old.md", M)]
        clock.advance(0.1)
        assert debouncer.pop_settled() == [("new.md", C)]

    def test_clear(self, debouncer: Debouncer) -> None:
        debouncer.record("a.md", M)
        debouncer.clear()
        assert len(debouncer) == 0

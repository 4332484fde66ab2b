"""Deadline budget accounting and the per-tenant sliding-window limiter."""

from app.application.use_cases.sync.deadline import Deadline
from app.core.limiter import SlidingWindowRateLimiter
from sync_fakes import FakeClock


def test_deadline_expires_at_budget() -> None:
    clock = FakeClock()
    deadline = Deadline(10, clock=clock)
    clock.advance(9.5)
    assert not deadline.expired()
    clock.advance(0.5)
    assert deadline.expired()
    assert deadline.remaining() == 0.0


def test_child_expires_with_parent() -> None:
    clock = FakeClock()
    parent = Deadline(55, clock=clock)
    clock.advance(40)
    child = parent.child(50)
    assert child.remaining() == 15
    clock.advance(15)
    assert child.expired()


def test_child_own_budget_applies_first() -> None:
    clock = FakeClock()
    child = Deadline(55, clock=clock).child(5)
    clock.advance(5)
    assert child.expired()


def test_limiter_allows_up_to_max_in_window() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(3, 60, clock=clock)
    assert [limiter.hit("t1") for _ in range(3)] == [0, 0, 0]
    assert limiter.hit("t1") > 0
    # other tenants are unaffected
    assert limiter.hit("t2") == 0


def test_limiter_reports_retry_after_and_recovers() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(1, 60, clock=clock)
    limiter.hit("t1")
    clock.advance(20)
    assert limiter.hit("t1") == 40
    clock.advance(40.5)
    assert limiter.hit("t1") == 0


def test_limiter_sweep_drops_idle_keys() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(5, 60, clock=clock)
    limiter.hit("t1")
    limiter.hit("t2")
    clock.advance(61)
    limiter.hit("t3")
    assert limiter.sweep() == 2
    assert len(limiter) == 1

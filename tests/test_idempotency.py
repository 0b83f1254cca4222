import pytest

from finboard.core.errors import DuplicateRequestError
from finboard.core.idempotency import IdempotencyRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_first_claim_owns_the_key():
    registry = IdempotencyRegistry()
    assert registry.begin(1, "a") is None
    assert len(registry) == 1


def test_in_flight_key_is_a_duplicate():
    registry = IdempotencyRegistry()
    registry.begin(1, "a")
    with pytest.raises(DuplicateRequestError):
        registry.begin(1, "a")


def test_completed_key_returns_stored_result():
    registry = IdempotencyRegistry()
    registry.begin(1, "a")
    registry.complete(1, "a", {"ok": True})
    assert registry.begin(1, "a") == {"ok": True}


def test_released_key_can_be_claimed_again():
    registry = IdempotencyRegistry()
    registry.begin(1, "a")
    registry.release(1, "a")
    assert registry.begin(1, "a") is None


def test_keys_are_per_user():
    registry = IdempotencyRegistry()
    registry.begin(1, "a")
    assert registry.begin(2, "a") is None


def test_keys_expire_after_window():
    clock = FakeClock()
    registry = IdempotencyRegistry(window_seconds=60, clock=clock)
    registry.begin(1, "a")
    registry.complete(1, "a", "result")

    clock.now += 59
    assert registry.begin(1, "a") == "result"

    clock.now += 2
    assert registry.begin(1, "a") is None


def test_failed_key_reraises_and_outlives_window():
    clock = FakeClock()
    registry = IdempotencyRegistry(window_seconds=60, clock=clock)
    registry.begin(1, "a")
    error = RuntimeError("stranded")
    registry.fail(1, "a", error)

    with pytest.raises(RuntimeError) as exc_info:
        registry.begin(1, "a")
    assert exc_info.value is error

    clock.now += 3600
    with pytest.raises(RuntimeError):
        registry.begin(1, "a")

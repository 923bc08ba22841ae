import threading
from datetime import datetime, timedelta, timezone

from welfare_fund.providers.clock import ClockProvider


def test_now_is_timezone_aware_utc() -> None:
    """Tests that the default clock returns aware UTC datetimes."""
    now = ClockProvider().now()

    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_now_never_repeats_a_frozen_source() -> None:
    """Tests that a wall clock returning the same instant still yields increasing values."""
    frozen = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    clock = ClockProvider(lambda: frozen)

    first, second, third = clock.now(), clock.now(), clock.now()

    assert first == frozen
    assert second == frozen + ClockProvider.RESOLUTION
    assert third == frozen + 2 * ClockProvider.RESOLUTION


def test_now_does_not_go_backwards() -> None:
    """Tests that a wall clock stepping backwards is ignored."""
    readings = iter(
        [
            datetime(2025, 1, 1, 12, 0, 5, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 12, 0, 1, tzinfo=timezone.utc),
        ]
    )
    clock = ClockProvider(lambda: next(readings))

    first = clock.now()
    second = clock.now()

    assert second > first


def test_naive_source_is_treated_as_utc() -> None:
    """Tests that naive readings are interpreted as UTC."""
    clock = ClockProvider(lambda: datetime(2025, 1, 1, 12, 0))

    assert clock.now() == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_now_is_strictly_increasing_across_threads() -> None:
    """Tests that concurrent readers never receive the same timestamp."""
    clock = ClockProvider(lambda: datetime(2025, 1, 1, tzinfo=timezone.utc))
    results: list[datetime] = []
    lock = threading.Lock()

    def read() -> None:
        for _ in range(50):
            value = clock.now()
            with lock:
                results.append(value)

    threads = [threading.Thread(target=read) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(results)) == 200

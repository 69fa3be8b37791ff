from __future__ import annotations

import pytest

from hiremind.retry import retry


class Flaky:
    def __init__(self, failures: int, attempts: int = 3) -> None:
        self.failures = failures
        self.attempts = attempts
        self.calls = 0

    @retry(max_attempts=lambda self: self.attempts, base_delay=0.5, jitter=False, retryable=(ConnectionError,))
    def fetch(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("reset by peer")
        return "ok"


def test_succeeds_after_transient_failures():
    flaky = Flaky(failures=2)
    assert flaky.fetch() == "ok"
    assert flaky.calls == 3


def test_gives_up_after_configured_attempts():
    flaky = Flaky(failures=5, attempts=2)
    with pytest.raises(ConnectionError):
        flaky.fetch()
    assert flaky.calls == 2


def test_non_retryable_errors_propagate_immediately():
    calls = []

    @retry(max_attempts=3, retryable=(ConnectionError,))
    def boom():
        calls.append(1)
        raise KeyError("x")

    with pytest.raises(KeyError):
        boom()
    assert calls == [1]


def test_backoff_delays_grow_exponentially():
    delays = []

    @retry(max_attempts=4, base_delay=1.0, max_delay=3.0, jitter=False, sleep=delays.append)
    def always_fails():
        raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        always_fails()
    assert delays == [1.0, 2.0, 3.0]

import logging

import pytest

from whspr.retry import backoff_delay, with_retry


class Flaky:
    def __init__(self, failures, exc_type=ConnectionError):
        self.failures = failures
        self.exc_type = exc_type
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_type(f"failure {self.calls}")
        return "ok"


def test_success_after_transient_failures():
    op = Flaky(failures=2)
    delays = []

    assert with_retry(op, 3, "test", sleep=delays.append) == "ok"
    assert op.calls == 3
    assert delays == [0.5, 1.0]


def test_first_try_success_does_not_sleep():
    op = Flaky(failures=0)
    delays = []

    assert with_retry(op, 3, "test", sleep=delays.append) == "ok"
    assert op.calls == 1
    assert delays == []


def test_exhausted_attempts_reraise_last_failure():
    op = Flaky(failures=5)
    delays = []

    with pytest.raises(ConnectionError, match="failure 3"):
        with_retry(op, 3, "test", sleep=delays.append)
    assert op.calls == 3
    assert len(delays) == 2


def test_non_retryable_errors_propagate_immediately():
    op = Flaky(failures=1, exc_type=KeyError)

    with pytest.raises(KeyError):
        with_retry(op, 3, "test", retry_on=(ConnectionError,), sleep=lambda _: None)
    assert op.calls == 1


def test_invalid_attempt_count():
    with pytest.raises(ValueError):
        with_retry(lambda: None, 0, "test")


def test_backoff_is_capped():
    assert backoff_delay(1) == 0.5
    assert backoff_delay(3) == 2.0
    assert backoff_delay(10) == 4.0


def test_recovered_failures_stay_below_warning(caplog):
    caplog.set_level(logging.DEBUG, logger="whspr.retry")

    assert with_retry(Flaky(failures=2), 3, "Transcription", sleep=lambda _: None) == "ok"

    records = [r for r in caplog.records if r.name == "whspr.retry"]
    assert len(records) == 2
    assert all(r.levelno < logging.WARNING for r in records)

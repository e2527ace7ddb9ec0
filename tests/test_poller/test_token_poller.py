"""Tests for the bounded token poller."""

from __future__ import annotations

import logging
import threading
from typing import Callable

import pytest

from plexpin.exceptions import (
    NetworkError,
    ParseError,
    PinExpiredError,
    PollCancelledError,
    TimeoutError_,
    TransportError,
)
from plexpin.models import Pin, PollConfig
from plexpin.poller import TokenPoller


PENDING = Pin(id="1", code="XYZ9")
NOT_FOUND = TransportError("HTTP 404: Code not found or expired", status_code=404)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeCancel:
    """Stand-in for :class:`threading.Event` whose ``wait`` advances a clock.

    ``cancel_after`` sets the event once that many waits have happened.
    """

    def __init__(self, clock: FakeClock, cancel_after: int | None = None) -> None:
        self.clock = clock
        self.waits: list[float] = []
        self._set = False
        self._cancel_after = cancel_after

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout or 0.0)
        self.clock.now += timeout or 0.0
        if self._cancel_after is not None and len(self.waits) >= self._cancel_after:
            self._set = True
        return self._set


class FakeClient:
    """Answers ``check_pin`` from a script of results (a Pin or an exception).

    Once the script runs out the last entry repeats.
    """

    def __init__(self, script: list[Pin | Exception]) -> None:
        self.script = script
        self.calls: list[tuple[str, str]] = []
        self.timeouts: list[float | None] = []

    def check_pin(self, pin_id: str, client_id: str, timeout: float | None = None) -> Pin:
        self.calls.append((pin_id, client_id))
        self.timeouts.append(timeout)
        result = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cancel(clock: FakeClock) -> FakeCancel:
    return FakeCancel(clock)


def _granted(token: str) -> Pin:
    return Pin(id="1", code="XYZ9", auth_token=token)


def _poller(
    client: FakeClient,
    clock: FakeClock,
    cancel: FakeCancel,
    on_tick: Callable[[int, Pin | None], None] | None = None,
    **config: float,
) -> TokenPoller:
    return TokenPoller(
        client,  # type: ignore[arg-type]
        "abc123",
        config=PollConfig(**config),
        clock=clock,
        cancel=cancel,  # type: ignore[arg-type]
        on_tick=on_tick,
    )


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestGrant:
    @pytest.mark.parametrize("pending_ticks", [0, 1, 5])
    def test_returns_token_after_n_plus_one_ticks(
        self, pending_ticks: int, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING] * pending_ticks + [_granted("tok-1"), _granted("other")])
        token = _poller(client, clock, cancel).poll(PENDING)

        assert token == "tok-1"
        assert len(client.calls) == pending_ticks + 1
        assert len(cancel.waits) == pending_ticks

    def test_polls_by_pin_id_with_client_id(self, clock: FakeClock, cancel: FakeCancel) -> None:
        client = FakeClient([_granted("tok")])
        _poller(client, clock, cancel).poll(Pin(id="77", code="C"))
        assert client.calls == [("77", "abc123")]

    def test_already_granted_pin_skips_requests(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING])
        assert _poller(client, clock, cancel).poll(_granted("early")) == "early"
        assert client.calls == []

    def test_waits_fixed_interval(self, clock: FakeClock, cancel: FakeCancel) -> None:
        client = FakeClient([PENDING, PENDING, _granted("tok")])
        _poller(client, clock, cancel, interval=2.0).poll(PENDING)
        assert cancel.waits == [2.0, 2.0]

    def test_on_tick_callback(self, clock: FakeClock, cancel: FakeCancel) -> None:
        ticks: list[tuple[int, str | None]] = []
        client = FakeClient([PENDING, ParseError("bad"), _granted("tok")])

        _poller(
            client,
            clock,
            cancel,
            on_tick=lambda n, pin: ticks.append((n, pin.auth_token if pin else None)),
        ).poll(PENDING)

        assert ticks == [(1, ""), (2, None), (3, "tok")]


# ---------------------------------------------------------------------------
# Deadline and attempt limit
# ---------------------------------------------------------------------------


class TestBounds:
    @pytest.mark.parametrize(
        "timeout,interval",
        [(10.0, 1.0), (2.5, 1.0), (3.0, 0.5), (0.5, 1.0)],
    )
    def test_never_granted_times_out_within_request_budget(
        self, timeout: float, interval: float, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING])
        start = clock.now

        with pytest.raises(TimeoutError_):
            _poller(client, clock, cancel, timeout=timeout, interval=interval).poll(PENDING)

        assert len(client.calls) <= timeout / interval + 1
        assert clock.now - start == pytest.approx(timeout)

    def test_request_count_when_interval_divides_timeout(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING])
        with pytest.raises(TimeoutError_):
            _poller(client, clock, cancel, timeout=3.0, interval=1.0).poll(PENDING)
        assert len(client.calls) == 4

    def test_pin_expiry_shortens_deadline(self, clock: FakeClock, cancel: FakeCancel) -> None:
        client = FakeClient([PENDING])
        pin = Pin(id="1", code="XYZ9", expires_in=3)
        start = clock.now

        with pytest.raises(TimeoutError_, match="3s"):
            _poller(client, clock, cancel, timeout=1800.0, interval=1.0).poll(pin)

        assert len(client.calls) == 4
        assert clock.now - start == pytest.approx(3.0)

    def test_max_attempts(self, clock: FakeClock, cancel: FakeCancel) -> None:
        client = FakeClient([PENDING])
        with pytest.raises(TimeoutError_, match="3 attempt"):
            _poller(client, clock, cancel, max_attempts=3).poll(PENDING)
        assert len(client.calls) == 3
        assert len(cancel.waits) == 2

    def test_request_timeout_shrinks_towards_deadline(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING])
        with pytest.raises(TimeoutError_):
            _poller(client, clock, cancel, timeout=3.5, interval=1.0).poll(PENDING)
        assert client.timeouts == pytest.approx([3.5, 2.5, 1.5, 1.0])

    def test_timeout_is_not_a_transient_error(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING])
        with pytest.raises(TimeoutError_) as exc_info:
            _poller(client, clock, cancel, timeout=2.0).poll(PENDING)
        assert exc_info.value.__cause__ is None


# ---------------------------------------------------------------------------
# Transient and terminal errors
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.parametrize(
        "error",
        [
            ParseError("Malformed PIN response"),
            TransportError("HTTP 502", status_code=502),
            NetworkError("connection reset"),
        ],
    )
    def test_transient_errors_are_retried(
        self, error: Exception, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([error, error, _granted("tok")])
        assert _poller(client, clock, cancel).poll(PENDING) == "tok"
        assert len(client.calls) == 3

    def test_persistent_errors_end_in_timeout(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        error = ParseError("Malformed PIN response")
        client = FakeClient([error])

        with pytest.raises(TimeoutError_) as exc_info:
            _poller(client, clock, cancel, timeout=5.0, interval=1.0).poll(PENDING)

        assert exc_info.value.__cause__ is error
        assert len(client.calls) == 6

    def test_transient_errors_are_logged(
        self, clock: FakeClock, cancel: FakeCancel, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = FakeClient([NetworkError("connection reset"), _granted("tok")])
        with caplog.at_level(logging.WARNING, logger="plexpin.poller"):
            _poller(client, clock, cancel).poll(PENDING)
        assert "connection reset" in caplog.text

    def test_404_is_retried(self, clock: FakeClock, cancel: FakeCancel) -> None:
        client = FakeClient([NOT_FOUND, _granted("tok")])

        token = _poller(client, clock, cancel, timeout=10.0, interval=1.0).poll(PENDING)

        assert token == "tok"
        assert len(client.calls) == 2

    def test_persistent_404_ends_in_pin_expired(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([PENDING, NOT_FOUND])

        with pytest.raises(PinExpiredError) as exc_info:
            _poller(client, clock, cancel, timeout=3.0, interval=1.0).poll(PENDING)

        assert exc_info.value.__cause__ is NOT_FOUND
        assert len(client.calls) == 4

    def test_404_at_attempt_limit_is_pin_expired(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([NOT_FOUND])
        with pytest.raises(PinExpiredError, match="2 attempt"):
            _poller(client, clock, cancel, max_attempts=2).poll(PENDING)

    def test_earlier_404_then_pending_is_plain_timeout(
        self, clock: FakeClock, cancel: FakeCancel
    ) -> None:
        client = FakeClient([NOT_FOUND, PENDING])

        with pytest.raises(TimeoutError_) as exc_info:
            _poller(client, clock, cancel, timeout=3.0, interval=1.0).poll(PENDING)

        assert not isinstance(exc_info.value, PinExpiredError)
        assert exc_info.value.__cause__ is NOT_FOUND

    def test_pin_expired_is_a_timeout(self) -> None:
        assert issubclass(PinExpiredError, TimeoutError_)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    def test_cancel_during_wait(self, clock: FakeClock) -> None:
        cancel = FakeCancel(clock, cancel_after=2)
        client = FakeClient([PENDING])

        with pytest.raises(PollCancelledError):
            _poller(client, clock, cancel).poll(PENDING)

        assert len(client.calls) == 2

    def test_cancel_before_first_tick(self, clock: FakeClock, cancel: FakeCancel) -> None:
        cancel.set()
        client = FakeClient([PENDING])

        with pytest.raises(PollCancelledError):
            _poller(client, clock, cancel).poll(PENDING)

        assert client.calls == []

    def test_real_event_from_another_thread(self) -> None:
        cancel = threading.Event()
        client = FakeClient([PENDING])
        poller = TokenPoller(
            client,  # type: ignore[arg-type]
            "abc123",
            config=PollConfig(interval=0.05, timeout=30.0),
            cancel=cancel,
        )
        timer = threading.Timer(0.1, cancel.set)
        timer.start()
        try:
            with pytest.raises(PollCancelledError):
                poller.poll(PENDING)
        finally:
            timer.cancel()
        assert 1 <= len(client.calls) < 100

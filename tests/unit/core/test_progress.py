"""Unit tests for progress sinks and cancellation tokens."""

import logging
import threading

import pytest
from cleanbin.core.cancellation import CancellationToken, check_cancelled
from cleanbin.core.errors import OperationCancelledError
from cleanbin.core.progress import (
    CallbackSink,
    CollectingSink,
    LoggingSink,
    NullSink,
    ProgressSink,
    safe_report,
)


class TestSinks:
    """Tests for the ProgressSink implementations."""

    @pytest.mark.parametrize("sink", [NullSink(), CollectingSink(), LoggingSink()])
    def test_implements_protocol(self, sink) -> None:
        """Every sink satisfies the ProgressSink protocol."""
        assert isinstance(sink, ProgressSink)

    def test_callback_sink(self) -> None:
        """CallbackSink forwards messages."""
        received: list[str] = []
        CallbackSink(received.append).report("hello")

        assert received == ["hello"]

    def test_logging_sink(self, caplog: pytest.LogCaptureFixture) -> None:
        """LoggingSink writes to the given logger at the given level."""
        log = logging.getLogger("cleanbin.test")
        with caplog.at_level(logging.DEBUG, logger="cleanbin.test"):
            LoggingSink(log, logging.DEBUG).report("working")

        assert caplog.records[0].message == "working"
        assert caplog.records[0].levelno == logging.DEBUG

    def test_collecting_sink_from_threads(self) -> None:
        """CollectingSink keeps every message reported concurrently."""
        sink = CollectingSink()
        threads = [
            threading.Thread(target=lambda: [sink.report("x") for _ in range(100)])
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(sink.messages) == 400


class TestSafeReport:
    """Tests for safe_report."""

    def test_none_sink(self) -> None:
        """A missing sink drops the message."""
        safe_report(None, "ignored")

    def test_failing_sink_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Sink failures are logged, not raised."""

        def explode(message: str) -> None:
            raise RuntimeError("terminal closed")

        with caplog.at_level(logging.WARNING):
            safe_report(CallbackSink(explode), "message")

        assert "terminal closed" in caplog.text


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initial_state(self) -> None:
        """A new token is not cancelled."""
        token = CancellationToken()

        assert token.is_cancelled is False
        token.raise_if_cancelled()

    def test_cancel(self) -> None:
        """Cancelling makes raise_if_cancelled raise."""
        token = CancellationToken()
        token.cancel()

        assert token.is_cancelled is True
        with pytest.raises(OperationCancelledError, match="cancelled"):
            token.raise_if_cancelled()

    def test_wait_times_out(self) -> None:
        """wait returns False when nobody cancels."""
        assert CancellationToken().wait(0.01) is False

    def test_wait_observes_cancel_from_other_thread(self) -> None:
        """wait returns True once another thread cancels."""
        token = CancellationToken()
        threading.Timer(0.01, token.cancel).start()

        assert token.wait(5.0) is True

    def test_check_cancelled_accepts_none(self) -> None:
        """check_cancelled ignores a missing token."""
        check_cancelled(None)

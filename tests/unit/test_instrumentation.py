"""Unit tests for timing instrumentation."""

from __future__ import annotations

import time
from unittest.mock import MagicMock, patch

from yeelight_lan.instrumentation import _log_timing, measure_time, timed_async


def test_measure_time():
    start = time.perf_counter() - 0.25

    assert 250 <= measure_time(start) < 1000


async def test_timed_async_returns_result():
    @timed_async("probe")
    async def probe(value: int) -> int:
        return value * 2

    with patch("yeelight_lan.instrumentation._log_timing") as mock_log:
        assert await probe(21) == 42

    args = mock_log.call_args.args
    assert args[1] == "probe"


async def test_timed_async_logs_on_failure():
    @timed_async()
    async def failing() -> None:
        raise ValueError("boom")

    with patch("yeelight_lan.instrumentation._log_timing") as mock_log:
        try:
            await failing()
        except ValueError:
            pass

    assert mock_log.call_args.args[1] == "failing"


async def test_tracking_disabled():
    @timed_async("quiet")
    async def quiet() -> str:
        return "done"

    with (
        patch("yeelight_lan.const.YEELIGHT_PERF_TRACKING", False),
        patch("yeelight_lan.instrumentation._log_timing") as mock_log,
    ):
        assert await quiet() == "done"

    mock_log.assert_not_called()


def test_threshold_escalates_to_warning():
    mock_logger = MagicMock()

    _log_timing(mock_logger, "slow", 900.0, 500)
    _log_timing(mock_logger, "fast", 10.0, 500)

    mock_logger.warning.assert_called_once()
    mock_logger.debug.assert_called_once()

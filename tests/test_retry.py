"""
Tests for the retry wrapper

Only 429 and 5xx failures are retried; everything else propagates on the
first attempt with the original exception object.
"""

from unittest.mock import MagicMock, patch

import pytest

from maori_bench.harness_config import RetryConfig
from maori_bench.infrastructure.model_clients.base import TransportError
from maori_bench.retry import is_retriable, retry_with_config, status_code_of, with_retry


class _StatusError(Exception):
    def __init__(self, status):
        super().__init__(f"status {status}")
        self.status = status


class _ResponseError(Exception):
    def __init__(self, status_code):
        super().__init__(f"response {status_code}")
        self.response = MagicMock(status_code=status_code)


class TestClassification:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504, 599])
    def test_transient_statuses_are_retriable(self, status):
        assert is_retriable(TransportError("x", status_code=status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 408, 422])
    def test_client_errors_are_not_retriable(self, status):
        assert is_retriable(TransportError("x", status_code=status)) is False

    def test_missing_status_is_not_retriable(self):
        assert is_retriable(TransportError("connection reset")) is False
        assert is_retriable(RuntimeError("plain")) is False

    def test_status_read_from_alternative_attributes(self):
        assert status_code_of(_StatusError(503)) == 503
        assert status_code_of(_ResponseError(429)) == 429
        assert is_retriable(_ResponseError(429)) is True


class TestWithRetry:
    def test_success_on_first_attempt(self):
        sleep = MagicMock()
        fn = MagicMock(return_value="ok")

        assert with_retry(fn, 2, sleep=sleep) == "ok"
        fn.assert_called_once()
        sleep.assert_not_called()

    def test_success_after_transient_failure(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=[TransportError("busy", status_code=429), "ok"])

        assert with_retry(fn, 2, jitter=0, sleep=sleep) == "ok"
        assert fn.call_count == 2
        sleep.assert_called_once_with(0.5)

    def test_exhausted_retries_raise_original_error(self):
        sleep = MagicMock()
        error = TransportError("server error", status_code=500)
        fn = MagicMock(side_effect=error)

        with pytest.raises(TransportError) as excinfo:
            with_retry(fn, 2, jitter=0, sleep=sleep)

        assert excinfo.value is error
        assert fn.call_count == 3
        assert sleep.call_count == 2

    def test_zero_retries_means_single_attempt(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=TransportError("server error", status_code=500))

        with pytest.raises(TransportError):
            with_retry(fn, 0, sleep=sleep)

        fn.assert_called_once()
        sleep.assert_not_called()

    def test_non_retriable_status_raises_immediately(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=TransportError("bad request", status_code=400))

        with pytest.raises(TransportError, match="bad request"):
            with_retry(fn, 3, sleep=sleep)

        fn.assert_called_once()
        sleep.assert_not_called()

    def test_error_without_status_raises_immediately(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=KeyError("choices"))

        with pytest.raises(KeyError):
            with_retry(fn, 3, sleep=sleep)

        fn.assert_called_once()

    def test_backoff_doubles_and_is_capped(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=TransportError("down", status_code=503))

        with pytest.raises(TransportError):
            with_retry(fn, 4, base_delay=0.5, max_delay=1.0, jitter=0, sleep=sleep)

        delays = [c.args[0] for c in sleep.call_args_list]
        assert delays == [0.5, 1.0, 1.0, 1.0]
        assert delays == sorted(delays)

    @patch("maori_bench.retry.random.random", return_value=0.999)
    def test_jitter_is_bounded(self, _mock_random):
        sleep = MagicMock()
        fn = MagicMock(side_effect=[TransportError("busy", status_code=429), "ok"])

        with_retry(fn, 1, base_delay=0.5, jitter=0.2, sleep=sleep)

        wait = sleep.call_args.args[0]
        assert 0.5 <= wait < 0.7

    def test_negative_retries_rejected(self):
        fn = MagicMock()
        with pytest.raises(ValueError, match="retries must be at least 0"):
            with_retry(fn, -1)
        fn.assert_not_called()


class TestRetryWithConfig:
    @patch("maori_bench.retry.time.sleep")
    def test_uses_config_values(self, mock_sleep):
        config = RetryConfig(retries=1, base_delay_seconds=0.25, max_delay_seconds=1.0, jitter_seconds=0.0)
        fn = MagicMock(side_effect=TransportError("server error", status_code=500))

        with pytest.raises(TransportError):
            retry_with_config(fn, config)

        assert fn.call_count == 2
        mock_sleep.assert_called_once_with(0.25)

from unittest.mock import MagicMock

from docbatch.pipeline.retry import exponential_backoff, linear_backoff, retry_call


class TestBackoff:
    def test_linear(self) -> None:
        backoff = linear_backoff(1.0)
        assert [backoff(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]

    def test_exponential(self) -> None:
        backoff = exponential_backoff(0.5)
        assert [backoff(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


class TestRetryCall:
    def test_returns_value_on_first_success(self) -> None:
        sleep = MagicMock()

        outcome = retry_call(lambda: 42, max_attempts=3, backoff=linear_backoff(1), sleep=sleep)

        assert outcome.ok
        assert outcome.value == 42
        assert outcome.attempts == 1
        sleep.assert_not_called()

    def test_retries_until_success(self) -> None:
        operation = MagicMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "done"])
        sleep = MagicMock()

        outcome = retry_call(operation, max_attempts=3, backoff=linear_backoff(1), sleep=sleep)

        assert outcome.value == "done"
        assert outcome.attempts == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_returns_last_error_when_exhausted(self) -> None:
        operation = MagicMock(side_effect=[RuntimeError("first"), RuntimeError("last")])

        outcome = retry_call(
            operation, max_attempts=2, backoff=linear_backoff(1), sleep=MagicMock()
        )

        assert not outcome.ok
        assert str(outcome.error) == "last"
        assert outcome.attempts == 2

    def test_stops_on_non_retryable_error(self) -> None:
        operation = MagicMock(side_effect=PermissionError("denied"))
        sleep = MagicMock()

        outcome = retry_call(
            operation,
            max_attempts=5,
            backoff=linear_backoff(1),
            should_retry=lambda exc: not isinstance(exc, PermissionError),
            sleep=sleep,
        )

        assert outcome.attempts == 1
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_zero_attempts_still_tries_once(self) -> None:
        operation = MagicMock(return_value="ok")

        outcome = retry_call(operation, max_attempts=0, backoff=linear_backoff(1))

        assert outcome.value == "ok"
        operation.assert_called_once()

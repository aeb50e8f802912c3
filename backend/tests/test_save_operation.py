"""Tests for the save runner."""

import asyncio

import pytest

from designer.config import EditorConfig
from designer.editor import SaveOperation
from designer.workflow import ConfigurationInvalidError


class _Flaky:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures, value="saved"):
        self.failures = failures
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"attempt {self.calls} failed")
        return self.value


class TestExecute:
    def test_success_sets_data_and_fires_callbacks(self):
        events = []
        op = SaveOperation(
            lambda: 42,
            on_success=lambda v: events.append(("success", v)),
            on_complete=lambda: events.append(("complete",)),
        )
        assert asyncio.run(op.execute()) == 42
        assert op.data == 42
        assert op.error is None
        assert op.loading is False
        assert events == [("success", 42), ("complete",)]

    def test_async_work_is_awaited(self):
        async def work():
            await asyncio.sleep(0)
            return "done"

        assert asyncio.run(SaveOperation(work).execute()) == "done"

    def test_loading_is_true_while_running(self):
        seen = []
        op = None

        def work():
            seen.append(op.loading)
            return True

        op = SaveOperation(work)
        asyncio.run(op.execute())
        assert seen == [True]
        assert op.loading is False

    def test_retries_until_success(self):
        work = _Flaky(failures=2)
        op = SaveOperation(work, max_retries=3, retry_delay=0)
        assert asyncio.run(op.execute()) == "saved"
        assert work.calls == 3
        assert op.attempts == 3
        assert op.error is None

    def test_gives_up_after_max_retries(self):
        errors = []
        work = _Flaky(failures=10)
        op = SaveOperation(work, max_retries=2, retry_delay=0, on_error=errors.append)

        assert asyncio.run(op.execute()) is None
        assert work.calls == 3
        assert isinstance(op.error, RuntimeError)
        assert errors == [op.error]

    def test_structural_errors_are_not_retried(self):
        calls = []

        def work():
            calls.append(1)
            raise ConfigurationInvalidError("n1", [])

        op = SaveOperation(work, max_retries=5, retry_delay=0)
        asyncio.run(op.execute())
        assert len(calls) == 1
        assert isinstance(op.error, ConfigurationInvalidError)

    def test_failure_is_logged(self, caplog):
        op = SaveOperation(_Flaky(failures=1), max_retries=0)
        asyncio.run(op.execute())
        assert "Save attempt 1/1 failed" in caplog.text

    def test_rejects_negative_policy(self):
        with pytest.raises(ValueError):
            SaveOperation(lambda: None, max_retries=-1)
        with pytest.raises(ValueError):
            SaveOperation(lambda: None, retry_delay=-0.5)


class TestLifecycle:
    def test_manual_retry_after_failure(self):
        work = _Flaky(failures=1)
        op = SaveOperation(work)
        assert asyncio.run(op.execute()) is None
        assert asyncio.run(op.retry()) == "saved"
        assert op.error is None

    def test_reset_clears_state(self):
        op = SaveOperation(_Flaky(failures=1))
        asyncio.run(op.execute())
        op.reset()
        assert (op.loading, op.error, op.data, op.attempts) == (False, None, None, 0)

    def test_disposed_operation_does_nothing(self):
        calls = []
        op = SaveOperation(lambda: calls.append(1), on_complete=lambda: calls.append("c"))
        op.dispose()
        assert asyncio.run(op.execute()) is None
        assert calls == []
        assert not op.active

    def test_dispose_during_work_suppresses_callbacks(self):
        events = []
        op = None

        def work():
            op.dispose()
            return "late"

        op = SaveOperation(
            work,
            on_success=lambda v: events.append("success"),
            on_complete=lambda: events.append("complete"),
        )
        asyncio.run(op.execute())
        assert events == []

    def test_dispose_abandons_pending_retries(self):
        flaky = _Flaky(failures=5)
        op = None

        def work():
            op.dispose()
            return flaky()

        op = SaveOperation(work, max_retries=5, retry_delay=0)
        asyncio.run(op.execute())
        assert flaky.calls == 1

    def test_from_config(self):
        config = EditorConfig(save_max_retries=2, save_retry_delay_seconds=0.5)
        op = SaveOperation.from_config(lambda: None, config)
        assert op.max_retries == 2
        assert op.retry_delay == 0.5

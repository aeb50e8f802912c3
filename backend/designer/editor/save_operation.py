"""
Save Operation — runs a save with loading/error state and retries.

The detail editor hands a zero-argument unit of work (sync or async)
to a ``SaveOperation`` and renders its ``loading`` / ``error`` state.
Failed attempts are retried a bounded number of times with a fixed
delay. Once the owning view calls ``dispose()`` no callback fires
again and pending retries are abandoned.

Structural graph errors (duplicate id, invalid configuration, ...)
are deterministic and are never retried.
"""

from __future__ import annotations

import asyncio
import inspect
from logging import getLogger
from typing import Any, Awaitable, Callable, Generic, Optional, Tuple, Type, TypeVar, Union

from designer.config.editor_config import EditorConfig
from designer.workflow.errors import WorkflowGraphError

logger = getLogger(__name__)

T = TypeVar("T")

UnitOfWork = Callable[[], Union[T, Awaitable[T]]]


class SaveOperation(Generic[T]):
    """Stateful runner for one save action."""

    def __init__(
        self,
        work: UnitOfWork,
        *,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        on_success: Optional[Callable[[T], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None,
        on_complete: Optional[Callable[[], Any]] = None,
        no_retry: Tuple[Type[BaseException], ...] = (WorkflowGraphError,),
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        self._work = work
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.on_success = on_success
        self.on_error = on_error
        self.on_complete = on_complete
        self.no_retry = no_retry

        self.loading = False
        self.error: Optional[BaseException] = None
        self.data: Optional[T] = None
        self.attempts = 0
        self._active = True

    @classmethod
    def from_config(
        cls, work: UnitOfWork, config: Optional[EditorConfig] = None, **kwargs: Any,
    ) -> "SaveOperation":
        """Build an operation using the configured retry policy."""
        config = config or EditorConfig.get_default_instance()
        return cls(
            work,
            max_retries=config.save_max_retries,
            retry_delay=config.save_retry_delay_seconds,
            **kwargs,
        )

    @property
    def active(self) -> bool:
        return self._active

    # ── Lifecycle ──

    async def execute(self) -> Optional[T]:
        """Run the unit of work, retrying on failure.

        Returns the result, or None when every attempt failed or the
        operation was disposed.
        """
        if not self._active:
            logger.debug("execute() on a disposed save operation ignored")
            return None

        self.loading = True
        self.error = None
        self.attempts = 0
        last_error: Optional[BaseException] = None
        try:
            total = self.max_retries + 1
            for attempt in range(1, total + 1):
                if not self._active:
                    return None
                self.attempts = attempt
                try:
                    value = self._work()
                    if inspect.isawaitable(value):
                        value = await value
                except Exception as e:
                    last_error = e
                    logger.warning(f"Save attempt {attempt}/{total} failed: {e}")
                    if isinstance(e, self.no_retry):
                        break
                    if attempt < total and self._active:
                        await asyncio.sleep(self.retry_delay)
                    continue

                self.data = value
                self._notify(self.on_success, value)
                return value

            self.error = last_error
            if last_error is not None:
                self._notify(self.on_error, last_error)
            return None
        finally:
            self.loading = False
            self._notify(self.on_complete)

    async def retry(self) -> Optional[T]:
        """Manually re-run after a failure."""
        return await self.execute()

    def reset(self) -> None:
        self.loading = False
        self.error = None
        self.data = None
        self.attempts = 0

    def dispose(self) -> None:
        """Mark the owning view as gone; no callback fires after this."""
        self._active = False

    # ── Internals ──

    def _notify(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None or not self._active:
            return
        callback(*args)

"""
Editor Action Channel — save/cancel requests from host to detail editor.

The host owns the dialog buttons; the open detail editor owns the
form state. The host creates a channel and passes it to the editor,
which registers its handlers and disposes them when it closes.
"""

from __future__ import annotations

import threading
from logging import getLogger
from typing import Any, Callable, Optional

logger = getLogger(__name__)

Handler = Callable[[], Any]


class _Registration:
    __slots__ = ("on_save", "on_cancel")

    def __init__(self, on_save: Handler, on_cancel: Optional[Handler]) -> None:
        self.on_save = on_save
        self.on_cancel = on_cancel


class EditorActionChannel:
    """One registration slot, explicitly shared by host and editor."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registration: Optional[_Registration] = None

    @property
    def is_registered(self) -> bool:
        with self._lock:
            return self._registration is not None

    def register(
        self, on_save: Handler, on_cancel: Optional[Handler] = None,
    ) -> Callable[[], None]:
        """Install the editor's handlers; returns a disposer.

        A newer registration replaces the old one. Calling a stale
        disposer does not remove the newer handlers.
        """
        registration = _Registration(on_save, on_cancel)
        with self._lock:
            if self._registration is not None:
                logger.debug("Replacing existing editor action registration")
            self._registration = registration

        def dispose() -> None:
            with self._lock:
                if self._registration is registration:
                    self._registration = None

        return dispose

    def request_save(self) -> bool:
        """Ask the editor to save. False when no editor is registered."""
        with self._lock:
            registration = self._registration
        if registration is None:
            return False
        registration.on_save()
        return True

    def request_cancel(self) -> bool:
        with self._lock:
            registration = self._registration
        if registration is None or registration.on_cancel is None:
            return False
        registration.on_cancel()
        return True

"""Callback registration for worker and pool notifications."""

import threading
from collections.abc import Callable
from typing import Generic, ParamSpec, final

import structlog
from structlog.typing import FilteringBoundLogger

P = ParamSpec("P")


@final
class EventHook(Generic[P]):
    """A named list of callbacks invoked on emit.

    Subscribing the same callback twice registers it twice; unsubscribe
    removes one registration. Emit delivers to a snapshot of the
    subscribers taken at call time, on the caller's thread. A callback that
    raises is logged and does not prevent delivery to the others.

    Example:
        >>> hook: EventHook[[int]] = EventHook("tick")
        >>> hook.subscribe(print)
        >>> hook.emit(3)
        3
    """

    __slots__ = ("_callbacks", "_lock", "_logger", "name")

    def __init__(self, name: str, *, logger: FilteringBoundLogger | None = None) -> None:
        self.name = name
        self._callbacks: list[Callable[P, object]] = []
        self._lock = threading.Lock()
        self._logger = logger

    def subscribe(self, callback: Callable[P, object]) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def unsubscribe(self, callback: Callable[P, object]) -> None:
        """Remove one registration of callback; unknown callbacks are ignored."""
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def emit(self, *args: P.args, **kwargs: P.kwargs) -> None:
        with self._lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                _ = callback(*args, **kwargs)
            except Exception:  # noqa: BLE001
                logger = self._logger or structlog.get_logger("rfarm.events")
                logger.exception("event_callback_failed", hook=self.name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

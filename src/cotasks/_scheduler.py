#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import os
import sys

from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any, Final
from weakref import WeakSet

from . import _time
from ._context import Context, ContextState, InvalidTransitionError
from ._guard import ResourceGuard
from ._pool import ContextPool
from ._queue import ReadyQueue
from .meta import DEFAULT, DefaultType

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

    if sys.version_info >= (3, 9):
        from collections.abc import Callable
    else:
        from typing import Callable

    ErrorHandler = Callable[[Context, Exception], object]

_KEEP_PRIORITY_BY_DEFAULT: Final[bool] = bool(
    os.getenv("COTASKS_KEEP_PRIORITY", ""),
)

LOGGER: Final[Logger] = getLogger(__name__)


class Scheduler:
    """
    A cooperative scheduler that interleaves contexts in the current thread.

    It owns a :class:`ReadyQueue`, a :class:`ContextPool` of *capacity* idle
    workers and a set of canceled contexts. Separate instances share nothing.

    After its first turn, a context that suspends is put back into the queue
    with priority ``0``, so priorities only order the first turn. Pass
    ``keep_priority=True`` to requeue contexts with their original priority.

    Exceptions raised by contexts during :meth:`run` are passed to
    *error_handler* as ``error_handler(context, exc)``, or logged if it is
    :data:`None`.

    Example:
      >>> scheduler = Scheduler()
      >>> log = []
      >>> _ = scheduler.async_(lambda: log.append('B'), priority=1)
      >>> _ = scheduler.async_(lambda: log.append('A'), priority=10)
      >>> scheduler.run()
      >>> log
      ['A', 'B']
    """

    __slots__ = (
        "__weakref__",
        "_cancelled",
        "_error_handler",
        "_keep_priority",
        "_pool",
        "_ready",
        "_running",
    )

    def __new__(
        cls,
        /,
        capacity: int | DefaultType = DEFAULT,
        *,
        keep_priority: bool | DefaultType = DEFAULT,
        error_handler: ErrorHandler | None = None,
    ) -> Self:
        """..."""

        if keep_priority is DEFAULT:
            keep_priority = _KEEP_PRIORITY_BY_DEFAULT

        self = object.__new__(cls)

        self._cancelled = WeakSet()
        self._error_handler = error_handler
        self._keep_priority = keep_priority
        self._pool = ContextPool(capacity)
        self._ready = ReadyQueue()
        self._running = ResourceGuard("running")

        return self

    def __repr__(self, /) -> str:
        """..."""

        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        object_repr = f"{cls_repr}({self._pool.capacity!r})"

        if self._running:
            extra = f"running, pending={len(self._ready)}"
        else:
            extra = f"pending={len(self._ready)}"

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def async_(
        self,
        /,
        callback: Callable[[], Any],
        priority: int = 0,
    ) -> Context:
        """
        Schedule *callback* to be run by :meth:`run` and return its context.

        Nothing is executed until :meth:`run` is called. Higher *priority*
        contexts take their first turn earlier.
        """

        context = self._pool.try_acquire(callback, priority=priority)

        self._ready.insert(context, priority)

        return context

    def await_(self, /, callback: Callable[[], Any]) -> Any:
        """
        Run *callback* right away, bypassing the queue, and return its result.

        If the callback suspends, the suspended value is returned instead and
        the context is queued, so that :meth:`run` finishes it later. An
        exception raised by the callback propagates unchanged.
        """

        context = self._pool.try_acquire(callback)

        try:
            value = context.start()
        finally:
            if context.terminated:
                self._pool.try_release(context)
            elif context.suspended:
                self._ready.insert(context)

        return value

    def sleep(self, /, seconds: float, value: Any = None) -> None:
        """
        Same as :func:`cotasks.sleep`.
        """

        _time.sleep(seconds, value)

    def cancel(self, /, context: Context) -> None:
        """
        Make :meth:`run` skip *context* the next time it is dequeued.

        A context that is mid-turn is not interrupted. The skip happens at
        its next turn, and work done so far stands. Canceling a terminated
        context, or canceling twice, has no effect.
        """

        if not context.terminated:
            self._cancelled.add(context)

    def run(self, /) -> None:
        """
        Give turns to queued contexts until the queue is empty.

        Canceled contexts are closed without another turn. Contexts that
        terminate give their workers back to the pool, and those that suspend
        are put back into the queue. An exception raised by a context does not
        stop the loop (see *error_handler*).

        Raises:
          BusyResourceError:
            if the scheduler is already running.
          InvalidTransitionError:
            if a context that is running is dequeued (when :meth:`run` is
            called from a queued context that was started directly).
        """

        with self._running:
            ready = self._ready

            while ready:
                context = ready.extract()

                if context.state is ContextState.RUNNING:
                    msg = "cannot run a context that is running"
                    raise InvalidTransitionError(msg)

                if context in self._cancelled:
                    self._cancelled.discard(context)
                    self._skip(context)
                    continue

                try:
                    if context.state is ContextState.CREATED:
                        context.start()
                    elif context.state is ContextState.SUSPENDED:
                        context.resume()
                except Exception as exc:  # noqa: BLE001
                    self._pool.try_release(context)
                    self._report(context, exc)
                    continue

                if context.terminated:
                    self._pool.try_release(context)
                elif self._keep_priority:
                    ready.insert(context, context.priority)
                else:
                    ready.insert(context)

    def _skip(self, /, context: Context) -> None:
        try:
            context.close()
        except Exception as exc:  # noqa: BLE001
            self._report(context, exc)

        self._pool.try_release(context)

    def _report(self, /, context: Context, exc: Exception) -> None:
        handler = self._error_handler

        if handler is None:
            LOGGER.error("exception in context %r", context, exc_info=exc)
            return

        try:
            handler(context, exc)
        except Exception:
            LOGGER.exception("exception calling error handler for %r", context)

    @property
    def pool(self, /) -> ContextPool:
        """
        The pool of idle workers.
        """

        return self._pool

    @property
    def pending(self, /) -> int:
        """
        The number of contexts waiting in the queue.
        """

        return len(self._ready)

    @property
    def keep_priority(self, /) -> bool:
        """
        Whether suspended contexts are requeued with their original priority.
        """

        return self._keep_priority

    @property
    def error_handler(self, /) -> ErrorHandler | None:
        """
        The callable that receives exceptions raised during :meth:`run`.
        """

        return self._error_handler

#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import enum
import sys

from typing import TYPE_CHECKING, Any, Final

from greenlet import GreenletExit, greenlet

from .lowlevel import current_greenlet, main_greenlet

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

    if sys.version_info >= (3, 9):
        from collections.abc import Callable
    else:
        from typing import Callable

_SUSPENDED: Final[int] = 0
_RETURNED: Final[int] = 1
_RAISED: Final[int] = 2


class InvalidTransitionError(RuntimeError):
    """..."""


class ContextState(enum.Enum):
    """
    The lifecycle states of a :class:`Context`.

    ``CREATED -> RUNNING -> {SUSPENDED, TERMINATED}``, and
    ``SUSPENDED -> RUNNING`` on resumption. :attr:`TERMINATED` is final.
    """

    CREATED = "created"
    RUNNING = "running"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class _Worker(greenlet):
    # Each switch into an idle worker delivers a callback to run. Each outcome
    # is left in `outcome` for the parent, which is reassigned to whoever
    # switched in, so the same greenlet can serve any number of contexts.
    # Outcomes never live in frame locals, so an idle worker keeps nothing of
    # the tasks it has run.

    def __init__(self, /) -> None:
        super().__init__()

        self.context = None
        self.outcome = None

    def run(self, /, callback: Callable[[], Any]) -> None:
        while True:
            try:
                self.outcome = (_RETURNED, callback())
            except Exception as exc:  # noqa: BLE001
                self.outcome = (_RAISED, exc)

            del callback

            callback = self.parent.switch()


class Context:
    """
    A suspendable unit of work that wraps one callback.

    The callback runs on its own greenlet, so it can call :func:`suspend`
    (or :func:`~cotasks.sleep`) from any depth of its call stack. Control then
    returns to whoever called :meth:`start` or :meth:`resume`.

    Each context runs exactly one callback and is never restarted. The
    greenlet behind it is returned to a :class:`~cotasks.ContextPool` once the
    context terminates, and may serve later contexts.

    Example:
      >>> def task():
      ...     answer = suspend('question')
      ...     return answer * 2
      >>> context = Context(task)
      >>> context.start()
      'question'
      >>> context.resume(21)
      42
      >>> context.terminated
      True
    """

    __slots__ = (
        "__weakref__",
        "_callback",
        "_exception",
        "_priority",
        "_result",
        "_state",
        "_value",
        "_worker",
    )

    def __new__(
        cls,
        /,
        callback: Callable[[], Any],
        *,
        priority: int = 0,
    ) -> Self:
        """..."""

        return cls._bind(callback, _Worker(), priority)

    @classmethod
    def _bind(
        cls,
        /,
        callback: Callable[[], Any],
        worker: _Worker,
        priority: int,
    ) -> Self:
        self = object.__new__(cls)

        self._callback = callback
        self._exception = None
        self._priority = priority
        self._result = None
        self._state = ContextState.CREATED
        self._value = None
        self._worker = worker

        return self

    def __repr__(self, /) -> str:
        """..."""

        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        object_repr = f"{cls_repr}({self._callback!r})"

        extra = self._state.value

        if self._priority:
            extra = f"{extra}, priority={self._priority}"

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def start(self, /) -> Any:
        """
        Run the callback until it returns, suspends or raises.

        Returns the suspended value or the return value. An exception raised
        by the callback is recorded in :attr:`exception` and re-raised as is.

        Raises:
          InvalidTransitionError:
            if the context has already been started.
        """

        if self._state is not ContextState.CREATED:
            msg = f"cannot start a context that is {self._state.value}"
            raise InvalidTransitionError(msg)

        return self._switch(self._callback)

    def resume(self, /, value: Any = None) -> Any:
        """
        Continue the callback from its suspension point, where *value* becomes
        the result of the pending :func:`suspend` call.

        Has the same outcomes as :meth:`start`.

        Raises:
          InvalidTransitionError:
            if the context is not suspended.
        """

        if self._state is not ContextState.SUSPENDED:
            msg = f"cannot resume a context that is {self._state.value}"
            raise InvalidTransitionError(msg)

        return self._switch(value)

    def close(self, /) -> None:
        """
        Terminate the context without running the rest of its callback.

        A context that has not been started is just marked as terminated. A
        suspended one gets :exc:`~greenlet.GreenletExit` thrown in at its
        suspension point, so that its ``finally`` clauses and context managers
        are run, similar to :meth:`generator.close`. Closing a terminated
        context does nothing.

        Raises:
          InvalidTransitionError:
            if the context is running.
          RuntimeError:
            if the callback suspended again instead of exiting.
        """

        state = self._state

        if state is ContextState.TERMINATED:
            return

        if state is ContextState.RUNNING:
            msg = "cannot close a context that is running"
            raise InvalidTransitionError(msg)

        if state is ContextState.CREATED:
            self._state = ContextState.TERMINATED
            return

        self._switch(throw=True)

        if self._state is ContextState.SUSPENDED:
            # the greenlet is left for the garbage collector to kill
            self._state = ContextState.TERMINATED
            self._worker = None

            msg = "context ignored GreenletExit"
            raise RuntimeError(msg)

    def _switch(self, /, value: Any = None, *, throw: bool = False) -> Any:
        worker = self._worker

        worker.context = self
        worker.parent = current_greenlet()

        self._state = ContextState.RUNNING

        try:
            if throw:
                worker.throw(GreenletExit)
            else:
                worker.switch(value)
        except BaseException:
            # only exceptions that kill the worker get here
            self._state = ContextState.TERMINATED
            self._worker = None
            raise
        finally:
            outcome, worker.outcome = worker.outcome, None
            worker.context = None

            if not worker.dead:
                worker.parent = main_greenlet()

        if worker.dead:  # exited via GreenletExit
            self._state = ContextState.TERMINATED
            self._worker = None

            return None

        kind, value = outcome

        if kind == _SUSPENDED:
            self._state = ContextState.SUSPENDED
            self._value = value

            return value

        self._state = ContextState.TERMINATED

        if kind == _RAISED:
            self._exception = value

            try:
                raise value
            finally:
                del value, outcome  # break reference cycles

        self._result = value

        return value

    def _detach(self, /) -> _Worker | None:
        worker = self._worker

        self._worker = None

        if worker is not None and not worker.dead:
            return worker

        return None

    @property
    def callback(self, /) -> Callable[[], Any]:
        """
        The wrapped callback.
        """

        return self._callback

    @property
    def priority(self, /) -> int:
        """
        The priority the context was first scheduled with.
        """

        return self._priority

    @property
    def state(self, /) -> ContextState:
        """
        The current lifecycle state.
        """

        return self._state

    @property
    def started(self, /) -> bool:
        """
        :data:`True` if the context has left the created state.
        """

        return self._state is not ContextState.CREATED

    @property
    def suspended(self, /) -> bool:
        """
        :data:`True` if the context is waiting to be resumed.
        """

        return self._state is ContextState.SUSPENDED

    @property
    def terminated(self, /) -> bool:
        """
        :data:`True` if the context has finished, failed or been closed.
        """

        return self._state is ContextState.TERMINATED

    @property
    def value(self, /) -> Any:
        """
        The value passed to the last :func:`suspend` call.
        """

        return self._value

    @property
    def result(self, /) -> Any:
        """
        The value returned by the callback, or :data:`None`.
        """

        return self._result

    @property
    def exception(self, /) -> BaseException | None:
        """
        The exception raised by the callback, or :data:`None`.
        """

        return self._exception


def current_context() -> Context | None:
    """
    Return the context that is currently running, or :data:`None` when called
    outside of any context.
    """

    worker = current_greenlet()

    if isinstance(worker, _Worker):
        return worker.context

    return None


def suspend(value: Any = None, /) -> Any:
    """
    Suspend the current context and give *value* to whoever started or
    resumed it.

    Returns the value passed to :meth:`Context.resume`.

    Raises:
      RuntimeError:
        if called outside of a running context.
    """

    worker = current_greenlet()

    if not isinstance(worker, _Worker) or worker.context is None:
        msg = "suspend() must be called from a running context"
        raise RuntimeError(msg)

    worker.outcome = (_SUSPENDED, value)

    return worker.parent.switch()

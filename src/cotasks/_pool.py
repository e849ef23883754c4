#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import os
import sys

from typing import TYPE_CHECKING, Any, Final

from ._context import Context, InvalidTransitionError, _Worker
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

DEFAULT_CAPACITY: Final[int] = int(os.getenv("COTASKS_POOL_CAPACITY", "10"))


class ContextPool:
    """
    A bounded last-in-first-out cache of idle workers.

    Terminated contexts give their greenlets back via :meth:`try_release`,
    and :meth:`try_acquire` binds a cached greenlet to a new context instead
    of allocating another one. Greenlets above *capacity* are discarded.

    Example:
      >>> pool = ContextPool(1)
      >>> first = pool.try_acquire(lambda: 1)
      >>> first.start()
      1
      >>> pool.try_release(first)
      True
      >>> second = pool.try_acquire(lambda: 2)
      >>> pool.reused
      1
    """

    __slots__ = (
        "__weakref__",
        "_capacity",
        "_created",
        "_reused",
        "_workers",
    )

    def __new__(cls, /, capacity: int | DefaultType = DEFAULT) -> Self:
        """..."""

        if capacity is DEFAULT:
            capacity = DEFAULT_CAPACITY

        if capacity < 0:
            msg = "capacity must be >= 0"
            raise ValueError(msg)

        self = object.__new__(cls)

        self._capacity = capacity
        self._created = 0
        self._reused = 0
        self._workers = []

        return self

    def __getnewargs__(self, /) -> tuple[Any, ...]:
        """
        Returns arguments that can be used to create new instances with the
        same initial values.

        The current state does not affect the arguments.
        """

        return (self._capacity,)

    def __repr__(self, /) -> str:
        """..."""

        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        object_repr = f"{cls_repr}({self._capacity!r})"

        extra = (
            f"length={len(self._workers)},"
            f" created={self._created},"
            f" reused={self._reused}"
        )

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def __len__(self, /) -> int:
        """
        Returns the number of idle workers in the pool.
        """

        return len(self._workers)

    def try_acquire(
        self,
        /,
        callback: Callable[[], Any],
        *,
        priority: int = 0,
    ) -> Context:
        """
        Return a new context for *callback*, backed by a cached worker if
        there is one.
        """

        if self._workers:
            worker = self._workers.pop()

            self._reused += 1
        else:
            worker = _Worker()

            self._created += 1

        return Context._bind(callback, worker, priority)

    def try_release(self, /, context: Context) -> bool:
        """
        Give the worker of the terminated *context* back to the pool.

        Returns :data:`True` if the worker was cached, and :data:`False` if
        the pool is full or the worker cannot be reused (because it was
        killed or has already been released).

        Raises:
          InvalidTransitionError:
            if *context* has not terminated.
        """

        if not context.terminated:
            msg = f"cannot release a context that is {context.state.value}"
            raise InvalidTransitionError(msg)

        worker = context._detach()

        if worker is None or len(self._workers) >= self._capacity:
            return False

        self._workers.append(worker)

        return True

    def clear(self, /) -> None:
        """
        Drop all cached workers.
        """

        self._workers.clear()

    @property
    def capacity(self, /) -> int:
        """
        The maximum number of workers the pool can hold.
        """

        return self._capacity

    @property
    def created(self, /) -> int:
        """
        The number of workers allocated because the pool was empty.
        """

        return self._created

    @property
    def reused(self, /) -> int:
        """
        The number of contexts served by a cached worker.
        """

        return self._reused

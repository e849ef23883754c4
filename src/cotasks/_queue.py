#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from heapq import heappop, heappush
from itertools import count
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._context import Context

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


class QueueEmpty(Exception):
    """..."""


class ReadyQueue:
    """
    A priority queue of contexts awaiting a scheduler turn.

    Higher priorities are extracted first. Contexts with equal priorities are
    extracted in the order they were inserted.

    Example:
      >>> from cotasks import Context
      >>> low, high = Context(print), Context(print)
      >>> queue = ReadyQueue()
      >>> queue.insert(low, 1)
      >>> queue.insert(high, 10)
      >>> queue.extract() is high
      True
    """

    __slots__ = (
        "__weakref__",
        "_counter",
        "_data",
        "_members",
    )

    def __new__(cls, /) -> Self:
        """..."""

        self = object.__new__(cls)

        self._counter = count()
        self._data = []
        self._members = set()

        return self

    def __repr__(self, /) -> str:
        """..."""

        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        return f"<{cls_repr}() at {id(self):#x} [length={len(self._data)}]>"

    def __bool__(self, /) -> bool:
        """
        Returns :data:`True` if the queue is not empty.
        """

        return bool(self._data)

    def __len__(self, /) -> int:
        """
        Returns the number of contexts in the queue.
        """

        return len(self._data)

    def __contains__(self, /, context: Context) -> bool:
        return context in self._members

    def insert(self, /, context: Context, priority: int = 0) -> None:
        """
        Put *context* into the queue with *priority* (higher is more urgent).

        Raises:
          ValueError:
            if *context* is already in the queue.
        """

        if context in self._members:
            msg = "context is already in the queue"
            raise ValueError(msg)

        # the counter breaks ties before contexts would have to be compared
        heappush(self._data, (-priority, next(self._counter), context))

        self._members.add(context)

    def extract(self, /) -> Context:
        """
        Remove and return the context with the highest priority.

        Raises:
          QueueEmpty:
            if the queue is empty.
        """

        try:
            _, _, context = heappop(self._data)
        except IndexError:
            msg = "extract from an empty queue"
            raise QueueEmpty(msg) from None

        self._members.discard(context)

        return context

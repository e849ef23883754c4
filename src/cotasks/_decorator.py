#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from wrapt import decorator

if TYPE_CHECKING:
    from ._scheduler import Scheduler

    if sys.version_info >= (3, 9):
        from collections.abc import Callable
    else:
        from typing import Callable

_CallableT = TypeVar("_CallableT", bound="Callable[..., Any]")


def scheduled(
    scheduler: Scheduler,
    /,
    *,
    priority: int = 0,
) -> Callable[[_CallableT], _CallableT]:
    """
    Make calls to the decorated function schedule it on *scheduler* instead
    of running it.

    Each call passes the bound arguments to :meth:`Scheduler.async_` with
    *priority* and returns the resulting :class:`Context`. Works with plain
    functions as well as with methods.

    Example:
      >>> from cotasks import Scheduler
      >>> scheduler = Scheduler()
      >>> @scheduled(scheduler, priority=5)
      ... def greet(name):
      ...     return f'hello, {name}'
      >>> context = greet('world')
      >>> scheduler.run()
      >>> context.result
      'hello, world'
    """

    @decorator
    def wrapper(wrapped, instance, args, kwargs):
        return scheduler.async_(partial(wrapped, *args, **kwargs), priority)

    return wrapper

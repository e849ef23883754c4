#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
Cooperative task scheduling in a single thread

This package lets independently written callbacks run interleaved inside
one thread without any async syntax. Every task gets its own greenlet, so it
can suspend itself from anywhere in its call stack:

* ``Scheduler.async_()`` queues a task by priority (fire-and-forget)
* ``Scheduler.await_()`` runs a task right away and returns its result
* ``Scheduler.run()`` drives queued tasks to completion
* ``Scheduler.cancel()`` skips a task that has not had its turn yet
* ``suspend()`` and ``sleep()`` yield control from inside a task

Finished tasks give their greenlets back to a bounded pool, so that short
tasks do not allocate a new stack each time.
"""

from __future__ import annotations

__author__: str = "Ilya Egorov <0x42005e1f@gmail.com>"
__version__: str = "0.1.0"

from . import (  # noqa: F401
    lowlevel,
    meta,
)
from ._context import (
    Context as Context,
    ContextState as ContextState,
    InvalidTransitionError as InvalidTransitionError,
    current_context as current_context,
    suspend as suspend,
)
from ._decorator import (
    scheduled as scheduled,
)
from ._guard import (
    BusyResourceError as BusyResourceError,
    ResourceGuard as ResourceGuard,
)
from ._pool import (
    ContextPool as ContextPool,
)
from ._queue import (
    QueueEmpty as QueueEmpty,
    ReadyQueue as ReadyQueue,
)
from ._scheduler import (
    Scheduler as Scheduler,
)
from ._time import (
    sleep as sleep,
)

# prepare for external use
meta.export(globals())

#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

from math import isnan
from typing import Any

from ._context import current_context, suspend
from .lowlevel import clock


def sleep(seconds: float, /, value: Any = None) -> None:
    """
    Suspend the current context, passing *value* on each suspension, until
    at least *seconds* have passed on :func:`cotasks.lowlevel.clock`.

    This is a busy wait: no timer wakes the context up. It is resumed
    whenever its driver (usually :meth:`Scheduler.run`) gets to it, checks the
    deadline, and suspends again if it has not passed. ``sleep(0)`` returns
    immediately.

    Raises:
      ValueError:
        if *seconds* is negative or NaN.
      RuntimeError:
        if called outside of a running context.
    """

    if isnan(seconds):
        msg = "seconds must be a number"
        raise ValueError(msg)

    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    if current_context() is None:
        msg = "sleep() must be called from a running context"
        raise RuntimeError(msg)

    deadline = clock() + seconds

    while clock() < deadline:
        suspend(value)

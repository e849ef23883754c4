#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import platform
import sys


def clock() -> float:
    """
    Return the value of the monotonic clock used for deadlines, in
    fractional seconds.
    """

    global clock

    if sys.version_info >= (3, 13) or platform.system() != "Windows":
        from time import monotonic as clock
    else:  # see python/cpython#88494
        from time import perf_counter as clock

    return clock()

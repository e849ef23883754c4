#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from greenlet import greenlet


def current_greenlet() -> greenlet:
    """
    Return the greenlet that is currently running in this thread.
    """

    global current_greenlet

    from greenlet import getcurrent as current_greenlet

    return current_greenlet()


def main_greenlet() -> greenlet:
    """
    Return the root greenlet of this thread, the one that every parent chain
    ends at.
    """

    greenlet = current_greenlet()

    while greenlet.parent is not None:
        greenlet = greenlet.parent

    return greenlet

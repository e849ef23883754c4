#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
Low-level building blocks of the scheduler: access to the greenlets that
back execution contexts and the clock used for cooperative sleeping.
"""

from ._greenlets import (
    current_greenlet as current_greenlet,
    main_greenlet as main_greenlet,
)
from ._time import (
    clock as clock,
)

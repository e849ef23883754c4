#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
This package contains the metaprogramming helpers the library relies on:
marker singletons for "not passed" arguments and the export machinery that
makes private implementation modules look like the public package.
"""

from ._exports import (
    export as export,
)
from ._markers import (
    DEFAULT as DEFAULT,
    DefaultType as DefaultType,
)

#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2024 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from typing import TYPE_CHECKING

from .meta import DEFAULT, DefaultType

if TYPE_CHECKING:
    from types import TracebackType

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


class BusyResourceError(RuntimeError):
    """..."""


class ResourceGuard:
    """
    A non-reentrant guard that detects overlapping use of a resource.

    Entering the guard while it is already entered raises
    :exc:`BusyResourceError` instead of blocking, since blocking would
    deadlock a single-threaded program.
    """

    __slots__ = (
        "__weakref__",
        "_action",
        "_busy",
    )

    def __new__(cls, /, action: str | DefaultType = DEFAULT) -> Self:
        """..."""

        if action is DEFAULT:
            action = "using"

        self = object.__new__(cls)

        self._action = action
        self._busy = False

        return self

    def __repr__(self, /) -> str:
        """..."""

        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        object_repr = f"{cls_repr}({self._action!r})"

        if self._busy:
            extra = "locked"
        else:
            extra = "unlocked"

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def __bool__(self, /) -> bool:
        """
        Returns :data:`True` if the resource guard is in use.

        Example:
            >>> running = ResourceGuard('running')
            >>> bool(running)
            False
            >>> with running:
            ...     bool(running)
            True
        """

        return self._busy

    def __enter__(self, /) -> Self:
        if self._busy:
            msg = f"another task is already {self._action} this resource"
            raise BusyResourceError(msg)

        self._busy = True

        return self

    def __exit__(
        self,
        /,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self._busy = False

    @property
    def action(self, /) -> str:
        """
        The action to guard against.
        """

        return self._action

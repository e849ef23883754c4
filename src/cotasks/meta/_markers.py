#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import enum
import sys

from inspect import ismemberdescriptor
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Final, NoReturn

if sys.version_info >= (3, 11):  # `EnumMeta` has been renamed to `EnumType`
    from enum import EnumType
else:
    from enum import EnumMeta as EnumType

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Literal, Never
    else:
        from typing_extensions import Literal, Never

if sys.version_info >= (3, 11):
    from typing import final
else:
    from typing_extensions import final

# Markers are enum members so that type checkers treat them as singletons
# and can narrow `param is DEFAULT` checks (see PEP 484, "Support for
# singleton types in unions").


class _SingletonMeta(EnumType):
    # to allow `type(SINGLETON)() is SINGLETON`
    def __call__(cls, /, *args, **kwargs):
        if len(cls) != 1 or args or kwargs:
            return super().__call__(*args, **kwargs)

        return super().__call__(next(iter(cls)).value)


class _SingletonEnum(enum.Enum, metaclass=_SingletonMeta):
    # prohibits setting attributes that are not declared via slots

    def __setattr__(self, /, name: str, value: object) -> None:
        if name.startswith("_") and name.endswith("_"):  # used by `enum.Enum`
            super().__setattr__(name, value)
            return

        cls = self.__class__

        if ismemberdescriptor(getattr(cls, name, None)):
            super().__setattr__(name, value)
            return

        msg = f"{cls.__qualname__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __repr__(self, /) -> str:
        return f"{self.__class__.__module__}.{self._name_}"

    def __str__(self, /) -> str:  # overridden by `enum.Enum`
        return f"{self.__class__.__module__}.{self._name_}"


def _forbid_subclassing(cls: type, /) -> NoReturn:
    cls_repr = f"{cls.__module__}.{cls.__qualname__}"

    msg = f"type '{cls_repr}' is not an acceptable base type"
    raise TypeError(msg)


@final
class DefaultType(_SingletonEnum):
    """
    A singleton class for :data:`DEFAULT`; mimics :data:`~types.NoneType`.
    """

    DEFAULT = object()

    def __init_subclass__(cls, /, **kwargs: Never) -> NoReturn:
        _forbid_subclassing(__class__)

    def __bool__(self, /) -> Literal[False]:
        return False


DEFAULT: Final[Literal[DefaultType.DEFAULT]] = DefaultType.DEFAULT

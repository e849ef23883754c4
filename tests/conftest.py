#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

import importlib

from collections import defaultdict
from functools import partial
from itertools import chain
from pathlib import Path

import pytest

import cotasks


@pytest.fixture
def scheduler():
    return cotasks.Scheduler()


@pytest.fixture
def errors():
    return []


@pytest.fixture
def reporting_scheduler(errors):
    def _error_handler(context, exc):
        errors.append((context, exc))

    return cotasks.Scheduler(error_handler=_error_handler)


@pytest.fixture
def reload_module(monkeypatch):
    reloaded = []

    def _reload(module):
        reloaded.append(module)

        return importlib.reload(module)

    yield _reload

    # environment defaults are read at import
    monkeypatch.undo()

    for module in reversed(reloaded):
        importlib.reload(module)


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "timing: mark test as depending on the monotonic clock",
    )


def pytest_collection_modifyitems(config, items):
    # leaves first, so that a broken building block fails before its users
    directory = Path(__file__).parent
    ordered_tests = defaultdict(
        partial(defaultdict, list),
        {
            "cotasks.meta.test_markers": defaultdict(list),
            "cotasks.meta.test_exports": defaultdict(list),
            "cotasks.lowlevel.test_greenlets": defaultdict(list),
            "cotasks.lowlevel.test_time": defaultdict(list),
            "cotasks.test_guard": defaultdict(list),
            "cotasks.test_queue": defaultdict(list),
            "cotasks.test_context": defaultdict(list),
            "cotasks.test_pool": defaultdict(list),
            "cotasks.test_scheduler": defaultdict(list),
            "cotasks.test_time": defaultdict(list),
            "cotasks.test_decorator": defaultdict(list),
        },
    )

    for item in items:
        module_name = ".".join(item.path.relative_to(directory).parts)[:-3]
        ordered_tests[module_name][item.obj].append(item)

    items[:] = chain.from_iterable(
        chain.from_iterable(mapping.values())
        for mapping in ordered_tests.values()
    )

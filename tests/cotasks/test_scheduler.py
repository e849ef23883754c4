#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

import logging

import pytest

import cotasks
import cotasks._scheduler

from cotasks import ContextState, Scheduler, suspend


def test_base():
    scheduler = Scheduler()

    assert scheduler.pool.capacity == 10
    assert scheduler.pending == 0
    assert not scheduler.keep_priority
    assert scheduler.error_handler is None

    pkg = "cotasks"
    assert repr(scheduler).startswith(f"<{pkg}.Scheduler(10) at ")
    assert repr(scheduler).endswith("[pending=0]>")

    scheduler = Scheduler(3, keep_priority=True, error_handler=print)

    assert scheduler.pool.capacity == 3
    assert scheduler.keep_priority
    assert scheduler.error_handler is print


def test_async_runs_once(scheduler):
    counter = 0

    def increment():
        nonlocal counter
        counter += 1

    context = scheduler.async_(increment)

    assert counter == 0
    assert context.state is ContextState.CREATED
    assert scheduler.pending == 1

    scheduler.run()

    assert counter == 1
    assert context.terminated
    assert scheduler.pending == 0

    scheduler.run()

    assert counter == 1


def test_priority_order(scheduler):
    log = []

    scheduler.async_(lambda: log.append("A"), priority=10)
    scheduler.async_(lambda: log.append("B"), priority=1)
    scheduler.run()

    assert log == ["A", "B"]

    scheduler.async_(lambda: log.append("C"), priority=1)
    scheduler.async_(lambda: log.append("D"), priority=10)
    scheduler.async_(lambda: log.append("E"))
    scheduler.run()

    assert log == ["A", "B", "D", "C", "E"]


def test_await_returns_result(scheduler):
    assert scheduler.await_(lambda: 42) == 42
    assert scheduler.pending == 0
    assert len(scheduler.pool) == 1


def test_await_propagates_exception(scheduler):
    error = LookupError("missing")

    def task():
        raise error

    with pytest.raises(LookupError) as exc_info:
        scheduler.await_(task)

    assert exc_info.value is error
    assert len(scheduler.pool) == 1


def test_await_bypasses_queue(scheduler):
    log = []

    scheduler.async_(lambda: log.append("queued"), priority=100)

    assert scheduler.await_(lambda: log.append("awaited") or "result") == (
        "result"
    )
    assert log == ["awaited"]

    scheduler.run()

    assert log == ["awaited", "queued"]


def test_await_suspended(scheduler):
    log = []

    def task():
        log.append("first")
        suspend("paused")
        log.append("second")

    assert scheduler.await_(task) == "paused"
    assert log == ["first"]
    assert scheduler.pending == 1

    scheduler.run()

    assert log == ["first", "second"]
    assert scheduler.pending == 0


def test_await_inside_task(scheduler):
    log = []

    def inner():
        log.append("inner")
        return "inner result"

    def outer():
        log.append(scheduler.await_(inner))

    scheduler.async_(outer)
    scheduler.run()

    assert log == ["inner", "inner result"]


def test_interleaving(scheduler):
    log = []

    def task(name):
        for i in range(3):
            log.append(f"{name}{i}")
            suspend()

    scheduler.async_(lambda: task("a"))
    scheduler.async_(lambda: task("b"))
    scheduler.run()

    assert log == ["a0", "b0", "a1", "b1", "a2", "b2"]


def _two_turn_tasks(scheduler, log):
    def task(name):
        log.append(f"{name}1")
        suspend()
        log.append(f"{name}2")

    scheduler.async_(lambda: task("A"), priority=10)
    scheduler.async_(lambda: task("B"), priority=5)
    scheduler.async_(lambda: log.append("C"), priority=1)


def test_priority_only_orders_first_turn(scheduler):
    log = []

    _two_turn_tasks(scheduler, log)
    scheduler.run()

    assert log == ["A1", "B1", "C", "A2", "B2"]


def test_keep_priority():
    scheduler = Scheduler(keep_priority=True)
    log = []

    _two_turn_tasks(scheduler, log)
    scheduler.run()

    assert log == ["A1", "A2", "B1", "B2", "C"]


def test_cancel_before_start(scheduler):
    log = []

    context = scheduler.async_(lambda: log.append("side effect"))
    scheduler.cancel(context)
    scheduler.cancel(context)  # idempotent
    scheduler.run()

    assert log == []
    assert context.terminated
    assert scheduler.pending == 0
    assert len(scheduler.pool) == 1


def test_cancel_suspended(scheduler):
    log = []

    def task():
        try:
            log.append("before")
            suspend()
            log.append("after")
        finally:
            log.append("cleanup")

    context = scheduler.async_(task)
    scheduler.async_(lambda: scheduler.cancel(context))
    scheduler.run()

    assert log == ["before", "cleanup"]
    assert context.terminated


def test_cancel_during_own_turn(scheduler):
    log = []

    def task():
        scheduler.cancel(context)
        log.append("still running")
        suspend()
        log.append("never")

    context = scheduler.async_(task)
    scheduler.run()

    assert log == ["still running"]
    assert context.terminated


def test_cancel_terminated(scheduler):
    context = scheduler.async_(lambda: None)
    scheduler.run()

    scheduler.cancel(context)

    assert context.terminated
    assert scheduler.pending == 0


def test_cancel_leaves_others(scheduler):
    log = []

    canceled = scheduler.async_(lambda: log.append("canceled"), priority=5)
    scheduler.async_(lambda: log.append("kept"))
    scheduler.cancel(canceled)
    scheduler.run()

    assert log == ["kept"]


def test_errors_go_to_handler(reporting_scheduler, errors):
    log = []
    error = ValueError("boom")

    def fail():
        suspend()
        raise error

    failing = reporting_scheduler.async_(fail, priority=1)
    reporting_scheduler.async_(lambda: log.append("survivor"))
    reporting_scheduler.run()

    assert errors == [(failing, error)]
    assert log == ["survivor"]
    assert failing.terminated
    assert failing.exception is error


def test_errors_are_logged_by_default(scheduler, caplog):
    error = ValueError("boom")

    def fail():
        raise error

    context = scheduler.async_(fail)

    with caplog.at_level(logging.ERROR, logger="cotasks"):
        scheduler.run()

    (record,) = caplog.records

    assert record.levelno == logging.ERROR
    assert record.exc_info[1] is error
    assert repr(context) in record.getMessage()


def test_failing_error_handler_is_logged(caplog):
    def _error_handler(context, exc):
        raise RuntimeError("handler failed")

    scheduler = Scheduler(error_handler=_error_handler)
    log = []

    scheduler.async_(lambda: 1 / 0)
    scheduler.async_(lambda: log.append("next"))

    with caplog.at_level(logging.ERROR, logger="cotasks"):
        scheduler.run()

    assert log == ["next"]
    assert "error handler" in caplog.records[0].getMessage()
    assert isinstance(caplog.records[0].exc_info[1], RuntimeError)


def test_base_exception_escapes_run(scheduler):
    class _Fatal(BaseException):
        pass

    def fatal():
        raise _Fatal

    scheduler.async_(fatal)
    scheduler.async_(lambda: None)

    with pytest.raises(_Fatal):
        scheduler.run()

    assert scheduler.pending == 1

    scheduler.run()

    assert scheduler.pending == 0


def test_reentrant_run(reporting_scheduler, errors):
    reporting_scheduler.async_(reporting_scheduler.run)
    reporting_scheduler.run()

    ((_, exc),) = errors

    assert isinstance(exc, cotasks.BusyResourceError)


def test_run_from_directly_started_task(scheduler):
    context = scheduler.async_(scheduler.run)

    with pytest.raises(cotasks.InvalidTransitionError, match="running"):
        context.start()

    assert context.terminated
    assert isinstance(context.exception, cotasks.InvalidTransitionError)
    assert scheduler.pending == 0

    # the guard was released on the way out
    scheduler.async_(lambda: None)
    scheduler.run()

    assert scheduler.pending == 0


def test_keep_priority_from_environment(monkeypatch, reload_module):
    monkeypatch.setenv("COTASKS_KEEP_PRIORITY", "1")
    reload_module(cotasks._scheduler)

    assert Scheduler().keep_priority
    assert not Scheduler(keep_priority=False).keep_priority

    scheduler = Scheduler()
    log = []

    _two_turn_tasks(scheduler, log)
    scheduler.run()

    assert log == ["A1", "A2", "B1", "B2", "C"]

    monkeypatch.delenv("COTASKS_KEEP_PRIORITY")
    reload_module(cotasks._scheduler)

    assert not Scheduler().keep_priority


def test_pool_is_bounded():
    scheduler = Scheduler()

    for _ in range(15):
        scheduler.async_(lambda: None)

    scheduler.run()

    assert len(scheduler.pool) == 10
    assert scheduler.pool.created == 15
    assert scheduler.pool.reused == 0

    for _ in range(15):
        scheduler.async_(lambda: None)

    scheduler.run()

    assert len(scheduler.pool) == 10
    assert scheduler.pool.created == 20
    assert scheduler.pool.reused == 10


def test_sequential_tasks_reuse_one_worker(scheduler):
    for i in range(15):
        assert scheduler.await_(lambda i=i: i) == i

    assert len(scheduler.pool) == 1
    assert scheduler.pool.created == 1
    assert scheduler.pool.reused == 14


def test_custom_capacity():
    scheduler = Scheduler(2)

    for _ in range(5):
        scheduler.async_(lambda: None)

    scheduler.run()

    assert len(scheduler.pool) == 2


def test_schedulers_are_independent():
    first, second = Scheduler(), Scheduler()
    log = []

    context = first.async_(lambda: log.append("first"))
    second.async_(lambda: log.append("second"))
    second.cancel(context)  # not queued there

    assert first.pending == 1
    assert second.pending == 1

    second.run()

    assert log == ["second"]
    assert first.pending == 1

    first.run()

    assert log == ["second", "first"]

"""Tests du registre de tâches asynchrones par clé."""

from __future__ import annotations

import asyncio

import pytest

from dashboard.client.tasks import KeyedTaskRunner, SupersededError


async def _value_after(gate: asyncio.Event, value: str) -> str:
    await gate.wait()
    return value


@pytest.mark.asyncio
async def test_run_returns_result() -> None:
    runner = KeyedTaskRunner()
    gate = asyncio.Event()
    gate.set()
    assert await runner.run("k", _value_after(gate, "done")) == "done"
    assert runner.is_pending("k") is False


@pytest.mark.asyncio
async def test_newer_submission_supersedes_pending_one() -> None:
    runner = KeyedTaskRunner()
    slow_gate, fast_gate = asyncio.Event(), asyncio.Event()
    slow = asyncio.ensure_future(runner.run("weather", _value_after(slow_gate, "old")))
    await asyncio.sleep(0)
    fast = asyncio.ensure_future(runner.run("weather", _value_after(fast_gate, "new")))
    # la seconde soumission doit avoir eu lieu avant que la première ne puisse aboutir
    await asyncio.sleep(0)
    fast_gate.set()
    slow_gate.set()

    with pytest.raises(SupersededError):
        await slow
    assert await fast == "new"


@pytest.mark.asyncio
async def test_submit_cancels_previous_task() -> None:
    runner = KeyedTaskRunner()
    gate = asyncio.Event()
    old = runner.submit("save", _value_after(gate, "old"))
    new = runner.submit("save", _value_after(gate, "new"))
    gate.set()
    await runner.drain()
    assert old.cancelled()
    assert new.result() == "new"


@pytest.mark.asyncio
async def test_wait_does_not_cancel_pending_task() -> None:
    runner = KeyedTaskRunner()
    gate = asyncio.Event()
    task = runner.submit(("save", "alice"), _value_after(gate, "saved"))
    waiter = asyncio.ensure_future(runner.wait(("save", "alice")))
    await asyncio.sleep(0)
    assert not waiter.done()
    gate.set()
    await waiter
    assert task.result() == "saved"
    # rien en cours: retour immédiat
    await runner.wait(("save", "alice"))
    await runner.wait("unknown")


@pytest.mark.asyncio
async def test_distinct_keys_do_not_interfere() -> None:
    runner = KeyedTaskRunner()
    gate = asyncio.Event()
    a = runner.submit(("save", "alice"), _value_after(gate, "a"))
    b = runner.submit(("save", "bob"), _value_after(gate, "b"))
    assert runner.is_pending(("save", "alice"))
    gate.set()
    await runner.drain()
    assert (a.result(), b.result()) == ("a", "b")
    assert not runner.is_pending(("save", "alice"))


@pytest.mark.asyncio
async def test_failed_fire_and_forget_task_is_contained() -> None:
    runner = KeyedTaskRunner()

    async def boom() -> None:
        raise RuntimeError("save failed")

    task = runner.submit("save", boom())
    await runner.drain()
    assert isinstance(task.exception(), RuntimeError)


@pytest.mark.asyncio
async def test_cancel_all() -> None:
    runner = KeyedTaskRunner()
    task = runner.submit("k", asyncio.Event().wait())
    runner.cancel_all()
    await asyncio.sleep(0)
    assert task.cancelled()
    assert runner.is_pending("k") is False

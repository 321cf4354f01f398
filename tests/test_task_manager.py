import asyncio
import logging

import pytest

from aerogarden.utils.task_manager import TaskManager


@pytest.mark.asyncio
async def test_tracks_tasks_until_done():
    manager = TaskManager("test")
    release = asyncio.Event()

    async def work():
        await release.wait()
        return "done"

    task = manager.create_task(work(), name="work")
    assert len(manager) == 1

    release.set()
    await manager.wait_all()

    assert task.result() == "done"
    assert len(manager) == 0


@pytest.mark.asyncio
async def test_wait_all_includes_tasks_started_meanwhile():
    manager = TaskManager("test")
    finished = []

    async def child():
        await asyncio.sleep(0.01)
        finished.append("child")

    async def parent():
        await asyncio.sleep(0.01)
        manager.create_task(child(), name="child")
        finished.append("parent")

    manager.create_task(parent(), name="parent")
    await manager.wait_all()

    assert finished == ["parent", "child"]


@pytest.mark.asyncio
async def test_failed_task_is_logged(caplog):
    manager = TaskManager("test")

    async def broken():
        raise RuntimeError("remote exploded")

    with caplog.at_level(logging.ERROR):
        manager.create_task(broken(), name="broken")
        await manager.wait_all()
        await asyncio.sleep(0)

    assert "remote exploded" in caplog.text


@pytest.mark.asyncio
async def test_shutdown_cancels_and_blocks_new_tasks():
    manager = TaskManager("test")
    task = manager.create_task(asyncio.sleep(10), name="sleeper")

    await manager.shutdown()

    assert task.cancelled()
    assert len(manager) == 0

    coro = asyncio.sleep(0)
    with pytest.raises(RuntimeError):
        manager.create_task(coro, name="late")
    # the rejected coroutine was closed, so no "never awaited" warning
    assert coro.cr_frame is None

"""Tests for RequestScope."""

import asyncio

import pytest

from oeee_bridge.client.scope import RequestScope


def test_close_cancels_in_flight():
    async def main():
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(60)

        scope = RequestScope()
        task = scope.launch(slow())
        await started.wait()
        assert scope.in_flight == 1

        await scope.close()
        return task, scope

    task, scope = asyncio.run(main())
    assert task.cancelled()
    assert scope.in_flight == 0


def test_finished_tasks_leave_the_scope():
    async def main():
        scope = RequestScope()
        task = scope.launch(asyncio.sleep(0, result="ok"))
        result = await task
        await asyncio.sleep(0)
        return result, scope.in_flight

    assert asyncio.run(main()) == ("ok", 0)


def test_launch_after_close_raises():
    async def main():
        async with RequestScope() as scope:
            pass
        coro = asyncio.sleep(0)
        with pytest.raises(RuntimeError):
            scope.launch(coro)
        # closed by launch(), so no "never awaited" warning
        assert coro.cr_frame is None

    asyncio.run(main())

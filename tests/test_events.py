"""Tests for the event emitter and task scope"""
import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from cartsession.events import EventEmitter
from cartsession.scope import ScopeClosed, TaskScope


class TestEventEmitter:

    @pytest.mark.asyncio
    async def test_emit_calls_sync_and_async_handlers(self):
        emitter = EventEmitter("test")
        sync_handler = Mock()
        async_handler = AsyncMock()
        emitter.subscribe(sync_handler)
        emitter.subscribe(async_handler)

        await emitter.emit("payload")

        sync_handler.assert_called_once_with("payload")
        async_handler.assert_awaited_once_with("payload")

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        emitter = EventEmitter("test")
        emitter.subscribe(Mock(side_effect=RuntimeError("boom")))
        after = Mock()
        emitter.subscribe(after)

        await emitter.emit()

        after.assert_called_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        emitter = EventEmitter("test")
        handler = Mock()
        unsubscribe = emitter.subscribe(handler)

        unsubscribe()
        unsubscribe()
        await emitter.emit()

        handler.assert_not_called()
        assert len(emitter) == 0


class TestTaskScope:

    @pytest.mark.asyncio
    async def test_wait_runs_tasks_to_completion(self):
        scope = TaskScope()
        results = []

        async def work(value):
            await asyncio.sleep(0)
            results.append(value)

        scope.spawn(work(1))
        scope.spawn(work(2))
        await scope.wait()

        assert sorted(results) == [1, 2]
        assert len(scope) == 0

    @pytest.mark.asyncio
    async def test_close_cancels_pending_work(self):
        """A load that resolves after teardown is never applied."""
        scope = TaskScope()
        gate = asyncio.Event()
        applied = []

        async def slow_load():
            await gate.wait()
            applied.append(True)

        task = scope.spawn(slow_load())
        await asyncio.sleep(0)
        await scope.aclose()
        gate.set()
        await asyncio.sleep(0)

        assert task.cancelled()
        assert applied == []

    @pytest.mark.asyncio
    async def test_closed_scope_refuses_work(self):
        scope = TaskScope()
        await scope.aclose()

        async def work():
            return None

        with pytest.raises(ScopeClosed):
            scope.spawn(work())

    @pytest.mark.asyncio
    async def test_wait_does_not_raise_task_errors(self):
        scope = TaskScope()

        async def broken():
            raise RuntimeError("boom")

        scope.spawn(broken())
        await scope.wait()

        assert len(scope) == 0

"""Unit tests for the correlation bus.

Covers:
- Resolution by success reply, error reply, timeout and cancellation
- First-reply-wins for duplicate replies
- Discarding of unknown and late replies
- Independence of concurrent requests
"""

from __future__ import annotations

import asyncio
import itertools
import json

import pytest

from drawio_bridge.correlation import CorrelationBus
from drawio_bridge.errors import (
    RemoteExecutionError,
    RequestCancelledError,
    RequestTimeoutError,
)
from drawio_bridge.events import CommandRequested, EventDispatcher
from drawio_bridge.messages import InboundReply, OutboundCommand

# =============================================================================
# Helpers
# =============================================================================


class CommandRecorder:
    """Subscriber that records every outbound command."""

    def __init__(self) -> None:
        self.commands: list[OutboundCommand] = []

    async def __call__(self, command: OutboundCommand) -> None:
        self.commands.append(command)

    async def wait_for(self, count: int = 1) -> list[OutboundCommand]:
        async def wait() -> None:
            while len(self.commands) < count:
                await asyncio.sleep(0.001)

        await asyncio.wait_for(wait(), timeout=1.0)
        return self.commands


async def make_bus(timeout: float = 1.0, id_generator=None) -> tuple[CorrelationBus, CommandRecorder]:
    events = EventDispatcher()
    recorder = CommandRecorder()
    await events.subscribe(CommandRequested, recorder)
    bus = CorrelationBus(events, id_generator=id_generator, timeout=timeout)
    await bus.start()
    return bus, recorder


# =============================================================================
# Resolution paths
# =============================================================================


class TestRequestResolution:
    """Tests for the ways a request can be settled."""

    @pytest.mark.asyncio
    async def test_success_reply_resolves_with_payload(self) -> None:
        """A matching reply resolves the request with its payload."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(
            bus.request("add-rectangle", {"x": 100, "y": 100, "width": 200, "height": 100})
        )
        [command] = await recorder.wait_for()

        assert command.name == "add-rectangle"
        assert command.payload == {"x": 100, "y": 100, "width": 200, "height": 100}

        assert bus.on_reply(InboundReply(id=command.id, payload={"cellId": "abc123"})) is True
        assert await task == {"cellId": "abc123"}
        assert bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_error_reply_raises_remote_execution_error(self) -> None:
        """An error reply surfaces the error payload verbatim."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("delete-cell-by-id", {"cell_id": "nope"}))
        [command] = await recorder.wait_for()

        error = {"message": "cell not found", "code": 404}
        bus.on_reply(InboundReply(id=command.id, error=error))

        with pytest.raises(RemoteExecutionError) as exc_info:
            await task

        assert exc_info.value.error == error
        assert exc_info.value.request_id == command.id
        assert exc_info.value.command == "delete-cell-by-id"
        assert bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_null_payload_is_success(self) -> None:
        """A reply with neither payload nor error resolves to None."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("get-selected-cell"))
        [command] = await recorder.wait_for()
        bus.on_reply(InboundReply(id=command.id))

        assert await task is None

    @pytest.mark.asyncio
    async def test_timeout_raises_and_removes_entry(self) -> None:
        """No reply before the deadline raises RequestTimeoutError."""
        bus, recorder = await make_bus(timeout=0.05)

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(RequestTimeoutError) as exc_info:
            await bus.request("get-selected-cell")
        elapsed = loop.time() - started

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.timeout == 0.05
        assert exc_info.value.command == "get-selected-cell"
        assert 0.04 <= elapsed < 0.5
        assert bus.pending_count == 0
        assert exc_info.value.request_id not in bus.pending_ids()

    @pytest.mark.asyncio
    async def test_per_call_timeout_override(self) -> None:
        """An explicit timeout overrides the bus default."""
        bus, _ = await make_bus(timeout=10.0)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await bus.request("get-selected-cell", timeout=0.02)

        assert exc_info.value.timeout == 0.02

    @pytest.mark.asyncio
    async def test_cancel_fails_waiting_caller(self) -> None:
        """cancel() removes the entry and fails the caller."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("get-selected-cell"))
        [command] = await recorder.wait_for()

        assert bus.cancel(command.id, reason="caller gave up") is True

        with pytest.raises(RequestCancelledError) as exc_info:
            await task
        assert exc_info.value.reason == "caller gave up"

        # A late reply is now inert
        assert bus.on_reply(InboundReply(id=command.id, payload={})) is False
        assert bus.cancel(command.id) is False

    @pytest.mark.asyncio
    async def test_cancelled_task_removes_entry(self) -> None:
        """Cancelling the waiting task cleans up its pending entry."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("get-selected-cell"))
        [command] = await recorder.wait_for()
        assert bus.pending_ids() == [command.id]

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert bus.pending_count == 0
        assert bus.on_reply(InboundReply(id=command.id, payload={})) is False

    @pytest.mark.asyncio
    async def test_stop_cancels_all_pending(self) -> None:
        """stop() fails every pending request."""
        bus, recorder = await make_bus()

        tasks = [asyncio.create_task(bus.request(f"cmd-{i}")) for i in range(3)]
        await recorder.wait_for(3)

        await bus.stop()

        for task in tasks:
            with pytest.raises(RequestCancelledError):
                await task
        assert bus.pending_count == 0


# =============================================================================
# Duplicate, late and unknown replies
# =============================================================================


class TestReplyMatching:
    """Tests for first-reply-wins and discard behavior."""

    @pytest.mark.asyncio
    async def test_second_reply_is_inert(self) -> None:
        """Only the first reply for an id resolves the request."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("get-selected-cell"))
        [command] = await recorder.wait_for()

        assert bus.on_reply(InboundReply(id=command.id, payload={"from": "first"})) is True
        assert bus.on_reply(InboundReply(id=command.id, payload={"from": "second"})) is False
        assert bus.on_reply(InboundReply(id=command.id, error="late error")) is False

        assert await task == {"from": "first"}

    @pytest.mark.asyncio
    async def test_unknown_reply_does_not_affect_pending(self) -> None:
        """A reply for an unknown id leaves other requests untouched."""
        bus, recorder = await make_bus()

        task = asyncio.create_task(bus.request("get-selected-cell"))
        [command] = await recorder.wait_for()

        assert bus.on_reply(InboundReply(id="req_never_issued", payload={})) is False
        assert bus.pending_ids() == [command.id]
        assert not task.done()

        bus.on_reply(InboundReply(id=command.id, payload="ok"))
        assert await task == "ok"

    @pytest.mark.asyncio
    async def test_reply_after_timeout_is_discarded(self) -> None:
        """A reply arriving after the deadline is dropped."""
        bus, recorder = await make_bus(timeout=0.02)

        with pytest.raises(RequestTimeoutError):
            await bus.request("get-selected-cell")

        [command] = recorder.commands
        assert bus.on_reply(InboundReply(id=command.id, payload={})) is False

    @pytest.mark.asyncio
    async def test_reply_delivered_through_dispatcher(self) -> None:
        """Replies published as reply.received events resolve requests."""
        from drawio_bridge.events import ReplyReceived

        events = EventDispatcher()
        recorder = CommandRecorder()
        await events.subscribe(CommandRequested, recorder)
        bus = CorrelationBus(events, timeout=1.0)
        await bus.start()

        task = asyncio.create_task(bus.request("get-shape-categories"))
        [command] = await recorder.wait_for()
        await events.publish(ReplyReceived, InboundReply(id=command.id, payload=["general"]))

        assert await task == ["general"]

    @pytest.mark.asyncio
    async def test_reply_during_broadcast_resolves(self) -> None:
        """A reply delivered while the command is still being published wins."""
        events = EventDispatcher()
        bus = CorrelationBus(events, timeout=1.0)

        async def instant_reply(command: OutboundCommand) -> None:
            bus.on_reply(InboundReply(id=command.id, payload={"fast": True}))

        await events.subscribe(CommandRequested, instant_reply)

        assert await bus.request("get-selected-cell") == {"fast": True}
        assert bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_stalled_subscriber_does_not_extend_deadline(self) -> None:
        """The deadline counts from the call, even if publishing never returns."""
        events = EventDispatcher()
        bus = CorrelationBus(events, timeout=0.1)

        async def stalled(command: OutboundCommand) -> None:
            await asyncio.Event().wait()

        await events.subscribe(CommandRequested, stalled)

        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(RequestTimeoutError):
            await bus.request("get-selected-cell")

        assert loop.time() - started < 0.5
        assert bus.pending_count == 0


# =============================================================================
# Concurrency
# =============================================================================


class TestConcurrentRequests:
    """Tests for independent in-flight requests."""

    @pytest.mark.asyncio
    async def test_out_of_order_replies(self) -> None:
        """Replies may arrive in any order; each resolves its own request."""
        bus, recorder = await make_bus()

        tasks = [asyncio.create_task(bus.request("edit-cell", {"n": i})) for i in range(5)]
        commands = await recorder.wait_for(5)
        assert len({c.id for c in commands}) == 5

        for command in reversed(commands):
            bus.on_reply(InboundReply(id=command.id, payload=command.payload["n"]))

        assert await asyncio.gather(*tasks) == [0, 1, 2, 3, 4]
        assert bus.pending_count == 0

    @pytest.mark.asyncio
    async def test_timeout_of_one_does_not_affect_others(self) -> None:
        """A timed-out request does not disturb a concurrent one."""
        bus, recorder = await make_bus(timeout=1.0)

        slow = asyncio.create_task(bus.request("get-selected-cell", timeout=0.02))
        fast = asyncio.create_task(bus.request("get-shape-categories"))
        commands = await recorder.wait_for(2)

        with pytest.raises(RequestTimeoutError):
            await slow

        fast_cmd = next(c for c in commands if c.name == "get-shape-categories")
        bus.on_reply(InboundReply(id=fast_cmd.id, payload="done"))
        assert await fast == "done"

    @pytest.mark.asyncio
    async def test_id_collision_overwrites_and_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """A colliding id replaces the older entry without breaking cleanup."""
        ids = itertools.repeat("req_same")
        bus, recorder = await make_bus(timeout=0.1, id_generator=lambda: next(ids))

        first = asyncio.create_task(bus.request("first"))
        await recorder.wait_for(1)
        second = asyncio.create_task(bus.request("second"))
        await recorder.wait_for(2)

        assert "already pending" in caplog.text
        bus.on_reply(InboundReply(id="req_same", payload="for second"))

        assert await second == "for second"
        with pytest.raises(RequestTimeoutError):
            await first
        assert bus.pending_count == 0


class TestOutboundCommand:
    """Tests for the emitted command shape."""

    @pytest.mark.asyncio
    async def test_command_wire_shape(self) -> None:
        """Commands carry id, name and payload."""
        bus, recorder = await make_bus(timeout=0.01)

        with pytest.raises(RequestTimeoutError):
            await bus.request("set-cell-data", {"cell_id": "c1", "key": "k", "value": 1})

        [command] = recorder.commands
        wire = json.loads(command.to_json())
        assert wire == {
            "id": command.id,
            "name": "set-cell-data",
            "payload": {"cell_id": "c1", "key": "k", "value": 1},
        }
        assert command.id.startswith("req_")

    def test_rejects_non_positive_timeout(self) -> None:
        """The default timeout must be positive."""
        with pytest.raises(ValueError):
            CorrelationBus(EventDispatcher(), timeout=0)

"""WebSocketTransport tests with mocked WebSockets"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import WebSocketDisconnect

from canvas_relay import WebSocketTransport
from canvas_relay.transport import encode_message


def make_websocket(*frames):
    websocket = AsyncMock()
    websocket.client.host = "127.0.0.1"
    websocket.receive_text.side_effect = [*frames, WebSocketDisconnect(code=1000)]
    return websocket


def test_encode_message():
    assert json.loads(encode_message("drawLine", {"x": 1, "y": 2})) == {"event": "drawLine", "data": {"x": 1, "y": 2}}
    assert json.loads(encode_message("clearCanvas")) == {"event": "clearCanvas"}


class TestGroups:

    def test_join_and_leave_all_groups(self):
        transport = WebSocketTransport()
        transport.join_group("a", "g1")
        transport.join_group("a", "g2")
        transport.join_group("b", "g1")

        transport.leave_all_groups("a")

        assert transport.group_members("g1") == {"b"}
        assert transport.group_members("g2") == set()

    def test_leave_all_groups_for_unknown_connection(self):
        transport = WebSocketTransport()
        transport.leave_all_groups("ghost")

        assert transport.group_members("g1") == set()

    def test_broadcast_skips_sender_and_other_groups(self):
        transport = WebSocketTransport()
        queues = {cid: asyncio.Queue() for cid in ("a", "b", "c")}
        transport._queues.update(queues)
        transport.join_group("a", "g1")
        transport.join_group("b", "g1")
        transport.join_group("c", "g2")

        transport.broadcast_to_group("g1", "a", "drawLine", {"x": 1, "y": 1})

        assert queues["a"].empty()
        assert queues["c"].empty()
        assert json.loads(queues["b"].get_nowait()) == {"event": "drawLine", "data": {"x": 1, "y": 1}}

    def test_send_to_unknown_connection_is_ignored(self):
        transport = WebSocketTransport()
        transport.send("ghost", "roomJoined", {"roomId": "default", "userCount": 1})

        assert transport.connection_count() == 0


class TestServe:

    @pytest.mark.asyncio
    async def test_dispatches_valid_frames_only(self):
        transport = WebSocketTransport()
        events = []
        transport.on_event(lambda cid, event, data: events.append((event, data)))

        websocket = make_websocket(
            json.dumps({"event": "drawLine", "data": {"x": 1, "y": 2}}),
            "not json",
            json.dumps([1, 2, 3]),
            json.dumps({"data": {}}),
            "x" * 70000,
            json.dumps({"event": "clearCanvas"}),
        )

        await transport.serve(websocket)

        websocket.accept.assert_awaited_once()
        assert events == [("drawLine", {"x": 1, "y": 2}), ("clearCanvas", None)]

    @pytest.mark.asyncio
    async def test_connect_and_disconnect_hooks_fire_once(self):
        transport = WebSocketTransport()
        connected, disconnected = [], []
        transport.on_connect(connected.append)
        transport.on_disconnect(disconnected.append)

        await transport.serve(make_websocket())

        assert len(connected) == 1
        assert disconnected == connected
        assert transport.connection_count() == 0

    @pytest.mark.asyncio
    async def test_queued_frames_are_flushed_to_socket(self):
        transport = WebSocketTransport()
        transport.on_connect(lambda cid: transport.send(cid, "roomJoined", {"roomId": "default", "userCount": 1}))
        websocket = make_websocket()

        await transport.serve(websocket)

        websocket.send_text.assert_awaited_once_with(
            encode_message("roomJoined", {"roomId": "default", "userCount": 1})
        )

    @pytest.mark.asyncio
    async def test_groups_released_on_disconnect(self):
        transport = WebSocketTransport()
        transport.on_connect(lambda cid: transport.join_group(cid, "g1"))

        await transport.serve(make_websocket())

        assert transport.group_members("g1") == set()

    @pytest.mark.asyncio
    async def test_failing_event_handler_keeps_connection_open(self):
        transport = WebSocketTransport()
        events, disconnected = [], []

        def explode(cid, event, data):
            raise RuntimeError("boom")

        transport.on_event(explode)
        transport.on_event(lambda cid, event, data: events.append(event))
        transport.on_disconnect(disconnected.append)

        websocket = make_websocket(
            json.dumps({"event": "drawLine", "data": {"x": 1, "y": 1}}),
            json.dumps({"event": "getRooms"}),
        )

        await transport.serve(websocket)

        # Later handlers and later frames still run; the socket is only
        # released by the client's disconnect
        assert events == ["drawLine", "getRooms"]
        assert websocket.receive_text.await_count == 3
        assert len(disconnected) == 1
        assert transport.connection_count() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hostile", [
        '{"event":"drawLine","data":{"x":' + "1" * 5000 + '}}',
        "[" * 5000,
    ])
    async def test_undecodable_frames_do_not_end_connection(self, hostile):
        transport = WebSocketTransport()
        events = []
        transport.on_event(lambda cid, event, data: events.append(event))

        await transport.serve(make_websocket(hostile, json.dumps({"event": "getRooms"})))

        assert events[-1] == "getRooms"


class TestOutboundQueue:

    def test_send_drops_frames_when_queue_is_full(self):
        transport = WebSocketTransport(max_queue_size=2)
        queue = asyncio.Queue(maxsize=2)
        transport._queues["a"] = queue

        for x in range(3):
            transport.send("a", "drawLine", {"x": x, "y": 0})

        assert queue.qsize() == 2
        assert [json.loads(queue.get_nowait())["data"]["x"] for _ in range(2)] == [0, 1]

    def test_broadcast_skips_full_recipient_only(self):
        transport = WebSocketTransport(max_queue_size=1)
        stalled, healthy = asyncio.Queue(maxsize=1), asyncio.Queue(maxsize=1)
        stalled.put_nowait("pending")
        transport._queues.update({"stalled": stalled, "healthy": healthy})
        transport.join_group("stalled", "g1")
        transport.join_group("healthy", "g1")

        transport.broadcast_to_group("g1", None, "clearCanvas")

        assert stalled.get_nowait() == "pending"
        assert stalled.empty()
        assert json.loads(healthy.get_nowait()) == {"event": "clearCanvas"}

    @pytest.mark.asyncio
    async def test_serve_uses_bounded_queue(self):
        transport = WebSocketTransport(max_queue_size=3)
        sizes = []
        transport.on_connect(lambda cid: sizes.append(transport._queues[cid].maxsize))

        await transport.serve(make_websocket())

        assert sizes == [3]

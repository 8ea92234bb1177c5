"""
Transport layer: broadcast groups and per-connection delivery over WebSockets
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Set
from fastapi import WebSocket, WebSocketDisconnect
from .constants import MAX_MESSAGE_SIZE_BYTES, OUTBOUND_QUEUE_SIZE
from .logger import (
    get_logger,
    log_security_event,
    log_connection_event,
    log_websocket_event
)

logger = get_logger()

ConnectHandler = Callable[[str], None]
EventHandler = Callable[[str, str, Any], None]
DisconnectHandler = Callable[[str], None]


class Transport(ABC):
    """
    What the relay core needs from the network layer

    All methods are synchronous and must not block: delivery is best effort
    and messages for unknown connections are discarded.
    """

    def __init__(self):
        self._connect_handlers: List[ConnectHandler] = []
        self._event_handlers: List[EventHandler] = []
        self._disconnect_handlers: List[DisconnectHandler] = []

    def on_connect(self, handler: ConnectHandler):
        self._connect_handlers.append(handler)

    def on_event(self, handler: EventHandler):
        self._event_handlers.append(handler)

    def on_disconnect(self, handler: DisconnectHandler):
        self._disconnect_handlers.append(handler)

    @abstractmethod
    def send(self, connection_id: str, event: str, payload: Optional[Dict[str, Any]] = None):
        """Send an event to a single connection"""

    @abstractmethod
    def broadcast_to_group(self, group_id: str, exclude_id: Optional[str], event: str,
                           payload: Optional[Dict[str, Any]] = None):
        """Send an event to every group member except ``exclude_id``"""

    @abstractmethod
    def join_group(self, connection_id: str, group_id: str):
        """Add a connection to a broadcast group"""

    @abstractmethod
    def leave_all_groups(self, connection_id: str):
        """Remove a connection from every broadcast group it belongs to"""


def encode_message(event: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """Wire envelope: {"event": name, "data": payload}, data omitted when empty"""
    message = {"event": event}
    if payload is not None:
        message["data"] = payload
    return json.dumps(message)


class WebSocketTransport(Transport):
    """
    Transport over FastAPI WebSockets

    Each connection gets a bounded outbound queue drained by its own writer
    task, so ``send`` and ``broadcast_to_group`` never await and the relay
    core stays fully synchronous. Frames for a connection whose queue is
    full are dropped.
    """

    def __init__(self, max_queue_size: int = OUTBOUND_QUEUE_SIZE):
        super().__init__()
        self.max_queue_size = max_queue_size
        # connection_id -> outbound queue of encoded frames (None = stop)
        self._queues: Dict[str, asyncio.Queue] = {}
        # group_id -> {connection_id}
        self._groups: Dict[str, Set[str]] = {}
        # connection_id -> {group_id}
        self._memberships: Dict[str, Set[str]] = {}

    def _enqueue(self, connection_id: str, frame: str, event: str) -> bool:
        queue = self._queues.get(connection_id)
        if queue is None:
            log_websocket_event("send_dropped", connection_id, "not connected", event=event)
            return False

        try:
            queue.put_nowait(frame)
        except asyncio.QueueFull:
            log_websocket_event("send_dropped", connection_id, f"outbound queue full ({queue.maxsize})", event=event)
            return False

        return True

    def send(self, connection_id: str, event: str, payload: Optional[Dict[str, Any]] = None):
        self._enqueue(connection_id, encode_message(event, payload), event)

    def broadcast_to_group(self, group_id: str, exclude_id: Optional[str], event: str,
                           payload: Optional[Dict[str, Any]] = None):
        recipients = [cid for cid in self._groups.get(group_id, ()) if cid != exclude_id]
        if not recipients:
            return

        frame = encode_message(event, payload)
        delivered = sum(1 for connection_id in recipients if self._enqueue(connection_id, frame, event))

        log_websocket_event(
            "broadcast", exclude_id or "-",
            f"group={group_id} recipients={delivered}/{len(recipients)}", event=event
        )

    def join_group(self, connection_id: str, group_id: str):
        self._groups.setdefault(group_id, set()).add(connection_id)
        self._memberships.setdefault(connection_id, set()).add(group_id)

    def leave_all_groups(self, connection_id: str):
        for group_id in self._memberships.pop(connection_id, set()):
            members = self._groups.get(group_id)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._groups[group_id]

    def group_members(self, group_id: str) -> Set[str]:
        return set(self._groups.get(group_id, ()))

    def connection_count(self) -> int:
        return len(self._queues)

    async def serve(self, websocket: WebSocket):
        """
        Run one WebSocket connection from accept to cleanup

        Args:
            websocket: Incoming WebSocket connection
        """
        connection_id = uuid.uuid4().hex

        await websocket.accept()
        client_ip = websocket.client.host if websocket.client else "unknown"
        log_connection_event(connection_id, "connect", f"ip={client_ip}")

        queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._queues[connection_id] = queue
        writer = asyncio.create_task(self._write_loop(connection_id, websocket, queue))

        try:
            for handler in self._connect_handlers:
                handler(connection_id)

            while True:
                raw = await websocket.receive_text()
                self._dispatch(connection_id, raw)

        except WebSocketDisconnect as e:
            log_websocket_event("disconnected", connection_id, f"code={e.code}")

        except Exception as e:
            logger.error(f"WebSocket error for {connection_id}: {e}")

        finally:
            for handler in self._disconnect_handlers:
                try:
                    handler(connection_id)
                except Exception as e:
                    logger.error(f"Disconnect handler failed for {connection_id}: {e}")

            self.leave_all_groups(connection_id)
            self._queues.pop(connection_id, None)

            try:
                queue.put_nowait(None)
            except asyncio.QueueFull:
                # Writer is stalled or gone; pending frames are discarded
                writer.cancel()

            try:
                await writer
            except asyncio.CancelledError:
                log_websocket_event("writer_cancelled", connection_id, f"pending={queue.qsize()}")
            except Exception as e:
                logger.error(f"Writer task failed for {connection_id}: {e}")

            log_connection_event(connection_id, "disconnect")

    def _dispatch(self, connection_id: str, raw: str):
        """Decode one inbound frame and hand it to the event handlers"""
        if len(raw) > MAX_MESSAGE_SIZE_BYTES:
            log_security_event("oversized_frame", {
                "connection_id": connection_id,
                "length": len(raw)
            })
            return

        # ValueError covers JSONDecodeError and over-long integer literals
        try:
            message = json.loads(raw)
        except (ValueError, RecursionError) as e:
            log_security_event("invalid_json", {
                "connection_id": connection_id,
                "error": type(e).__name__
            })
            return

        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            log_security_event("invalid_envelope", {"connection_id": connection_id})
            return

        event = message["event"]
        data = message.get("data")
        log_websocket_event("received", connection_id, event=event)

        for handler in self._event_handlers:
            try:
                handler(connection_id, event, data)
            except Exception as e:
                logger.error(f"Event handler failed for {event} from {connection_id}: {e}")

    async def _write_loop(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        while True:
            frame = await queue.get()
            if frame is None:
                break
            try:
                await websocket.send_text(frame)
            except Exception as e:
                # Best effort: the reader side notices the closed socket
                log_websocket_event("send_failed", connection_id, str(e))
                break

"""Shared fixtures: a recording transport and a controllable clock"""

from typing import Any, Dict, List, Optional, Set

import pytest

from canvas_relay import EventRouter, RateLimiter, RoomRegistry, Transport


class RecordingTransport(Transport):
    """In-memory transport that records every delivery per recipient"""

    def __init__(self):
        super().__init__()
        self.groups: Dict[str, Set[str]] = {}
        self.inbox: Dict[str, List[tuple]] = {}
        self.broadcasts: List[tuple] = []

    def send(self, connection_id, event, payload=None):
        self.inbox.setdefault(connection_id, []).append((event, payload))

    def broadcast_to_group(self, group_id, exclude_id, event, payload=None):
        self.broadcasts.append((group_id, exclude_id, event, payload))
        for connection_id in self.groups.get(group_id, set()):
            if connection_id != exclude_id:
                self.inbox.setdefault(connection_id, []).append((event, payload))

    def join_group(self, connection_id, group_id):
        self.groups.setdefault(group_id, set()).add(connection_id)

    def leave_all_groups(self, connection_id):
        for group_id in list(self.groups):
            self.groups[group_id].discard(connection_id)
            if not self.groups[group_id]:
                del self.groups[group_id]

    def received(self, connection_id: str, event: Optional[str] = None) -> List[Any]:
        """Payloads delivered to a connection, optionally filtered by event name"""
        return [
            payload for name, payload in self.inbox.get(connection_id, [])
            if event is None or name == event
        ]

    def events(self, connection_id: str) -> List[str]:
        return [name for name, _ in self.inbox.get(connection_id, [])]

    def clear(self):
        self.inbox.clear()
        self.broadcasts.clear()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> RoomRegistry:
    return RoomRegistry()


@pytest.fixture
def rate_limiter(clock) -> RateLimiter:
    return RateLimiter(clock=clock)


@pytest.fixture
def router(registry, rate_limiter, transport) -> EventRouter:
    router = EventRouter(registry, rate_limiter, transport)
    router.bind()
    return router


@pytest.fixture
def collaborators(router, transport, clock):
    """Connections "a" and "b" both joined to collaborative room "r1", inboxes cleared"""
    router.connect("a")
    router.connect("b")
    router.handle_event("a", "joinRoom", {"roomId": "r1", "create": True})
    router.handle_event("b", "joinRoom", {"roomId": "r1"})
    transport.clear()
    # Start tests with a fresh rate limit window
    clock.advance(2.0)
    return "a", "b"

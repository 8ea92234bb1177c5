"""
Canvas Relay Client Example for Testing
Drives collaborative drawing, private-room isolation and rate limit scenarios
"""

import asyncio
import json
import websockets
import time
from typing import Optional, Dict, Any, List
import argparse
import sys


class DrawingClient:
    """WebSocket drawing client for exercising the relay by hand"""

    def __init__(self, name: str, server_url: str = "ws://localhost:5000/ws"):
        self.name = name
        self.server_url = server_url
        self.websocket = None
        self.room_id: Optional[str] = None
        self.received: List[Dict[str, Any]] = []
        self.running = False

    async def connect(self) -> bool:
        """Connect and wait for the automatic private-room confirmation"""
        try:
            self.websocket = await websockets.connect(self.server_url)
            print(f"✅ [{self.name}] Connected to {self.server_url}")
        except Exception as e:
            print(f"❌ [{self.name}] Connection failed: {e}")
            return False

        message = await self.recv()
        if message and message.get("event") == "roomJoined":
            self.room_id = message["data"]["roomId"]
            print(f"🏠 [{self.name}] Started in room: {self.room_id}")
            return True

        print(f"❌ [{self.name}] Unexpected greeting: {message}")
        return False

    async def emit(self, event: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Send one event to the server"""
        if not self.websocket:
            return False

        message = {"event": event}
        if data is not None:
            message["data"] = data

        try:
            await self.websocket.send(json.dumps(message))
            return True
        except Exception as e:
            print(f"❌ [{self.name}] Send failed: {e}")
            return False

    async def recv(self, timeout: float = 2.0) -> Optional[Dict[str, Any]]:
        try:
            raw = await asyncio.wait_for(self.websocket.recv(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        return json.loads(raw)

    async def join_room(self, room_id: str, create: bool = False) -> bool:
        """Join (or create) a collaborative room"""
        await self.emit("joinRoom", {"roomId": room_id, "create": create})

        message = await self.recv()
        if not message:
            print(f"❌ [{self.name}] No response to joinRoom")
            return False

        if message.get("event") == "roomJoined":
            self.room_id = message["data"]["roomId"]
            users = message["data"]["userCount"]
            print(f"✅ [{self.name}] Joined {self.room_id} ({users} users)")
            return True

        print(f"❌ [{self.name}] Join failed: {message.get('data', {}).get('message')}")
        return False

    async def draw_stroke(self, points: List[tuple], color: str = "#000", size: int = 3):
        """Send a freehand stroke as beginPath followed by drawLine events"""
        (x, y), rest = points[0], points[1:]
        await self.emit("beginPath", {"x": x, "y": y, "tool": "PENCIL", "color": color, "size": size})
        for x, y in rest:
            await self.emit("drawLine", {"x": x, "y": y})

    async def request_rooms(self) -> bool:
        return await self.emit("getRooms")

    async def listen_for_messages(self):
        """Print and record incoming events until stopped"""
        while self.running:
            try:
                message = await self.recv(timeout=1.0)
                if message is None:
                    continue

                self.received.append(message)
                event = message.get("event")
                data = message.get("data") or {}

                if event in ("beginPath", "drawLine", "drawShape", "changeConfig", "clearCanvas"):
                    print(f"🎨 [{self.name}] {event}: {data}")

                elif event in ("userJoined", "userLeft"):
                    print(f"👥 [{self.name}] {event}: {data.get('userCount')} users in room")

                elif event == "roomsList":
                    rooms = data.get("rooms", [])
                    print(f"📋 [{self.name}] Public rooms ({len(rooms)}):")
                    for room in rooms:
                        print(f"   • {room['id']} ({room['userCount']} users)")

                elif event in ("error", "roomError"):
                    print(f"❌ [{self.name}] {event}: {data.get('message')}")

                else:
                    print(f"❓ [{self.name}] Unknown event: {event}")

            except websockets.exceptions.ConnectionClosed:
                print(f"🔌 [{self.name}] Connection closed by server")
                break

    async def disconnect(self):
        """Disconnect from server"""
        self.running = False
        if self.websocket:
            await self.websocket.close()
            print(f"🔌 [{self.name}] Disconnected")

    async def run_interactive(self):
        """Run an interactive session"""
        if not await self.connect():
            return

        self.running = True
        listen_task = asyncio.create_task(self.listen_for_messages())

        try:
            print("\n🎮 Interactive mode started!")
            print("Commands: /join <room>, /create <room>, /leave, /rooms, /clear, /line x1 y1 x2 y2, /quit")
            print("-" * 50)

            while self.running:
                try:
                    line = (await asyncio.to_thread(input, f"{self.name}@{self.room_id}> ")).strip()
                except (KeyboardInterrupt, EOFError):
                    break

                if not line:
                    continue

                command, *args = line.split()
                if command == "/quit":
                    break
                elif command in ("/join", "/create") and args:
                    await self.emit("joinRoom", {"roomId": args[0], "create": command == "/create"})
                    self.room_id = args[0]
                elif command == "/leave":
                    await self.emit("leaveRoom")
                    self.room_id = "default"
                elif command == "/rooms":
                    await self.request_rooms()
                elif command == "/clear":
                    await self.emit("clearCanvas")
                elif command == "/line" and len(args) == 4:
                    x1, y1, x2, y2 = (float(a) for a in args)
                    await self.draw_stroke([(x1, y1), (x2, y2)])
                else:
                    print("❓ Unknown command")

        finally:
            self.running = False
            listen_task.cancel()
            await self.disconnect()


async def test_scenario_1(server_url: str):
    """Test Scenario 1: Two clients drawing in the same room"""
    print("\n🧪 Test Scenario 1: Collaborative Drawing")
    print("=" * 60)

    alice = DrawingClient("alice", server_url)
    bob = DrawingClient("bob", server_url)

    if not (await alice.connect() and await alice.join_room("sketch-1", create=True)):
        return
    if not (await bob.connect() and await bob.join_room("sketch-1")):
        return

    bob.running = True
    listen_task = asyncio.create_task(bob.listen_for_messages())

    await alice.draw_stroke([(10, 10), (20, 20), (30, 30)], color="#f00", size=5)
    await alice.emit("drawShape", {
        "type": "circle", "startX": 0, "startY": 0, "endX": 10, "endY": 10,
        "color": "not-a-color", "size": 5
    })

    await asyncio.sleep(2)
    bob.running = False
    listen_task.cancel()
    await alice.disconnect()
    await bob.disconnect()

    drawn = [m for m in bob.received if m.get("event") in ("beginPath", "drawLine", "drawShape")]
    print(f"✅ Scenario 1 completed: bob received {len(drawn)} drawing events")


async def test_scenario_2(server_url: str):
    """Test Scenario 2: Private default room isolation"""
    print("\n🧪 Test Scenario 2: Private Room Isolation")
    print("=" * 60)

    alice = DrawingClient("alice", server_url)
    bob = DrawingClient("bob", server_url)

    if not (await alice.connect() and await bob.connect()):
        return

    bob.running = True
    listen_task = asyncio.create_task(bob.listen_for_messages())

    await alice.draw_stroke([(1, 1), (2, 2)])
    await alice.emit("clearCanvas")
    await alice.request_rooms()

    await asyncio.sleep(2)
    bob.running = False
    listen_task.cancel()
    await alice.disconnect()
    await bob.disconnect()

    leaked = [m for m in bob.received if m.get("event") in ("beginPath", "drawLine", "clearCanvas")]
    status = "✅" if not leaked else "❌"
    print(f"{status} Scenario 2 completed: {len(leaked)} events leaked from alice's private room")


async def test_scenario_3(server_url: str):
    """Test Scenario 3: Rate limit burst"""
    print("\n🧪 Test Scenario 3: Rate Limiting")
    print("=" * 60)

    client = DrawingClient("burst", server_url)
    if not await client.connect():
        return

    start = time.time()
    for i in range(150):
        await client.emit("drawLine", {"x": i, "y": i})

    errors = 0
    while True:
        message = await client.recv(timeout=1.0)
        if message is None:
            break
        if message.get("event") == "error":
            errors += 1

    await client.disconnect()
    print(f"✅ Scenario 3 completed: {errors} rate limit warnings in {time.time() - start:.2f}s")


async def main():
    """Main function with command line interface"""
    parser = argparse.ArgumentParser(description="Canvas Relay Client")
    parser.add_argument("--name", default="artist", help="Client name for output")
    parser.add_argument("--server", default="ws://localhost:5000/ws", help="Server URL")
    parser.add_argument("--test", choices=["1", "2", "3"], help="Run test scenario")

    args = parser.parse_args()

    if args.test == "1":
        await test_scenario_1(args.server)
    elif args.test == "2":
        await test_scenario_2(args.server)
    elif args.test == "3":
        await test_scenario_3(args.server)
    else:
        client = DrawingClient(args.name, args.server)
        await client.run_interactive()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Client error: {e}")
        sys.exit(1)

"""
FastAPI WebSocket relay for collaborative drawing
Rooms fan drawing events out to their other members; every connection starts
in a private workspace that nobody else can observe
"""

from dotenv import load_dotenv

# Environment must be loaded before the settings in canvas_relay.constants are read
load_dotenv()

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import errno
import socket
import sys
import uvicorn

from canvas_relay import (
    RoomRegistry,
    RateLimiter,
    WebSocketTransport,
    EventRouter,
    get_logger,
    log_system_event,
    HOST,
    PORT,
    CLIENT_URL,
    ENVIRONMENT,
    LOG_LEVEL,
    PING_INTERVAL_SECONDS,
    PING_TIMEOUT_SECONDS
)

# Global instances
registry = RoomRegistry()
rate_limiter = RateLimiter()
transport = WebSocketTransport()
router = EventRouter(registry, rate_limiter, transport)
router.bind()
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("Canvas Relay starting up...")
    yield
    logger.info("Canvas Relay shutting down...")


app = FastAPI(
    title="Canvas Relay",
    description="Real-time drawing relay with private and collaborative rooms",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "activeRooms": len(registry),
        "totalConnections": transport.connection_count()
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Relay endpoint; the transport drives the connection lifecycle"""
    await transport.serve(websocket)


def bind_socket(host: str, port: int) -> socket.socket:
    """
    Bind the listening socket, exiting with a diagnostic if the port is taken

    Args:
        host: Interface to bind
        port: TCP port

    Returns:
        Bound socket ready to hand to uvicorn
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        if e.errno == errno.EADDRINUSE:
            log_system_event("startup_failed", f"Port {port} is already in use", level="error")
            logger.error(
                f"Either stop the process using port {port} or change PORT in your .env file"
            )
        else:
            log_system_event("startup_failed", f"Server error: {e}", level="error")
        sys.exit(1)
    return sock


def run():
    sock = bind_socket(HOST, PORT)

    config = uvicorn.Config(
        app,
        log_level=LOG_LEVEL.lower(),
        access_log=True,
        ws_ping_interval=PING_INTERVAL_SECONDS,
        ws_ping_timeout=PING_TIMEOUT_SECONDS,
    )
    server = uvicorn.Server(config)

    logger.info(f"Server running on port {PORT}")
    logger.info(f"CORS enabled for: {CLIENT_URL}")
    logger.info(f"Environment: {ENVIRONMENT}")

    server.run(sockets=[sock])


if __name__ == "__main__":
    run()

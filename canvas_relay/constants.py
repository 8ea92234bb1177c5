"""
Protocol constants and environment settings for the Canvas Relay server
"""

import os

# Environment settings
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
CLIENT_URL = os.getenv(
    "CLIENT_URL",
    "https://creati-sketch.vercel.app" if ENVIRONMENT == "production" else "http://localhost:3000"
)

# Logging levels
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Rate limiting (fixed window per connection)
RATE_LIMIT_WINDOW_SECONDS = 1.0
RATE_LIMIT_MAX_EVENTS = 100

# Canvas bounds; coordinates may range over [-W, 2W] x [-H, 2H]
CANVAS_WIDTH = 10000
CANVAS_HEIGHT = 10000

# Drawing payload validation
MAX_COLOR_LENGTH = 50
MAX_SIZE = 100
DEFAULT_COLOR = "black"
DEFAULT_SIZE = 3
DEFAULT_TOOL = "PENCIL"
SHAPE_TYPES = frozenset({"rectangle", "circle", "line"})

# Rooms
DEFAULT_ROOM = "default"
PRIVATE_ROOM_PREFIX = "default_"
MAX_ROOM_ID_LENGTH = 50

# Regex patterns for validation
HEX_COLOR_PATTERN = r'#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})'
NAMED_COLOR_PATTERN = r'[a-zA-Z]+'
RGB_COLOR_PATTERN = r'rgba?\('
ROOM_ID_STRIP_PATTERN = r'[^a-zA-Z0-9-]'

# WebSocket settings
PING_INTERVAL_SECONDS = 25
PING_TIMEOUT_SECONDS = 60
MAX_MESSAGE_SIZE_BYTES = 65536
# Outbound frames buffered per connection before new ones are dropped
OUTBOUND_QUEUE_SIZE = 1000

# Error messages
ERROR_MESSAGES = {
    "rate_limit": "Rate limit exceeded. Please slow down.",
    "room_not_found": 'Room "{room_id}" does not exist. Use "Create New Room" to create it.',
    "join_failed": "Failed to join room",
    "leave_failed": "Failed to leave room",
}

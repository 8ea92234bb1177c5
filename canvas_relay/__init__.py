"""
Canvas Relay core package
Room lifecycle, rate limiting and payload validation for the drawing relay
"""

from .models import BeginPath, DrawLine, ConfigChange, DrawShape, ClearCanvas, RoomInfo, RateLimitEntry
from .validators import (
    valid_coordinates,
    valid_color,
    valid_size,
    is_known_shape_type,
    sanitize_room_id
)
from .rate_limiter import RateLimiter
from .room_registry import RoomRegistry, private_room_id, is_private_room
from .session import ConnectionSession
from .transport import Transport, WebSocketTransport
from .event_router import EventRouter
from .constants import *
from .logger import (
    get_logger,
    log_security_event,
    log_connection_event,
    log_room_event,
    log_websocket_event,
    log_system_event
)

__all__ = [
    'BeginPath',
    'DrawLine',
    'ConfigChange',
    'DrawShape',
    'ClearCanvas',
    'RoomInfo',
    'RateLimitEntry',
    'valid_coordinates',
    'valid_color',
    'valid_size',
    'is_known_shape_type',
    'sanitize_room_id',
    'RateLimiter',
    'RoomRegistry',
    'private_room_id',
    'is_private_room',
    'ConnectionSession',
    'Transport',
    'WebSocketTransport',
    'EventRouter',
    'get_logger',
    'log_security_event',
    'log_connection_event',
    'log_room_event',
    'log_websocket_event',
    'log_system_event'
]

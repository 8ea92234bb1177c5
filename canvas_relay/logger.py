"""
Logging configuration for the Canvas Relay server
"""

import logging
import sys
from typing import Optional
from .constants import ENVIRONMENT, LOG_LEVEL


def get_logger(name: str = "canvas_relay") -> logging.Logger:
    """
    Get a logger instance with console output and consistent formatting

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        # Prevent duplicate lines through the root logger
        logger.propagate = False

    return logger


def log_security_event(event_type: str, details: dict, logger: Optional[logging.Logger] = None):
    """
    Log abuse-related events (rate limiting, malformed frames) with structured data

    Args:
        event_type: Type of security event
        details: Event details
        logger: Logger instance (optional)
    """
    if logger is None:
        logger = get_logger()

    logger.warning(f"SECURITY_EVENT: {event_type} | {details}")


def log_connection_event(connection_id: str, action: str, details: str = ""):
    """
    Log connection lifecycle events

    Args:
        connection_id: Transport-assigned connection identifier
        action: Action (connect/disconnect)
        details: Additional details
    """
    logger = get_logger()
    logger.info(f"CONNECTION_EVENT: {action} | conn={connection_id} | {details}")


def log_room_event(connection_id: str, action: str, room_id: str, details: str = ""):
    """
    Log room membership changes

    Args:
        connection_id: Connection identifier
        action: Action (join/leave/rejected)
        room_id: Actual room identifier
        details: Additional details
    """
    logger = get_logger()
    logger.info(f"ROOM_EVENT: {action} | conn={connection_id} | room={room_id} | {details}")


def log_websocket_event(event_type: str, connection_id: str, details: str = "", event: Optional[str] = None):
    """
    Log WebSocket protocol events

    Args:
        event_type: Type of WebSocket event (received/broadcast/send_dropped/...)
        connection_id: Connection identifier
        details: Additional details
        event: Relay event name the frame carries, if any
    """
    logger = get_logger()
    message = f"WEBSOCKET_EVENT: {event_type} | conn={connection_id}"
    if event is not None:
        message += f" | event={event}"
    if details:
        message += f" | {details}"
    logger.debug(message)


def log_system_event(event_type: str, details: str, level: str = "info"):
    """
    Log system-level events, tagged with the deployment environment

    Args:
        event_type: Type of system event
        details: Event details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"SYSTEM_EVENT: {event_type} | env={ENVIRONMENT} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)

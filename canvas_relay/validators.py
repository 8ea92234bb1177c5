"""
Input validation for inbound drawing and room payloads

Every function here is total: malformed input yields ``False``, a fallback
value, or ``None`` (meaning "drop the event"), never an exception.
"""

import math
import re
from typing import Any, Optional, Tuple
from .constants import (
    CANVAS_WIDTH,
    CANVAS_HEIGHT,
    MAX_COLOR_LENGTH,
    MAX_SIZE,
    MAX_ROOM_ID_LENGTH,
    DEFAULT_COLOR,
    DEFAULT_SIZE,
    DEFAULT_TOOL,
    DEFAULT_ROOM,
    SHAPE_TYPES,
    HEX_COLOR_PATTERN,
    NAMED_COLOR_PATTERN,
    RGB_COLOR_PATTERN,
    ROOM_ID_STRIP_PATTERN
)
from .models import BeginPath, DrawLine, ConfigChange, DrawShape


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def valid_coordinates(x: Any, y: Any, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT) -> bool:
    """
    Check that a point lies within the generous canvas bounds

    Off-canvas gestures are allowed up to one canvas size to the left/top
    and two canvas sizes to the right/bottom.

    Args:
        x: Horizontal coordinate
        y: Vertical coordinate
        width: Canvas width bound
        height: Canvas height bound

    Returns:
        True if both values are finite numbers inside the bounds
    """
    if not (_is_number(x) and _is_number(y)):
        return False

    # Range check first: math.isfinite overflows on ints beyond float range
    if not (-width <= x <= width * 2 and -height <= y <= height * 2):
        return False

    return math.isfinite(x) and math.isfinite(y)


def valid_color(value: Any) -> bool:
    """
    Check for a hex (#rgb / #rrggbb), named, or rgb()/rgba() colour string

    Args:
        value: Raw colour value

    Returns:
        True if the value is an acceptable colour
    """
    if not isinstance(value, str) or len(value) > MAX_COLOR_LENGTH:
        return False

    return bool(
        re.fullmatch(HEX_COLOR_PATTERN, value)
        or re.fullmatch(NAMED_COLOR_PATTERN, value)
        or re.match(RGB_COLOR_PATTERN, value)
    )


def valid_size(value: Any) -> bool:
    """Brush size must be a number in (0, MAX_SIZE]"""
    return _is_number(value) and 0 < value <= MAX_SIZE


def is_known_shape_type(shape_type: Any) -> bool:
    return isinstance(shape_type, str) and shape_type in SHAPE_TYPES


def sanitize_room_id(raw: Any) -> str:
    """
    Sanitize a user-chosen room identifier

    Args:
        raw: Raw room id input (coerced to string)

    Returns:
        Alphanumeric/hyphen id of at most MAX_ROOM_ID_LENGTH characters,
        or "default" when nothing is left
    """
    sanitized = re.sub(ROOM_ID_STRIP_PATTERN, '', str(raw))
    sanitized = sanitized[:MAX_ROOM_ID_LENGTH]

    return sanitized or DEFAULT_ROOM


def color_or_default(value: Any) -> str:
    return value if valid_color(value) else DEFAULT_COLOR


def size_or_default(value: Any):
    return value if valid_size(value) else DEFAULT_SIZE


def parse_begin_path(data: Any) -> Optional[BeginPath]:
    """
    Parse a beginPath payload

    Invalid color or size are omitted rather than defaulted so receivers
    keep the sender's previous brush configuration.
    """
    if not isinstance(data, dict):
        return None

    if not valid_coordinates(data.get("x"), data.get("y")):
        return None

    tool = data.get("tool")
    if not isinstance(tool, str) or not tool:
        tool = DEFAULT_TOOL

    color = data.get("color")
    size = data.get("size")

    return BeginPath(
        x=data["x"],
        y=data["y"],
        tool=tool,
        color=color if valid_color(color) else None,
        size=size if valid_size(size) else None
    )


def parse_draw_line(data: Any) -> Optional[DrawLine]:
    if not isinstance(data, dict):
        return None

    if not valid_coordinates(data.get("x"), data.get("y")):
        return None

    return DrawLine(x=data["x"], y=data["y"])


def parse_config_change(data: Any) -> Optional[ConfigChange]:
    if not isinstance(data, dict):
        return None

    return ConfigChange(
        color=color_or_default(data.get("color")),
        size=size_or_default(data.get("size"))
    )


def parse_draw_shape(data: Any) -> Optional[DrawShape]:
    """
    Parse a drawShape payload

    Unknown shape types and out-of-range endpoints drop the event; color
    and size fall back to defaults.
    """
    if not isinstance(data, dict):
        return None

    if not is_known_shape_type(data.get("type")):
        return None

    start_x, start_y = data.get("startX"), data.get("startY")
    end_x, end_y = data.get("endX"), data.get("endY")

    if not valid_coordinates(start_x, start_y) or not valid_coordinates(end_x, end_y):
        return None

    return DrawShape(
        type=data["type"],
        start_x=start_x,
        start_y=start_y,
        end_x=end_x,
        end_y=end_y,
        color=color_or_default(data.get("color")),
        size=size_or_default(data.get("size"))
    )


def parse_join_request(data: Any) -> Tuple[str, bool]:
    """
    Parse a joinRoom payload

    Args:
        data: Raw payload (may be missing)

    Returns:
        Tuple of (sanitized_room_id, create_flag)
    """
    if not isinstance(data, dict):
        return DEFAULT_ROOM, False

    room_id = data.get("roomId") or DEFAULT_ROOM
    create = data.get("create") is True

    return sanitize_room_id(room_id), create

"""
Data models for the Canvas Relay server

Each drawing event kind has its own validated payload type. Instances are
only produced by the parsers in ``validators`` and are consumed immediately
by the event router; nothing here is stored.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, Union

Number = Union[int, float]


@dataclass
class BeginPath:
    """Start of a freehand stroke"""
    x: Number
    y: Number
    tool: str
    color: Optional[str] = None
    size: Optional[Number] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the outbound payload; unset color/size are omitted"""
        data = {"x": self.x, "y": self.y, "tool": self.tool}
        if self.color is not None:
            data["color"] = self.color
        if self.size is not None:
            data["size"] = self.size
        return data


@dataclass
class DrawLine:
    """Next point of the current stroke"""
    x: Number
    y: Number

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass
class ConfigChange:
    """Brush configuration change"""
    color: str
    size: Number

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "size": self.size}


@dataclass
class DrawShape:
    """A complete geometric shape"""
    type: str
    start_x: Number
    start_y: Number
    end_x: Number
    end_y: Number
    color: str
    size: Number

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "startX": self.start_x,
            "startY": self.start_y,
            "endX": self.end_x,
            "endY": self.end_y,
            "color": self.color,
            "size": self.size
        }


@dataclass
class ClearCanvas:
    """Clear request; carries no payload on the wire"""

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return None


DrawingPayload = Union[BeginPath, DrawLine, ConfigChange, DrawShape, ClearCanvas]


@dataclass
class RoomInfo:
    """Public room listing entry"""
    id: str
    user_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "userCount": self.user_count}


@dataclass
class RateLimitEntry:
    """Per-connection fixed-window counter"""
    count: int
    reset_time: float

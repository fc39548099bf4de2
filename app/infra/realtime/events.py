from enum import Enum


class RealtimeEvent(str, Enum):
    MESSAGE = "message"
    CONVERSATION_ASSIGNED = "conversation_assigned"
    ERROR = "error"


class ControlEvent(str, Enum):
    CONNECTED = "system.connected"
    JOINED = "joined"
    LEFT = "left"
    PONG = "system.pong"

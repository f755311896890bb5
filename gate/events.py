"""Gate states, semantic player events, and the provider code mapping."""

from enum import Enum
from typing import Optional


class GateState(str, Enum):
    PLAYING = "playing"
    BREAK = "break"
    DONE = "done"


class PlayerEvent(str, Enum):
    ENDED = "ended"
    PAUSED = "paused"
    RESUMED = "resumed"


class GateAction(str, Enum):
    """Viewer and host-platform actions delivered to a gate."""
    START = "start"
    RESUME = "resume"
    DONE = "done"
    WATCH_OTHER = "watch_other"
    ESCAPE = "escape"
    FULLSCREEN_EXIT = "fullscreen_exit"


# YT.PlayerState values pushed by the IFrame API's onStateChange
YT_UNSTARTED = -1
YT_ENDED = 0
YT_PLAYING = 1
YT_PAUSED = 2
YT_BUFFERING = 3
YT_CUED = 5

_YT_CODE_EVENTS = {
    YT_ENDED: PlayerEvent.ENDED,
    YT_PLAYING: PlayerEvent.RESUMED,
    YT_PAUSED: PlayerEvent.PAUSED,
}


def player_event_from_code(code: Optional[int]) -> Optional[PlayerEvent]:
    """Map an IFrame API state code to a PlayerEvent. Buffering/cued/unstarted map to None."""
    if code is None:
        return None
    return _YT_CODE_EVENTS.get(code)

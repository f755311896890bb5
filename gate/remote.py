"""Browser-backed gate sessions.

The embedded player lives in the viewer's browser. RemotePlayer queues the
gate's player commands for the watch page to execute on its next poll, and
keeps the last state and position the page reported. GateRegistry keeps one
gate per viewing device; opening a video replaces that device's previous
session outright.
"""

import logging
from collections import deque
from typing import Optional

from gate.events import PlayerEvent
from gate.playback import (
    DEFAULT_PAUSE_DEBOUNCE, DEFAULT_RESUME_REWIND, PlaybackGate, WatchCallback,
)

logger = logging.getLogger(__name__)

_MAX_QUEUED_COMMANDS = 32


class RemotePlayer:
    """Player + Presentation implementation driven over HTTP polling."""

    def __init__(self):
        self._commands: deque = deque(maxlen=_MAX_QUEUED_COMMANDS)
        self.paused = True
        self.position = 0.0

    def report(self, event: Optional[PlayerEvent] = None,
               current_time: Optional[float] = None) -> None:
        """Record what the page says the player is doing."""
        if current_time is not None and current_time >= 0:
            self.position = float(current_time)
        if event is PlayerEvent.PAUSED or event is PlayerEvent.ENDED:
            self.paused = True
        elif event is PlayerEvent.RESUMED:
            self.paused = False

    def drain(self) -> list[dict]:
        """Pop every queued command, oldest first."""
        commands = list(self._commands)
        self._commands.clear()
        return commands

    async def play(self) -> None:
        self._commands.append({"op": "play"})
        self.paused = False

    async def pause(self) -> None:
        self._commands.append({"op": "pause"})
        self.paused = True

    async def stop(self) -> None:
        self._commands.append({"op": "stop"})
        self.paused = True

    async def seek_to(self, seconds: float) -> None:
        self._commands.append({"op": "seek", "seconds": round(seconds, 2)})
        self.position = seconds

    async def current_time(self) -> float:
        return self.position

    async def is_paused(self) -> bool:
        return self.paused

    async def enter_fullscreen(self) -> None:
        self._commands.append({"op": "fullscreen"})


class GateRegistry:
    """device_key -> (gate, remote player). One live session per device."""

    def __init__(self, pause_debounce: float = DEFAULT_PAUSE_DEBOUNCE,
                 resume_rewind: float = DEFAULT_RESUME_REWIND):
        self.pause_debounce = pause_debounce
        self.resume_rewind = resume_rewind
        self._sessions: dict[str, tuple[PlaybackGate, RemotePlayer]] = {}

    def open(self, device_key: str, video: dict, on_watch: Optional[WatchCallback] = None,
             touch_handset: bool = False) -> PlaybackGate:
        """Start a fresh session for `video`, discarding whatever the device had open."""
        self.close(device_key)
        remote = RemotePlayer()
        gate = PlaybackGate(
            video, remote, presentation=remote, on_watch=on_watch,
            touch_handset=touch_handset,
            pause_debounce=self.pause_debounce,
            resume_rewind=self.resume_rewind,
        )
        gate.open()
        self._sessions[device_key] = (gate, remote)
        logger.debug("Opened gate for record %s on device %s", video.get("id"), device_key[:8])
        return gate

    def get(self, device_key: str) -> Optional[tuple[PlaybackGate, RemotePlayer]]:
        return self._sessions.get(device_key)

    def close(self, device_key: str) -> None:
        session = self._sessions.pop(device_key, None)
        if session:
            session[0].close()

    def discard_closed(self, device_key: str) -> None:
        """Drop the device's session once the gate has closed itself."""
        session = self._sessions.get(device_key)
        if session and session[0].closed:
            del self._sessions[device_key]

    def __len__(self) -> int:
        return len(self._sessions)

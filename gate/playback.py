"""Playback gate: the playing / break / done state machine around one video.

The gate never lets playback run on past a natural stopping point. When the
video ends, the viewer leaves full screen, or (on touch handsets) pauses,
the player surface is replaced by a break screen that only offers resuming
this video, finishing, or going back to the library.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from gate.events import GateAction, GateState, PlayerEvent

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_DEBOUNCE = 1.5  # seconds a handset pause must last before it counts
DEFAULT_RESUME_REWIND = 3.0  # seconds replayed when resuming from a break


@runtime_checkable
class Player(Protocol):
    """Handle on the embedded video player."""

    async def play(self) -> None: ...
    async def pause(self) -> None: ...
    async def stop(self) -> None: ...
    async def seek_to(self, seconds: float) -> None: ...
    async def current_time(self) -> float: ...
    async def is_paused(self) -> bool: ...


@runtime_checkable
class Presentation(Protocol):
    """Host surface that can be asked to go full screen."""

    async def enter_fullscreen(self) -> None: ...


WatchCallback = Callable[[dict], Awaitable[None]]


class PlaybackGate:
    """One viewing session of one video."""

    def __init__(
        self,
        video: dict,
        player: Player,
        presentation: Optional[Presentation] = None,
        on_watch: Optional[WatchCallback] = None,
        touch_handset: bool = False,
        pause_debounce: float = DEFAULT_PAUSE_DEBOUNCE,
        resume_rewind: float = DEFAULT_RESUME_REWIND,
    ):
        self.video = video
        self.player = player
        self.presentation = presentation
        self.on_watch = on_watch
        self.touch_handset = touch_handset
        self.pause_debounce = pause_debounce
        self.resume_rewind = resume_rewind

        self.state = GateState.PLAYING
        self.started = False
        self.closed = False
        self.watch_task: Optional[asyncio.Task] = None
        self._pause_task: Optional[asyncio.Task] = None

    @property
    def overlay(self) -> bool:
        """Whether the tap-to-play / take-a-break overlay covers the player."""
        if self.closed:
            return False
        return self.state is GateState.BREAK or (
            self.state is GateState.PLAYING and not self.started
        )

    @property
    def player_visible(self) -> bool:
        """The player frame is only shown (and interactive) while playing."""
        return not self.closed and self.state is GateState.PLAYING

    # -- lifecycle ---------------------------------------------------------

    def open(self) -> None:
        """Reset to the initial state and count one watch.

        Must be called from a running event loop. The watch increment is
        fire-and-forget: it is not awaited and never retried.
        """
        self.state = GateState.PLAYING
        self.started = False
        self.closed = False
        self._cancel_pause_check()
        if self.on_watch and self.watch_task is None:
            self.watch_task = asyncio.create_task(self._track_watch())

    async def _track_watch(self) -> None:
        try:
            await self.on_watch(self.video)
        except Exception as e:
            logger.warning("Failed to track watch for %s: %s", self.video.get("id"), e)

    def close(self) -> None:
        """Tear the session down without touching the player."""
        self.closed = True
        self._cancel_pause_check()

    # -- transitions -------------------------------------------------------

    async def dispatch(self, action: GateAction) -> bool:
        """Deliver a viewer/platform action. Returns True if it caused a transition."""
        handlers = {
            GateAction.START: self.start,
            GateAction.RESUME: self.resume,
            GateAction.DONE: self.done,
            GateAction.WATCH_OTHER: self.watch_other,
            GateAction.ESCAPE: self.escape,
            GateAction.FULLSCREEN_EXIT: self.fullscreen_exit,
        }
        return await handlers[action]()

    async def start(self) -> bool:
        """Explicit play from the initial overlay."""
        if self.closed or self.state is not GateState.PLAYING or self.started:
            return False
        self.started = True
        await self.player.play()
        await self._request_fullscreen()
        return True

    async def on_player_event(self, event: PlayerEvent) -> bool:
        """React to a semantic player event. Returns True if it caused a transition."""
        if self.closed or self.state is not GateState.PLAYING:
            return False
        if event is PlayerEvent.ENDED:
            self._enter_break()
            return True
        if event is PlayerEvent.PAUSED and self.touch_handset:
            # Handsets give no full-screen exit signal; a pause that sticks is the exit.
            self._cancel_pause_check()
            self._pause_task = asyncio.create_task(self._confirm_pause())
        return False

    async def _confirm_pause(self) -> None:
        await asyncio.sleep(self.pause_debounce)
        if self.closed or self.state is not GateState.PLAYING:
            return
        try:
            still_paused = await self.player.is_paused()
        except Exception as e:
            logger.debug("Pause confirmation failed for %s: %s", self.video.get("id"), e)
            return
        if still_paused:
            logger.debug("Pause held for %.1fs, entering break", self.pause_debounce)
            self._enter_break()

    async def fullscreen_exit(self) -> bool:
        if self.closed or self.state is not GateState.PLAYING:
            return False
        self._enter_break()
        await self.player.pause()
        return True

    async def resume(self) -> bool:
        """Back to the same video, replaying the last few seconds."""
        if self.closed or self.state is not GateState.BREAK:
            return False
        self.state = GateState.PLAYING
        self.started = True
        position = await self.player.current_time()
        await self.player.seek_to(max(0.0, position - self.resume_rewind))
        await self.player.play()
        await self._request_fullscreen()
        return True

    async def done(self) -> bool:
        if self.closed or self.state is not GateState.BREAK:
            return False
        self.state = GateState.DONE
        await self.player.pause()
        return True

    async def watch_other(self) -> bool:
        """Leave for the library. Available from break and done."""
        if self.closed or self.state not in (GateState.BREAK, GateState.DONE):
            return False
        await self._stop_and_close()
        return True

    async def escape(self) -> bool:
        """Global escape/cancel gesture. Only closes from the break screen."""
        if self.closed or self.state is not GateState.BREAK:
            return False
        await self._stop_and_close()
        return True

    # -- helpers -----------------------------------------------------------

    def _enter_break(self) -> None:
        self._cancel_pause_check()
        self.state = GateState.BREAK

    def _cancel_pause_check(self) -> None:
        task = self._pause_task
        self._pause_task = None
        if not task or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:  # no running loop
            current = None
        if task is not current:
            task.cancel()

    async def _stop_and_close(self) -> None:
        await self.player.stop()
        self.close()

    async def _request_fullscreen(self) -> None:
        if not self.presentation:
            return
        try:
            await self.presentation.enter_fullscreen()
        except Exception as e:
            logger.debug("Full screen request failed, playing inline: %s", e)

    def snapshot(self) -> dict:
        """Serializable view state. Break/done expose only this video's title and thumbnail."""
        return {
            "state": self.state.value,
            "overlay": self.overlay,
            "player_visible": self.player_visible,
            "started": self.started,
            "closed": self.closed,
            "video": {
                "id": self.video.get("id"),
                "title": self.video.get("title", ""),
                "thumbnail_url": self.video.get("thumbnail_url"),
            },
        }

"""
loop.py: Frame scheduling and the loop driver that binds a Game to a host.

The host (pygame window, a test) supplies two things: a FrameScheduler that
calls back once per display frame, and an EventSource that delivers input and
visibility changes. The driver registers itself on both at start() and
unregisters everything at stop().
"""

import itertools
import logging
from typing import Callable, Dict, List, Optional

from .data_models import RenderModel
from .game import Game

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler:
    """Interface: run a callback at the next frame."""

    def request_frame(self, callback: FrameCallback) -> int:
        raise NotImplementedError

    def cancel_frame(self, handle: int):
        raise NotImplementedError


class ManualScheduler(FrameScheduler):
    """Frames fire only when advance() is called. Used headless and in tests."""

    def __init__(self):
        self.pending: Dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self.pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int):
        self.pending.pop(handle, None)

    def advance(self, now: float) -> int:
        due, self.pending = self.pending, {}
        for callback in due.values():
            callback(now)
        return len(due)


class EventSource:
    """Named listener registry: 'press', 'pause', 'visibility'."""

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def add_listener(self, event: str, fn: Callable):
        self.listeners.setdefault(event, []).append(fn)

    def remove_listener(self, event: str, fn: Callable):
        fns = self.listeners.get(event, [])
        if fn in fns:
            fns.remove(fn)
        if not fns:
            self.listeners.pop(event, None)

    def emit(self, event: str, *args):
        for fn in list(self.listeners.get(event, [])):
            fn(*args)

    def listener_count(self) -> int:
        return sum(len(v) for v in self.listeners.values())


class LoopDriver:
    def __init__(self, game: Game, scheduler: FrameScheduler, events: Optional[EventSource] = None,
                 on_render: Optional[Callable[[RenderModel], None]] = None):
        self.game = game
        self.scheduler = scheduler
        self.events = events or EventSource()
        self.on_render = on_render
        self.running = False
        self.handle: Optional[int] = None
        self._bound = (
            ("press", self._on_press),
            ("pause", self._on_pause),
            ("visibility", self._on_visibility),
        )

    def start(self) -> bool:
        if self.running:
            return False
        self.running = True
        for name, fn in self._bound:
            self.events.add_listener(name, fn)
        self.handle = self.scheduler.request_frame(self._frame)
        logger.debug("Loop started")
        return True

    def stop(self) -> bool:
        if not self.running:
            return False
        self.running = False
        if self.handle is not None:
            self.scheduler.cancel_frame(self.handle)
            self.handle = None
        for name, fn in self._bound:
            self.events.remove_listener(name, fn)
        logger.debug("Loop stopped")
        return True

    def _frame(self, now: float):
        self.handle = None
        if not self.running:
            return
        self.game.update(now)
        if self.on_render:
            self.on_render(self.game.render_model(now))
        if self.running:
            self.handle = self.scheduler.request_frame(self._frame)

    def _on_press(self, now: float):
        self.game.press(now)

    def _on_pause(self, now: float):
        self.game.toggle_pause(now)

    def _on_visibility(self, visible: bool, now: float):
        self.game.set_visible(visible, now)

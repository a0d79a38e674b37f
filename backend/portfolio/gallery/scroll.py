"""
Index-based scroll controller for gallery columns and rows.

Native scroll-snap is replaced by a tween between card positions: a wheel,
swipe or arrow key moves exactly one card, animated with a cubic ease-out
over a fixed duration. Only one scroll runs at a time; input arriving while
it runs is dropped, not queued.

Time is passed in explicitly (or read from an injectable clock) so the
controller can be driven by an animation-frame loop or by tests.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .easing import ease_out_cubic, lerp

logger = logging.getLogger(__name__)

SCROLL_DURATION = 1.2
WHEEL_DEBOUNCE = 0.05
WHEEL_THRESHOLD = 50
SWIPE_THRESHOLD = 30
DESKTOP_BREAKPOINT = 768


class Axis(Enum):
    VERTICAL = 'vertical'      # desktop: independent columns
    HORIZONTAL = 'horizontal'  # mobile: swipeable rows


NEXT_KEYS = {Axis.VERTICAL: 'ArrowDown', Axis.HORIZONTAL: 'ArrowRight'}
PREVIOUS_KEYS = {Axis.VERTICAL: 'ArrowUp', Axis.HORIZONTAL: 'ArrowLeft'}


def layout_for_viewport(width: float, breakpoint: int = DESKTOP_BREAKPOINT) -> Axis:
    return Axis.VERTICAL if width >= breakpoint else Axis.HORIZONTAL


@dataclass
class ScrollState:
    is_scrolling: bool = False
    current_index: int = 0
    target_index: int = 0
    start_time: float = 0.0
    start_position: float = 0.0
    target_position: float = 0.0
    position: float = 0.0


class ScrollController:
    """
    Navigate among `count` cards, each `extent` pixels long along the axis.

    `on_index_change` is called with the new index once a scroll settles;
    it drives the visible index marker.
    """

    def __init__(self, count: int, extent: float, duration: float = SCROLL_DURATION,
                 axis: Axis = Axis.VERTICAL, clock: Callable[[], float] = time.monotonic,
                 on_index_change: Optional[Callable[[int], None]] = None,
                 easing: Callable[[float], float] = ease_out_cubic):
        if count < 0:
            raise ValueError("count must not be negative")
        self.count = count
        self.extent = extent
        self.duration = duration
        self.axis = axis
        self.clock = clock
        self.on_index_change = on_index_change
        self.easing = easing
        self.state = ScrollState()

    @classmethod
    def from_config(cls, count: int, extent: float, **kwargs) -> 'ScrollController':
        from ..config import get_scroll_config
        kwargs.setdefault('duration', get_scroll_config()['duration'])
        return cls(count, extent, **kwargs)

    @property
    def is_scrolling(self) -> bool:
        return self.state.is_scrolling

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def position(self) -> float:
        return self.state.position

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def clamp(self, index: int) -> int:
        return max(0, min(index, self.count - 1))

    def scroll_to_index(self, index: int, now: Optional[float] = None) -> bool:
        """
        Start a scroll to `index` (clamped). Returns False when the request
        is ignored: another scroll is still in flight, there are no cards,
        or the clamped target is the current card.
        """
        now = self._now(now)
        self.frame(now)

        if self.state.is_scrolling:
            logger.debug(f"Ignoring scroll to {index}: scroll already in flight")
            return False
        if self.count == 0:
            return False

        target = self.clamp(index)
        if target == self.state.current_index:
            return False

        self.state.start_position = self.state.position
        self.state.target_position = target * self.extent
        self.state.start_time = now
        self.state.target_index = target
        self.state.is_scrolling = True
        return True

    def step(self, direction: int, now: Optional[float] = None) -> bool:
        return self.scroll_to_index(self.state.current_index + (1 if direction > 0 else -1), now)

    def frame(self, now: Optional[float] = None) -> float:
        """Advance the tween to `now` and return the scroll position to apply."""
        state = self.state
        if not state.is_scrolling:
            return state.position

        now = self._now(now)
        elapsed = now - state.start_time
        progress = 1.0 if self.duration <= 0 else min(max(elapsed / self.duration, 0.0), 1.0)
        state.position = lerp(state.start_position, state.target_position, self.easing(progress))

        if progress >= 1.0:
            state.position = state.target_position
            state.is_scrolling = False
            state.current_index = state.target_index
            if self.on_index_change:
                self.on_index_change(state.current_index)
        return state.position

    def resize(self, extent: float) -> None:
        """Viewport changed size: snap to the current card at the new extent."""
        self.extent = extent
        if not self.state.is_scrolling:
            self.state.position = self.state.current_index * extent


class WheelAccumulator:
    """
    Sum wheel deltas until input pauses for `debounce` seconds, then decide
    on a single direction if the total exceeds `threshold`.
    """

    def __init__(self, debounce: float = WHEEL_DEBOUNCE, threshold: float = WHEEL_THRESHOLD):
        self.debounce = debounce
        self.threshold = threshold
        self.accumulated = 0.0
        self.deadline: Optional[float] = None

    def add(self, delta: float, now: float) -> None:
        self.accumulated += delta
        self.deadline = now + self.debounce

    def flush(self, now: float) -> int:
        """Return -1, 0 or 1 once the debounce window has passed, else 0."""
        if self.deadline is None or now < self.deadline:
            return 0
        total = self.accumulated
        self.reset()
        if abs(total) > self.threshold:
            return 1 if total > 0 else -1
        return 0

    def reset(self) -> None:
        self.accumulated = 0.0
        self.deadline = None


class GestureInput:
    """
    Translate wheel, touch and keyboard input into single-card steps on a
    ScrollController. Handlers return True when the event was consumed
    (the caller should suppress the native scroll).
    """

    def __init__(self, controller: ScrollController, wheel: Optional[WheelAccumulator] = None,
                 swipe_threshold: float = SWIPE_THRESHOLD):
        self.controller = controller
        self.wheel = wheel or WheelAccumulator()
        self.swipe_threshold = swipe_threshold
        self.touch_start: Optional[float] = None

    @classmethod
    def from_config(cls, controller: ScrollController) -> 'GestureInput':
        from ..config import get_scroll_config
        config = get_scroll_config()
        return cls(
            controller,
            WheelAccumulator(config['wheel_debounce'], config['wheel_threshold']),
            swipe_threshold=config['swipe_threshold'],
        )

    def _busy(self, now: float) -> bool:
        self.controller.frame(now)
        return self.controller.is_scrolling

    def on_wheel(self, delta: float, now: Optional[float] = None) -> bool:
        now = self.controller._now(now)
        if self._busy(now):
            return True
        self.wheel.add(delta, now)
        return True

    def poll(self, now: Optional[float] = None) -> bool:
        """Call from the frame loop; fires the debounced wheel decision."""
        now = self.controller._now(now)
        direction = self.wheel.flush(now)
        if direction:
            return self.controller.step(direction, now)
        return False

    def on_touch_start(self, coordinate: float) -> None:
        self.touch_start = coordinate

    def on_touch_end(self, coordinate: float, now: Optional[float] = None) -> bool:
        now = self.controller._now(now)
        start, self.touch_start = self.touch_start, None
        if start is None or self._busy(now):
            return False
        delta = start - coordinate
        if abs(delta) > self.swipe_threshold:
            return self.controller.step(1 if delta > 0 else -1, now)
        return False

    def on_key(self, key: str, now: Optional[float] = None) -> bool:
        now = self.controller._now(now)
        axis = self.controller.axis
        if key not in (NEXT_KEYS[axis], PREVIOUS_KEYS[axis]):
            return False
        if not self._busy(now):
            self.controller.step(1 if key == NEXT_KEYS[axis] else -1, now)
        return True

"""
Interpolation and easing curves for gallery animations.
"""


def clamp01(t: float) -> float:
    return max(0.0, min(1.0, t))


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def ease_out_cubic(t: float) -> float:
    """Fast start, smooth deceleration."""
    t = clamp01(t)
    return 1 - (1 - t) ** 3


class CubicBezier:
    """
    Evaluate a CSS ``cubic-bezier(x1, y1, x2, y2)`` timing function.

    The curve is parametric, so for a given time fraction we first solve
    x(s) = t for s (Newton's method, falling back to bisection) and then
    return y(s).
    """

    def __init__(self, x1: float, y1: float, x2: float, y2: float):
        if not (0 <= x1 <= 1 and 0 <= x2 <= 1):
            raise ValueError("cubic-bezier x values must lie in [0, 1]")
        self.points = (x1, y1, x2, y2)
        self._cx = 3 * x1
        self._bx = 3 * (x2 - x1) - self._cx
        self._ax = 1 - self._cx - self._bx
        self._cy = 3 * y1
        self._by = 3 * (y2 - y1) - self._cy
        self._ay = 1 - self._cy - self._by

    def _x(self, s):
        return ((self._ax * s + self._bx) * s + self._cx) * s

    def _y(self, s):
        return ((self._ay * s + self._by) * s + self._cy) * s

    def _dx(self, s):
        return (3 * self._ax * s + 2 * self._bx) * s + self._cx

    def _solve(self, t, epsilon=1e-6):
        s = t
        for _ in range(8):
            error = self._x(s) - t
            if abs(error) < epsilon:
                return s
            slope = self._dx(s)
            if abs(slope) < 1e-6:
                break
            s -= error / slope

        low, high = 0.0, 1.0
        s = t
        while low < high:
            x = self._x(s)
            if abs(x - t) < epsilon:
                return s
            if t > x:
                low = s
            else:
                high = s
            s = (low + high) / 2
            if high - low < epsilon:
                break
        return s

    def __call__(self, t: float) -> float:
        t = clamp01(t)
        if t in (0.0, 1.0):
            return t
        return self._y(self._solve(t))

    def css(self) -> str:
        return "cubic-bezier({}, {}, {}, {})".format(*(f"{p:g}" for p in self.points))


# Material "standard" curve used by the card-to-detail transition
STANDARD_EASING = CubicBezier(0.4, 0.0, 0.2, 1.0)

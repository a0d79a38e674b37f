from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Rect:
    """An axis-aligned box in viewport pixels, like a DOMRect."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def expand(self, margin: float) -> 'Rect':
        return Rect(self.left - margin, self.top - margin,
                    self.width + 2 * margin, self.height + 2 * margin)

    def intersection(self, other: 'Rect') -> Optional['Rect']:
        left = max(self.left, other.left)
        top = max(self.top, other.top)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return Rect(left, top, right - left, bottom - top)

    def intersects(self, other: 'Rect') -> bool:
        return self.intersection(other) is not None

    def intersection_ratio(self, root: 'Rect') -> float:
        """Visible fraction of this box inside root, as IntersectionObserver reports it."""
        if self.area == 0:
            return 0.0
        overlap = self.intersection(root)
        return overlap.area / self.area if overlap else 0.0

    def translated(self, dx: float = 0.0, dy: float = 0.0) -> 'Rect':
        return Rect(self.left + dx, self.top + dy, self.width, self.height)

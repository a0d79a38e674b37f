"""
Image preloading driven by viewport proximity.

Cards on screen are fetched first, cards within the lookahead margin next,
and everything else (the full project galleries) only when nothing more
urgent is waiting. Fetching is one URL at a time.
"""

import heapq
import itertools
import logging
from enum import IntEnum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from .geometry import Rect

logger = logging.getLogger(__name__)

ROOT_MARGIN = 400
INDICATOR_THRESHOLD = 0.5
FETCH_TIMEOUT = 15


class Priority(IntEnum):
    ON_DEMAND = 1
    NEAR = 2
    VISIBLE = 3


class PreloadQueue:
    """
    Priority queue of image URLs.

    Each URL is fetched at most once. Enqueueing a pending URL again at a
    higher priority promotes it; equal or lower priority is ignored.
    """

    def __init__(self, fetcher: Optional[Callable[[str], None]] = None,
                 session: Optional[requests.Session] = None, timeout: float = FETCH_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.fetcher = fetcher or self._fetch
        self._heap: List[Tuple[int, int, str]] = []
        self._pending: Dict[str, Priority] = {}
        self._counter = itertools.count()
        self.in_flight: Optional[str] = None
        self.completed = set()
        self.failed = set()

    @classmethod
    def from_config(cls, **kwargs) -> 'PreloadQueue':
        from ..config import get_preload_config
        kwargs.setdefault('timeout', get_preload_config()['timeout'])
        return cls(**kwargs)

    def __len__(self):
        return len(self._pending)

    def __contains__(self, url):
        return url in self._pending

    def _fetch(self, url: str) -> None:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()

    def priority_of(self, url: str) -> Optional[Priority]:
        return self._pending.get(url)

    def enqueue(self, url: str, priority: Priority = Priority.ON_DEMAND) -> bool:
        if not url or url in self.completed or url == self.in_flight:
            return False
        current = self._pending.get(url)
        if current is not None and current >= priority:
            return False
        # Stale heap entries for a promoted URL are skipped on pop
        self._pending[url] = priority
        heapq.heappush(self._heap, (-priority, next(self._counter), url))
        return True

    def enqueue_many(self, urls: Iterable[str], priority: Priority = Priority.ON_DEMAND) -> int:
        return sum(1 for url in urls if self.enqueue(url, priority))

    def next(self) -> Optional[str]:
        """Take the most urgent URL, or None if one is already in flight."""
        if self.in_flight is not None:
            return None
        while self._heap:
            negated, _, url = heapq.heappop(self._heap)
            if self._pending.get(url) != -negated:
                continue
            del self._pending[url]
            self.in_flight = url
            return url
        return None

    def complete(self, url: str, ok: bool = True) -> None:
        if url != self.in_flight:
            raise ValueError(f"{url} is not in flight")
        self.in_flight = None
        self.completed.add(url)
        if not ok:
            self.failed.add(url)

    def process_next(self) -> Optional[str]:
        url = self.next()
        if url is None:
            return None
        try:
            self.fetcher(url)
        except Exception as e:
            logger.warning(f"Preload failed for {url}: {e}")
            self.complete(url, ok=False)
        else:
            self.complete(url)
        return url

    def drain(self) -> List[str]:
        processed = []
        while True:
            url = self.process_next()
            if url is None:
                return processed
            processed.append(url)


class ViewportObserver:
    """
    Tracks target rects against the viewport. Intersecting targets are
    queued as VISIBLE, targets within `root_margin` pixels as NEAR.
    """

    def __init__(self, queue: PreloadQueue, root_margin: float = ROOT_MARGIN):
        self.queue = queue
        self.root_margin = root_margin
        self.targets: Dict[str, Tuple[Rect, Tuple[str, ...]]] = {}

    @classmethod
    def from_config(cls, queue: PreloadQueue) -> 'ViewportObserver':
        from ..config import get_preload_config
        return cls(queue, get_preload_config()['root_margin'])

    def observe(self, key: str, rect: Rect, urls: Sequence[str]) -> None:
        self.targets[key] = (rect, tuple(urls))

    def unobserve(self, key: str) -> None:
        self.targets.pop(key, None)

    def move(self, key: str, rect: Rect) -> None:
        _, urls = self.targets[key]
        self.targets[key] = (rect, urls)

    def classify(self, rect: Rect, viewport: Rect) -> Optional[Priority]:
        if rect.intersects(viewport):
            return Priority.VISIBLE
        if rect.intersects(viewport.expand(self.root_margin)):
            return Priority.NEAR
        return None

    def update(self, viewport: Rect) -> Dict[str, Priority]:
        """Queue the targets near `viewport`; returns key -> priority for those seen."""
        seen = {}
        for key, (rect, urls) in self.targets.items():
            priority = self.classify(rect, viewport)
            if priority is None:
                continue
            seen[key] = priority
            self.queue.enqueue_many(urls, priority)
        return seen


def queue_project_galleries(queue: PreloadQueue, cards) -> int:
    """Queue every image of every project card at the lowest priority."""
    return sum(queue.enqueue_many(card.images, Priority.ON_DEMAND) for card in cards)


class ScrollIndicators:
    """Dot indicators for one swipeable row."""

    def __init__(self, count: int, threshold: float = INDICATOR_THRESHOLD):
        self.count = count
        self.threshold = threshold
        self.active = 0

    @classmethod
    def from_config(cls, count: int) -> 'ScrollIndicators':
        from ..config import get_preload_config
        return cls(count, get_preload_config()['indicator_threshold'])

    def update(self, card_rects: Sequence[Rect], row: Rect) -> int:
        best, best_ratio = None, 0.0
        for index, rect in enumerate(card_rects):
            ratio = rect.intersection_ratio(row)
            if ratio >= self.threshold and ratio > best_ratio:
                best, best_ratio = index, ratio
        if best is not None:
            self.active = best
        return self.active

    def dots(self) -> List[bool]:
        return [i == self.active for i in range(self.count)]

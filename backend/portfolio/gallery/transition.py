"""
Card-to-detail transitions.

Desktop uses a shared-element (FLIP) transition: the card image is cloned
into an overlay at its on-screen rect and transformed onto the detail hero.
Mobile expands a circular overlay while the card title stays fixed in place,
then reveals the project content.

Both controllers operate on an explicit PageState instead of the DOM. The
state captured before opening is restored verbatim once closing settles.
"""

import copy
import logging
import time
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Dict, List, Optional

from .easing import STANDARD_EASING, CubicBezier, lerp
from .geometry import Rect

logger = logging.getLogger(__name__)

OPEN_DURATION = 0.35
CLOSE_DURATION = 0.3
MOBILE_REVEAL_DELAY = 0.8
EMPTY_FIELD = '—'


class TransitionState(Enum):
    CLOSED = 'closed'
    OPENING = 'opening'
    OPEN = 'open'
    CLOSING = 'closing'


class TransitionEvent(Enum):
    OPEN = 'open'
    CLOSE = 'close'
    SETTLED = 'settled'


class InvalidTransition(Exception):
    def __init__(self, state: TransitionState, event: TransitionEvent):
        self.state = state
        self.event = event
        super().__init__(f"Cannot apply {event.value} while {state.value}")


TRANSITIONS = {
    (TransitionState.CLOSED, TransitionEvent.OPEN): TransitionState.OPENING,
    (TransitionState.OPENING, TransitionEvent.SETTLED): TransitionState.OPEN,
    (TransitionState.OPEN, TransitionEvent.CLOSE): TransitionState.CLOSING,
    (TransitionState.CLOSING, TransitionEvent.SETTLED): TransitionState.CLOSED,
}


def next_state(state: TransitionState, event: TransitionEvent) -> TransitionState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event)


@dataclass(frozen=True)
class FlipTransform:
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    origin: str = 'top left'

    def at(self, progress: float) -> 'FlipTransform':
        """The transform `progress` of the way from identity to this one."""
        return FlipTransform(
            lerp(0.0, self.translate_x, progress),
            lerp(0.0, self.translate_y, progress),
            lerp(1.0, self.scale_x, progress),
            lerp(1.0, self.scale_y, progress),
            self.origin,
        )

    def css(self) -> str:
        return (f"translate({self.translate_x:g}px, {self.translate_y:g}px) "
                f"scale({self.scale_x:g}, {self.scale_y:g})")


def compute_flip(first: Rect, last: Rect) -> FlipTransform:
    """Transform that maps the `first` box onto the `last` box, origin top-left."""
    scale_x = last.width / first.width if first.width else 1.0
    scale_y = last.height / first.height if first.height else 1.0
    return FlipTransform(last.left - first.left, last.top - first.top, scale_x, scale_y)


def transition_css(duration: float, easing: CubicBezier) -> str:
    return f"transform {round(duration * 1000)}ms {easing.css()}"


@dataclass
class PageState:
    """The parts of the page a transition touches."""
    modal_open: bool = False
    aria_hidden: bool = True
    body_overflow: str = ''
    modal_classes: List[str] = field(default_factory=list)
    css_vars: Dict[str, str] = field(default_factory=dict)
    modal_content: Dict[str, object] = field(default_factory=dict)
    overlays: List[dict] = field(default_factory=list)
    floating_title: Optional[dict] = None
    overlay_active: bool = False
    info_button_hidden: bool = False
    scroll_positions: Dict[str, float] = field(default_factory=dict)

    def snapshot(self) -> 'PageState':
        return copy.deepcopy(self)

    def restore(self, saved: 'PageState') -> None:
        """Write every field of `saved` back onto this object."""
        for f in fields(self):
            setattr(self, f.name, getattr(saved, f.name))

    def add_class(self, name: str) -> None:
        if name not in self.modal_classes:
            self.modal_classes.append(name)

    def remove_class(self, *names: str) -> None:
        self.modal_classes = [c for c in self.modal_classes if c not in names]


@dataclass
class ProjectCard:
    id: str
    title: str
    category: str
    description: str = ''
    image_src: str = ''
    images: List[str] = field(default_factory=list)
    year: str = ''
    location: str = ''
    type: str = ''

    @classmethod
    def from_project(cls, project: dict, catalog=None) -> 'ProjectCard':
        """
        Build a card from a serialized project. With an ImageCatalog the
        thumbnail and gallery ids are resolved to delivery URLs.
        """
        thumbnail = project.get('thumbnail', '')
        images = list(project.get('images') or [])
        if catalog is not None:
            thumbnail = catalog.url(thumbnail) if thumbnail else ''
            images = [catalog.url(image_id) for image_id in images]
        return cls(
            id=project['id'],
            title=project.get('title', ''),
            category=project.get('category', ''),
            description=project.get('fullDescription') or project.get('shortDescription', ''),
            image_src=thumbnail,
            images=images,
            year=project.get('year', ''),
            location=project.get('location', ''),
            type=project.get('type', ''),
        )


class _Transition:
    def __init__(self, page: Optional[PageState] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.page = page if page is not None else PageState()
        self.clock = clock
        self.state = TransitionState.CLOSED
        self.started_at = 0.0
        self.card: Optional[ProjectCard] = None
        self._saved: Optional[PageState] = None

    @property
    def is_animating(self) -> bool:
        return self.state in (TransitionState.OPENING, TransitionState.CLOSING)

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def _advance(self, event: TransitionEvent, now: float) -> None:
        previous = self.state
        self.state = next_state(self.state, event)
        self.started_at = now
        logger.debug(f"{type(self).__name__}: {previous.value} -> {self.state.value}")

    def _restore(self) -> None:
        if self._saved is not None:
            self.page.restore(self._saved)
        self._saved = None
        self.card = None

    def on_key(self, key: str, now: Optional[float] = None) -> bool:
        """Escape closes an open project; anything else is ignored."""
        if key != 'Escape' or self.state != TransitionState.OPEN:
            return False
        return self.close(now=now)


class SharedElementTransition(_Transition):
    """Desktop card-to-detail FLIP transition."""

    def __init__(self, page: Optional[PageState] = None, open_duration: float = OPEN_DURATION,
                 close_duration: float = CLOSE_DURATION, easing: CubicBezier = STANDARD_EASING,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(page, clock)
        self.open_duration = open_duration
        self.close_duration = close_duration
        self.easing = easing
        self.flip: Optional[FlipTransform] = None

    @classmethod
    def from_config(cls, page: Optional[PageState] = None, **kwargs) -> 'SharedElementTransition':
        from ..config import get_transition_config
        config = get_transition_config()
        kwargs.setdefault('open_duration', config['open_duration'])
        kwargs.setdefault('close_duration', config['close_duration'])
        kwargs.setdefault('easing', CubicBezier(*config['easing']))
        return cls(page, **kwargs)

    def open(self, card: ProjectCard, source: Rect, hero: Rect, now: Optional[float] = None) -> bool:
        """
        Start opening `card`. `source` is the card image's rect and `hero`
        the detail hero's rect once the modal is laid out.
        """
        if self.state != TransitionState.CLOSED:
            logger.debug(f"Ignoring open of {card.id} while {self.state.value}")
            return False
        now = self._now(now)
        self._saved = self.page.snapshot()
        self.card = card

        page = self.page
        page.modal_content = {
            'title': card.title,
            'description': card.description,
            'hero': card.image_src,
            'gallery': list(card.images),
        }
        page.overlays.append({'kind': 'flip-image', 'src': card.image_src, 'rect': source})
        page.add_class('open')
        page.modal_open = True
        page.aria_hidden = False
        page.body_overflow = 'hidden'

        self.flip = compute_flip(source, hero)
        self._advance(TransitionEvent.OPEN, now)
        return True

    def close(self, source: Optional[Rect] = None, hero: Optional[Rect] = None,
              now: Optional[float] = None) -> bool:
        """
        Start closing. With both rects the hero image flies back onto the
        card; without them the modal just fades.
        """
        if self.state != TransitionState.OPEN:
            logger.debug(f"Ignoring close while {self.state.value}")
            return False
        now = self._now(now)

        page = self.page
        if source is not None and hero is not None:
            page.overlays.append({'kind': 'flip-image', 'src': page.modal_content.get('hero', ''),
                                  'rect': hero})
            self.flip = compute_flip(hero, source)
        else:
            self.flip = None
        page.remove_class('open')
        page.modal_open = False
        page.aria_hidden = True

        self._advance(TransitionEvent.CLOSE, now)
        return True

    @property
    def duration(self) -> float:
        return self.close_duration if self.state == TransitionState.CLOSING else self.open_duration

    def transform(self, now: Optional[float] = None) -> Optional[FlipTransform]:
        """Current transform of the flip overlay, or None when nothing is flying."""
        if not self.is_animating or self.flip is None:
            return None
        elapsed = self._now(now) - self.started_at
        progress = min(max(elapsed / self.duration, 0.0), 1.0) if self.duration > 0 else 1.0
        return self.flip.at(self.easing(progress))

    def css_transition(self) -> str:
        return transition_css(self.duration, self.easing)

    def tick(self, now: Optional[float] = None) -> TransitionState:
        """Settle a transient state once its duration has elapsed."""
        if not self.is_animating:
            return self.state
        now = self._now(now)
        if now - self.started_at < self.duration:
            return self.state

        if self.state == TransitionState.OPENING:
            self.page.overlays = [o for o in self.page.overlays if o.get('kind') != 'flip-image']
        else:
            self._restore()
        self.flip = None
        self._advance(TransitionEvent.SETTLED, now)
        return self.state


class MobileProjectTransition(_Transition):
    """
    Mobile variant: a white circle expands over the gallery, the tapped
    card's title floats where it was, and the content appears after the
    reveal delay. Closing restores everything at once.
    """

    def __init__(self, page: Optional[PageState] = None, reveal_delay: float = MOBILE_REVEAL_DELAY,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(page, clock)
        self.reveal_delay = reveal_delay

    @classmethod
    def from_config(cls, page: Optional[PageState] = None, **kwargs) -> 'MobileProjectTransition':
        from ..config import get_transition_config
        kwargs.setdefault('reveal_delay', get_transition_config()['mobile_reveal_delay'])
        return cls(page, **kwargs)

    def open(self, card: ProjectCard, title_rect: Rect, now: Optional[float] = None) -> bool:
        if self.state != TransitionState.CLOSED:
            logger.debug(f"Ignoring open of {card.id} while {self.state.value}")
            return False
        now = self._now(now)
        self._saved = self.page.snapshot()
        self.card = card

        # Residential is the upper row, commercial the lower one
        row = 'upper' if card.category == 'residential' else 'lower'
        page = self.page
        page.floating_title = {
            'text': card.title,
            'top': title_rect.top,
            'left': title_rect.left,
            'row': row,
        }
        page.remove_class('modal--upper', 'modal--lower')
        page.add_class(f'modal--{row}')
        if row == 'upper':
            page.css_vars['--title-bottom'] = f"{title_rect.bottom:g}px"
        page.info_button_hidden = True
        page.overlay_active = True

        self._advance(TransitionEvent.OPEN, now)
        return True

    def tick(self, now: Optional[float] = None) -> TransitionState:
        if self.state != TransitionState.OPENING:
            return self.state
        now = self._now(now)
        if now - self.started_at < self.reveal_delay:
            return self.state

        card = self.card
        page = self.page
        page.modal_content = {
            'year': card.year or EMPTY_FIELD,
            'location': card.location or EMPTY_FIELD,
            'type': card.type or EMPTY_FIELD,
            'description': card.description,
            'gallery': list(card.images),
        }
        page.add_class('open')
        page.modal_open = True
        page.aria_hidden = False
        self._advance(TransitionEvent.SETTLED, now)
        return self.state

    def close(self, now: Optional[float] = None) -> bool:
        if self.state != TransitionState.OPEN:
            logger.debug(f"Ignoring close while {self.state.value}")
            return False
        now = self._now(now)
        self._advance(TransitionEvent.CLOSE, now)
        self._restore()
        self._advance(TransitionEvent.SETTLED, now)
        return True

"""
Tests for the gallery interaction engine: easing, scrolling and transitions.
"""

from django.test import SimpleTestCase

from portfolio.gallery.easing import STANDARD_EASING, CubicBezier, ease_out_cubic
from portfolio.gallery.geometry import Rect
from portfolio.gallery.scroll import (
    Axis,
    GestureInput,
    ScrollController,
    WheelAccumulator,
    layout_for_viewport,
)
from portfolio.gallery.transition import (
    InvalidTransition,
    MobileProjectTransition,
    PageState,
    ProjectCard,
    SharedElementTransition,
    TransitionEvent,
    TransitionState,
    compute_flip,
    next_state,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class EasingTest(SimpleTestCase):

    def test_ease_out_cubic_endpoints(self):
        self.assertEqual(ease_out_cubic(0), 0)
        self.assertEqual(ease_out_cubic(1), 1)
        self.assertAlmostEqual(ease_out_cubic(0.5), 0.875)

    def test_ease_out_cubic_clamps(self):
        self.assertEqual(ease_out_cubic(-1), 0)
        self.assertEqual(ease_out_cubic(2), 1)

    def test_cubic_bezier_linear(self):
        linear = CubicBezier(0, 0, 1, 1)
        for t in (0.1, 0.25, 0.5, 0.9):
            self.assertAlmostEqual(linear(t), t, places=4)

    def test_standard_easing_is_monotonic(self):
        values = [STANDARD_EASING(i / 20) for i in range(21)]
        self.assertEqual(values[0], 0)
        self.assertEqual(values[-1], 1)
        self.assertEqual(values, sorted(values))

    def test_css(self):
        self.assertEqual(STANDARD_EASING.css(), 'cubic-bezier(0.4, 0, 0.2, 1)')

    def test_invalid_control_points(self):
        with self.assertRaises(ValueError):
            CubicBezier(1.5, 0, 0.2, 1)


class ScrollControllerTest(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.changes = []
        self.controller = ScrollController(
            count=4, extent=500, clock=self.clock, on_index_change=self.changes.append,
        )

    def test_layout_for_viewport(self):
        self.assertEqual(layout_for_viewport(1024), Axis.VERTICAL)
        self.assertEqual(layout_for_viewport(768), Axis.VERTICAL)
        self.assertEqual(layout_for_viewport(767), Axis.HORIZONTAL)

    def test_scroll_animates_to_target(self):
        self.assertTrue(self.controller.scroll_to_index(1))
        self.assertTrue(self.controller.is_scrolling)

        self.clock.advance(0.6)
        midway = self.controller.frame()
        self.assertAlmostEqual(midway, 500 * ease_out_cubic(0.5))

        self.clock.advance(0.6)
        self.assertEqual(self.controller.frame(), 500)
        self.assertFalse(self.controller.is_scrolling)
        self.assertEqual(self.controller.current_index, 1)
        self.assertEqual(self.changes, [1])

    def test_second_request_during_scroll_is_noop(self):
        self.controller.scroll_to_index(1)
        self.clock.advance(0.5)
        self.assertFalse(self.controller.scroll_to_index(3))

        self.clock.advance(1.0)
        self.controller.frame()
        self.assertEqual(self.controller.current_index, 1)

    def test_request_after_duration_is_accepted(self):
        self.controller.scroll_to_index(1)
        self.clock.advance(1.2)
        self.assertTrue(self.controller.scroll_to_index(2))

    def test_clamps_to_bounds(self):
        self.controller.scroll_to_index(99)
        self.clock.advance(2)
        self.controller.frame()
        self.assertEqual(self.controller.current_index, 3)
        self.assertEqual(self.controller.position, 1500)

        self.controller.scroll_to_index(-5)
        self.clock.advance(2)
        self.controller.frame()
        self.assertEqual(self.controller.current_index, 0)

    def test_never_passes_edges(self):
        for _ in range(10):
            self.controller.step(-1)
            self.clock.advance(1.2)
            self.controller.frame()
        self.assertEqual(self.controller.current_index, 0)
        self.assertEqual(self.changes, [])

    def test_same_index_is_noop(self):
        self.assertFalse(self.controller.scroll_to_index(0))
        self.assertFalse(self.controller.is_scrolling)

    def test_empty_gallery(self):
        controller = ScrollController(count=0, extent=500, clock=self.clock)
        self.assertFalse(controller.scroll_to_index(1))

    def test_resize_snaps_to_current_card(self):
        self.controller.scroll_to_index(2)
        self.clock.advance(1.2)
        self.controller.frame()
        self.controller.resize(300)
        self.assertEqual(self.controller.position, 600)


class GestureInputTest(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.controller = ScrollController(count=5, extent=400, clock=self.clock)
        self.gestures = GestureInput(self.controller)

    def test_wheel_debounce(self):
        accumulator = WheelAccumulator()
        accumulator.add(30, now=0.0)
        accumulator.add(30, now=0.02)
        self.assertEqual(accumulator.flush(0.05), 0)
        self.assertEqual(accumulator.flush(0.08), 1)
        self.assertEqual(accumulator.accumulated, 0)

    def test_small_wheel_movement_ignored(self):
        self.gestures.on_wheel(20)
        self.gestures.on_wheel(20)
        self.clock.advance(0.1)
        self.assertFalse(self.gestures.poll())
        self.assertFalse(self.controller.is_scrolling)

    def test_wheel_steps_one_card(self):
        self.gestures.on_wheel(120)
        self.clock.advance(0.06)
        self.assertTrue(self.gestures.poll())
        self.clock.advance(1.2)
        self.controller.frame()
        self.assertEqual(self.controller.current_index, 1)

    def test_wheel_during_scroll_is_dropped(self):
        self.controller.scroll_to_index(1)
        self.clock.advance(0.1)
        self.gestures.on_wheel(500)
        self.clock.advance(0.1)
        self.assertFalse(self.gestures.poll())

    def test_swipe_threshold(self):
        self.gestures.on_touch_start(200)
        self.assertFalse(self.gestures.on_touch_end(180))

        self.gestures.on_touch_start(200)
        self.assertTrue(self.gestures.on_touch_end(150))

    def test_keys_follow_axis(self):
        self.assertTrue(self.gestures.on_key('ArrowDown'))
        self.assertTrue(self.controller.is_scrolling)
        self.assertFalse(self.gestures.on_key('ArrowRight'))

        horizontal = ScrollController(count=3, extent=300, axis=Axis.HORIZONTAL, clock=self.clock)
        gestures = GestureInput(horizontal)
        self.assertTrue(gestures.on_key('ArrowRight'))
        self.assertTrue(horizontal.is_scrolling)
        self.assertFalse(gestures.on_key('ArrowDown'))


CEDAR_HOUSE = ProjectCard(
    id='cedar-house',
    title='Cedar House',
    category='residential',
    description='A timber house in the woods.',
    image_src='https://imagedelivery.net/hash/cedar/w=700',
    images=['https://imagedelivery.net/hash/cedar-1/public',
            'https://imagedelivery.net/hash/cedar-2/public'],
    year='2022',
    location='',
)


class TransitionStateTest(SimpleTestCase):

    def test_legal_cycle(self):
        state = TransitionState.CLOSED
        for event in (TransitionEvent.OPEN, TransitionEvent.SETTLED,
                      TransitionEvent.CLOSE, TransitionEvent.SETTLED):
            state = next_state(state, event)
        self.assertEqual(state, TransitionState.CLOSED)

    def test_illegal_events(self):
        with self.assertRaises(InvalidTransition):
            next_state(TransitionState.OPENING, TransitionEvent.CLOSE)
        with self.assertRaises(InvalidTransition):
            next_state(TransitionState.CLOSED, TransitionEvent.CLOSE)

    def test_compute_flip(self):
        flip = compute_flip(Rect(100, 200, 200, 150), Rect(0, 50, 800, 600))
        self.assertEqual((flip.translate_x, flip.translate_y), (-100, -150))
        self.assertEqual((flip.scale_x, flip.scale_y), (4, 4))
        self.assertEqual(flip.origin, 'top left')
        self.assertEqual(flip.css(), 'translate(-100px, -150px) scale(4, 4)')

    def test_flip_progress(self):
        flip = compute_flip(Rect(0, 0, 100, 100), Rect(100, 0, 200, 100))
        self.assertEqual(flip.at(0).css(), 'translate(0px, 0px) scale(1, 1)')
        self.assertEqual(flip.at(0.5).css(), 'translate(50px, 0px) scale(1.5, 1)')


class SharedElementTransitionTest(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.page = PageState(scroll_positions={'residential': 1000.0, 'commercial': 0.0})
        self.transition = SharedElementTransition(self.page, clock=self.clock)
        self.source = Rect(100, 300, 240, 320)
        self.hero = Rect(0, 80, 960, 540)

    def _open(self):
        self.assertTrue(self.transition.open(CEDAR_HOUSE, self.source, self.hero))
        self.clock.advance(0.35)
        self.assertEqual(self.transition.tick(), TransitionState.OPEN)

    def test_open_sets_page_state(self):
        self.transition.open(CEDAR_HOUSE, self.source, self.hero)
        page = self.transition.page
        self.assertEqual(self.transition.state, TransitionState.OPENING)
        self.assertTrue(page.modal_open)
        self.assertFalse(page.aria_hidden)
        self.assertEqual(page.body_overflow, 'hidden')
        self.assertIn('open', page.modal_classes)
        self.assertEqual(page.modal_content['title'], 'Cedar House')
        self.assertEqual(len(page.overlays), 1)
        self.assertEqual(self.transition.css_transition(),
                         'transform 350ms cubic-bezier(0.4, 0, 0.2, 1)')

    def test_flip_overlay_removed_when_settled(self):
        self._open()
        self.assertEqual(self.transition.page.overlays, [])
        self.assertIsNone(self.transition.transform())

    def test_transform_interpolates(self):
        self.transition.open(CEDAR_HOUSE, self.source, self.hero)
        self.assertEqual(self.transition.transform().css(), 'translate(0px, 0px) scale(1, 1)')
        self.clock.advance(0.35)
        final = self.transition.transform()
        self.assertAlmostEqual(final.scale_x, 4.0)

    def test_open_close_restores_page_state(self):
        before = self.page.snapshot()
        self._open()

        self.assertTrue(self.transition.close(self.source, self.hero))
        self.assertEqual(self.transition.state, TransitionState.CLOSING)
        self.assertFalse(self.transition.page.modal_open)
        self.assertEqual(self.transition.css_transition(),
                         'transform 300ms cubic-bezier(0.4, 0, 0.2, 1)')

        self.clock.advance(0.31)
        self.assertEqual(self.transition.tick(), TransitionState.CLOSED)
        self.assertEqual(self.page, before)
        self.assertIs(self.transition.page, self.page)

    def test_close_without_rects(self):
        before = self.page.snapshot()
        self._open()
        self.assertTrue(self.transition.close())
        self.assertIsNone(self.transition.transform())
        self.clock.advance(0.31)
        self.transition.tick()
        self.assertEqual(self.page, before)
        self.assertIs(self.transition.page, self.page)

    def test_reopen_after_close_starts_from_clean_page(self):
        before = self.page.snapshot()
        self._open()
        self.transition.close(self.source, self.hero)
        self.clock.advance(0.31)
        self.transition.tick()

        self._open()
        self.assertEqual(self.page.body_overflow, 'hidden')
        self.assertEqual(self.page.modal_classes, ['open'])
        self.transition.close()
        self.clock.advance(0.31)
        self.transition.tick()
        self.assertEqual(self.page, before)

    def test_escape_closes_open_project(self):
        self._open()
        self.assertFalse(self.transition.on_key('Enter'))
        self.assertTrue(self.transition.on_key('Escape'))
        self.assertEqual(self.transition.state, TransitionState.CLOSING)

    def test_escape_ignored_while_opening(self):
        self.transition.open(CEDAR_HOUSE, self.source, self.hero)
        self.assertFalse(self.transition.on_key('Escape'))
        self.assertEqual(self.transition.state, TransitionState.OPENING)

    def test_concurrent_requests_rejected(self):
        self.transition.open(CEDAR_HOUSE, self.source, self.hero)
        self.assertFalse(self.transition.open(CEDAR_HOUSE, self.source, self.hero))
        self.assertFalse(self.transition.close())

        self.clock.advance(0.35)
        self.transition.tick()
        self.transition.close()
        self.assertFalse(self.transition.open(CEDAR_HOUSE, self.source, self.hero))
        self.assertFalse(self.transition.close())

    def test_close_when_closed(self):
        self.assertFalse(self.transition.close())
        self.assertEqual(self.transition.state, TransitionState.CLOSED)

    def test_tick_before_duration(self):
        self.transition.open(CEDAR_HOUSE, self.source, self.hero)
        self.clock.advance(0.2)
        self.assertEqual(self.transition.tick(), TransitionState.OPENING)


class MobileProjectTransitionTest(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.page = PageState()
        self.transition = MobileProjectTransition(self.page, clock=self.clock)
        self.title_rect = Rect(16, 200, 300, 48)

    def test_open_floats_title_then_reveals(self):
        self.assertTrue(self.transition.open(CEDAR_HOUSE, self.title_rect))
        page = self.transition.page
        self.assertTrue(page.overlay_active)
        self.assertTrue(page.info_button_hidden)
        self.assertEqual(page.floating_title['row'], 'upper')
        self.assertIn('modal--upper', page.modal_classes)
        self.assertEqual(page.css_vars['--title-bottom'], '248px')
        self.assertFalse(page.modal_open)

        self.clock.advance(0.5)
        self.assertEqual(self.transition.tick(), TransitionState.OPENING)

        self.clock.advance(0.31)
        self.assertEqual(self.transition.tick(), TransitionState.OPEN)
        self.assertTrue(page.modal_open)
        self.assertEqual(page.modal_content['year'], '2022')
        self.assertEqual(page.modal_content['location'], '—')

    def test_commercial_uses_lower_row(self):
        card = ProjectCard(id='office', title='Office', category='commercial')
        self.transition.open(card, self.title_rect)
        self.assertEqual(self.transition.page.floating_title['row'], 'lower')
        self.assertNotIn('--title-bottom', self.transition.page.css_vars)

    def test_close_restores_immediately(self):
        before = self.page.snapshot()
        self.transition.open(CEDAR_HOUSE, self.title_rect)
        self.clock.advance(0.8)
        self.transition.tick()

        self.assertTrue(self.transition.close())
        self.assertEqual(self.transition.state, TransitionState.CLOSED)
        self.assertEqual(self.page, before)
        self.assertIs(self.transition.page, self.page)

    def test_close_during_reveal_rejected(self):
        self.transition.open(CEDAR_HOUSE, self.title_rect)
        self.assertFalse(self.transition.close())

    def test_escape_closes_and_restores(self):
        before = self.page.snapshot()
        self.transition.open(CEDAR_HOUSE, self.title_rect)
        self.assertFalse(self.transition.on_key('Escape'))

        self.clock.advance(0.81)
        self.transition.tick()
        self.assertTrue(self.transition.on_key('Escape'))
        self.assertEqual(self.transition.state, TransitionState.CLOSED)
        self.assertEqual(self.page, before)
        self.assertIsNone(self.page.floating_title)

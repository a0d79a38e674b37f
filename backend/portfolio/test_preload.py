"""
Tests for the preload queue, viewport observer and scroll indicators.
"""

from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase

from portfolio.gallery.geometry import Rect
from portfolio.gallery.preload import (
    Priority,
    PreloadQueue,
    ScrollIndicators,
    ViewportObserver,
    queue_project_galleries,
)
from portfolio.gallery.transition import ProjectCard


class PreloadQueueTest(SimpleTestCase):

    def setUp(self):
        self.fetched = []
        self.queue = PreloadQueue(fetcher=self.fetched.append)

    def test_priority_order(self):
        self.queue.enqueue('on-demand', Priority.ON_DEMAND)
        self.queue.enqueue('near', Priority.NEAR)
        self.queue.enqueue('visible', Priority.VISIBLE)
        self.assertEqual(self.queue.drain(), ['visible', 'near', 'on-demand'])

    def test_fifo_within_priority(self):
        for url in ('a', 'b', 'c'):
            self.queue.enqueue(url, Priority.NEAR)
        self.assertEqual(self.queue.drain(), ['a', 'b', 'c'])

    def test_deduplicates(self):
        self.assertTrue(self.queue.enqueue('a', Priority.NEAR))
        self.assertFalse(self.queue.enqueue('a', Priority.NEAR))
        self.assertFalse(self.queue.enqueue('a', Priority.ON_DEMAND))
        self.assertEqual(len(self.queue), 1)
        self.queue.drain()
        self.assertFalse(self.queue.enqueue('a', Priority.VISIBLE))
        self.assertEqual(self.fetched, ['a'])

    def test_promotion(self):
        self.queue.enqueue('a', Priority.ON_DEMAND)
        self.queue.enqueue('b', Priority.NEAR)
        self.assertTrue(self.queue.enqueue('a', Priority.VISIBLE))
        self.assertEqual(self.queue.priority_of('a'), Priority.VISIBLE)
        self.assertEqual(self.queue.drain(), ['a', 'b'])

    def test_single_in_flight(self):
        self.queue.enqueue('a')
        self.queue.enqueue('b')
        self.assertEqual(self.queue.next(), 'a')
        self.assertIsNone(self.queue.next())
        self.assertFalse(self.queue.enqueue('a', Priority.VISIBLE))
        self.queue.complete('a')
        self.assertEqual(self.queue.next(), 'b')

    def test_complete_wrong_url(self):
        with self.assertRaises(ValueError):
            self.queue.complete('nothing')

    def test_failure_is_logged_and_queue_moves_on(self):
        def flaky(url):
            if url == 'bad':
                raise requests.ConnectionError('offline')
            self.fetched.append(url)

        queue = PreloadQueue(fetcher=flaky)
        queue.enqueue('bad', Priority.VISIBLE)
        queue.enqueue('good', Priority.NEAR)
        with self.assertLogs('portfolio.gallery.preload', level='WARNING'):
            processed = queue.drain()
        self.assertEqual(processed, ['bad', 'good'])
        self.assertEqual(queue.failed, {'bad'})
        self.assertEqual(self.fetched, ['good'])

    def test_default_fetcher_uses_session(self):
        session = MagicMock()
        queue = PreloadQueue(session=session, timeout=3)
        queue.enqueue('https://imagedelivery.net/h/a/public')
        queue.drain()
        session.get.assert_called_once_with('https://imagedelivery.net/h/a/public', timeout=3)
        session.get.return_value.raise_for_status.assert_called_once()


class ViewportObserverTest(SimpleTestCase):

    def setUp(self):
        self.queue = PreloadQueue(fetcher=lambda url: None)
        self.observer = ViewportObserver(self.queue, root_margin=400)
        self.viewport = Rect(0, 0, 1000, 800)

    def test_classifies_targets(self):
        self.observer.observe('on-screen', Rect(0, 100, 300, 400), ['u1'])
        self.observer.observe('below', Rect(0, 1000, 300, 400), ['u2'])
        self.observer.observe('far', Rect(0, 3000, 300, 400), ['u3'])

        seen = self.observer.update(self.viewport)

        self.assertEqual(seen, {'on-screen': Priority.VISIBLE, 'below': Priority.NEAR})
        self.assertEqual(self.queue.priority_of('u1'), Priority.VISIBLE)
        self.assertEqual(self.queue.priority_of('u2'), Priority.NEAR)
        self.assertNotIn('u3', self.queue)

    def test_scrolling_promotes_near_target(self):
        self.observer.observe('below', Rect(0, 1000, 300, 400), ['u2'])
        self.observer.update(self.viewport)
        self.observer.update(Rect(0, 600, 1000, 800))
        self.assertEqual(self.queue.priority_of('u2'), Priority.VISIBLE)

    def test_unobserve(self):
        self.observer.observe('card', Rect(0, 0, 10, 10), ['u1'])
        self.observer.unobserve('card')
        self.assertEqual(self.observer.update(self.viewport), {})

    def test_queue_project_galleries(self):
        cards = [
            ProjectCard(id='a', title='A', category='residential', images=['x', 'y']),
            ProjectCard(id='b', title='B', category='commercial', images=['y', 'z']),
        ]
        self.assertEqual(queue_project_galleries(self.queue, cards), 3)
        self.assertEqual(self.queue.priority_of('x'), Priority.ON_DEMAND)


class ScrollIndicatorsTest(SimpleTestCase):

    def test_active_dot_follows_visible_card(self):
        row = Rect(0, 0, 400, 300)
        indicators = ScrollIndicators(3)
        cards = [Rect(-300, 0, 400, 300), Rect(100, 0, 400, 300), Rect(500, 0, 400, 300)]

        self.assertEqual(indicators.update(cards, row), 1)
        self.assertEqual(indicators.dots(), [False, True, False])

    def test_keeps_previous_when_nothing_past_threshold(self):
        row = Rect(0, 0, 400, 300)
        indicators = ScrollIndicators(2)
        indicators.update([Rect(-400, 0, 400, 300), Rect(0, 0, 400, 300)], row)
        self.assertEqual(indicators.update([Rect(-210, 0, 400, 300), Rect(250, 0, 400, 300)], row), 1)

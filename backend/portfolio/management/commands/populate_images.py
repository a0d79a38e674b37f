"""
Management command to seed the library with placeholder photographs.
Downloads seeded images from picsum.photos, uploads them to the image host
and stores their metadata with a plausible focal point.
"""

import logging
import random
import time
from datetime import datetime, timezone

import requests
from django.core.management.base import BaseCommand

from portfolio.config import get_seeding_config
from portfolio.error_handlers import APIError
from portfolio.image_host import ImageHostError, get_image_host_client
from portfolio.services import save_image

logger = logging.getLogger(__name__)

# (id, width, height, seed): a mix of orientations for cards and heroes
PLACEHOLDER_IMAGES = [
    ('landscape-2', 1920, 1080, 'arch2'),
    ('landscape-3', 1600, 900, 'building1'),
    ('landscape-4', 1600, 900, 'building2'),
    ('landscape-5', 1920, 1200, 'interior1'),
    ('landscape-6', 1920, 1200, 'interior2'),
    ('landscape-7', 1800, 1000, 'design1'),
    ('landscape-8', 1800, 1000, 'design2'),
    ('landscape-9', 2000, 1200, 'space1'),
    ('landscape-10', 2000, 1200, 'space2'),
    ('landscape-11', 1920, 1080, 'modern1'),
    ('landscape-12', 1920, 1080, 'modern2'),
    ('portrait-2', 1200, 1600, 'house2'),
    ('portrait-3', 1200, 1800, 'room1'),
    ('portrait-4', 1200, 1800, 'room2'),
    ('portrait-5', 1000, 1500, 'facade1'),
    ('portrait-6', 1000, 1500, 'facade2'),
    ('portrait-7', 1200, 1600, 'tower1'),
    ('portrait-8', 1200, 1600, 'tower2'),
    ('portrait-9', 1200, 1800, 'door1'),
    ('portrait-10', 1200, 1800, 'door2'),
    ('portrait-11', 1000, 1400, 'window1'),
    ('portrait-12', 1000, 1400, 'window2'),
    ('portrait-13', 1200, 1600, 'hall1'),
    ('portrait-14', 1200, 1600, 'hall2'),
    ('square-2', 1200, 1200, 'detail2'),
    ('square-3', 1400, 1400, 'texture1'),
    ('square-4', 1400, 1400, 'texture2'),
    ('square-5', 1200, 1200, 'corner1'),
    ('square-6', 1200, 1200, 'corner2'),
    ('square-7', 1500, 1500, 'light1'),
    ('square-8', 1500, 1500, 'light2'),
    ('wide-1', 2100, 900, 'pano1'),
    ('wide-2', 2100, 900, 'pano2'),
    ('wide-3', 2400, 1000, 'skyline1'),
    ('wide-4', 2400, 1000, 'skyline2'),
    ('tall-1', 1080, 1920, 'vertical1'),
    ('tall-2', 1080, 1920, 'vertical2'),
]


def random_focal_point(rng=random):
    """Focal point biased toward the centre, each axis in [0.2, 0.8]."""
    def biased():
        r = (rng.random() + rng.random() + rng.random()) / 3
        return 0.2 + r * 0.6

    return {'x': round(biased(), 2), 'y': round(biased(), 2)}


def download_placeholder(source, width, height, seed, timeout=30):
    response = requests.get(f"{source.rstrip('/')}/seed/{seed}/{width}/{height}", timeout=timeout)
    response.raise_for_status()
    return response.content


class Command(BaseCommand):
    help = 'Seed the image library with placeholder images from picsum.photos'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            help='Only process the first N placeholder images',
        )
        parser.add_argument(
            '--delay',
            type=float,
            help='Seconds to wait between uploads (default from config: 0.2)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the images that would be created without uploading',
        )

    def handle(self, *args, **options):
        config = get_seeding_config()
        delay = options['delay'] if options.get('delay') is not None else config['delay']
        placeholders = PLACEHOLDER_IMAGES[:options['limit']] if options.get('limit') else PLACEHOLDER_IMAGES
        total = len(placeholders)

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN - No images will be uploaded'))
            for image_id, width, height, seed in placeholders:
                self.stdout.write(f'  {image_id} ({width}x{height}, seed "{seed}")')
            return

        client = get_image_host_client()
        uploaded = 0
        failed = 0

        for index, (image_id, width, height, seed) in enumerate(placeholders, start=1):
            self.stdout.write(f'[{index}/{total}] Processing {image_id}...')
            filename = f'{image_id}.jpg'
            try:
                content = download_placeholder(config['source'], width, height, seed)
                result = client.upload(content, filename)
                save_image(image_id, {
                    'cloudflareId': result.image_id,
                    'accountHash': result.account_hash,
                    'focalPoint': random_focal_point(),
                    'alt': f'Placeholder image {image_id} ({width}x{height})',
                    'filename': filename,
                    'width': width,
                    'height': height,
                    'uploadedAt': datetime.now(timezone.utc).isoformat(),
                })
                uploaded += 1
                self.stdout.write(self.style.SUCCESS(f'  ✓ Done: {result.image_id}'))
            except (requests.RequestException, ImageHostError, APIError) as e:
                failed += 1
                logger.error(f"Failed to seed {image_id}: {e}")
                self.stdout.write(self.style.ERROR(f'  ✗ Error: {image_id} - {e}'))
                continue

            if delay and index < total:
                time.sleep(delay)

        self.stdout.write('')
        self.stdout.write(f'Complete! {uploaded} uploaded, {failed} failed')
        if failed:
            self.stdout.write(self.style.WARNING(f'{failed} images failed - check logs for details'))

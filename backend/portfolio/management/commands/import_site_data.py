"""
Management command to migrate the legacy JSON data files into the database.
Existing rows with the same id are overwritten.
"""

import json
import logging
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from portfolio.models import Image, Project

logger = logging.getLogger(__name__)

BATCH_SIZE = 50


def image_rows(images: dict):
    for image_id, data in images.items():
        focal = data.get('focalPoint') or {}
        uploaded_at = parse_datetime(data['uploadedAt']) if data.get('uploadedAt') else None
        image = Image(
            id=image_id,
            cloudflare_id=data.get('cloudflareId', ''),
            account_hash=data.get('accountHash', ''),
            alt=data.get('alt') or '',
            filename=data.get('filename') or '',
            width=data.get('width') or None,
            height=data.get('height') or None,
            uploaded_at=uploaded_at or timezone.now(),
        )
        image.set_focal_point(focal.get('x', 0.5), focal.get('y', 0.5))
        yield image


def project_rows(projects: list):
    for data in projects:
        yield Project(
            id=data['id'],
            title=data.get('title', ''),
            category=data.get('category', ''),
            thumbnail_id=data.get('thumbnail') or None,
            short_description=data.get('shortDescription') or '',
            full_description=data.get('fullDescription') or '',
            year=data.get('year') or '',
            location=data.get('location') or '',
            type=data.get('type') or '',
            images=data.get('images') or [],
            rank=data.get('rank') or 0,
        )


def upsert(model, rows, fields):
    model.objects.bulk_create(rows, update_conflicts=True, unique_fields=['id'], update_fields=fields)


class Command(BaseCommand):
    help = 'Import images.json and projects.json into the database (upsert by id)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--data-dir',
            type=str,
            help='Directory holding images.json and projects.json (default: SITE_DATA_DIR)',
        )

    def _read(self, path: Path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            raise CommandError(f'File does not exist: {path}')
        except json.JSONDecodeError as e:
            raise CommandError(f'Invalid JSON in {path}: {e}')

    def handle(self, *args, **options):
        data_dir = Path(options.get('data_dir') or settings.SITE_DATA_DIR)
        images = self._read(data_dir / 'images.json')
        projects = self._read(data_dir / 'projects.json').get('projects', [])

        self.stdout.write('Importing images...')
        rows = list(image_rows(images))
        self.stdout.write(f'Found {len(rows)} images to import')
        batches = (len(rows) + BATCH_SIZE - 1) // BATCH_SIZE
        image_fields = ['cloudflare_id', 'account_hash', 'focal_point_x', 'focal_point_y',
                        'alt', 'filename', 'width', 'height', 'uploaded_at']
        for number, start in enumerate(range(0, len(rows), BATCH_SIZE), start=1):
            upsert(Image, rows[start:start + BATCH_SIZE], image_fields)
            self.stdout.write(f'Inserted images batch {number}/{batches}')

        self.stdout.write('Importing projects...')
        rows = list(project_rows(projects))
        self.stdout.write(f'Found {len(rows)} projects to import')
        with transaction.atomic():
            upsert(Project, rows, ['title', 'category', 'thumbnail', 'short_description',
                                   'full_description', 'year', 'location', 'type', 'images', 'rank'])

        logger.info(f"Imported {len(images)} images and {len(rows)} projects from {data_dir}")
        self.stdout.write(self.style.SUCCESS('Import completed successfully!'))

"""
Management command to write the data files consumed by the static site build.
"""

import json
import logging
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from portfolio.site_data import SiteDataError, fetch_images, fetch_projects

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Export images.json and projects.json for the static site build'

    def add_arguments(self, parser):
        parser.add_argument(
            '--output-dir',
            type=str,
            help='Directory to write the JSON files to (default: SITE_DATA_DIR)',
        )

    def handle(self, *args, **options):
        output_dir = Path(options.get('output_dir') or settings.SITE_DATA_DIR)

        try:
            images = fetch_images()
            projects = fetch_projects()
        except SiteDataError as e:
            raise CommandError(str(e))

        output_dir.mkdir(parents=True, exist_ok=True)
        images_path = output_dir / 'images.json'
        projects_path = output_dir / 'projects.json'
        with open(images_path, 'w', encoding='utf-8') as f:
            json.dump(images, f, indent=2)
        with open(projects_path, 'w', encoding='utf-8') as f:
            json.dump({'projects': projects}, f, indent=2)

        logger.info(f"Exported {len(images)} images and {len(projects)} projects to {output_dir}")
        self.stdout.write(self.style.SUCCESS(
            f'Exported {len(images)} images to {images_path} and {len(projects)} projects to {projects_path}'
        ))

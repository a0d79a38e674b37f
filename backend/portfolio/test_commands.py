"""
Tests for the management commands.
"""

import json
import os
import random
import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase

from portfolio.image_host import ImageHostError, UploadResult
from portfolio.management.commands.populate_images import PLACEHOLDER_IMAGES, random_focal_point
from portfolio.management.commands.start_server import resolve_address
from portfolio.models import Image, Project


def write_site_data(directory, images, projects):
    Path(directory, 'images.json').write_text(json.dumps(images), encoding='utf-8')
    Path(directory, 'projects.json').write_text(json.dumps({'projects': projects}), encoding='utf-8')


class ImportSiteDataTest(TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_imports_images_in_batches_and_projects(self):
        images = {
            f'img-{i}': {'cloudflareId': f'cf-{i}', 'accountHash': 'hash',
                         'focalPoint': {'x': 0.25, 'y': 0.75}, 'uploadedAt': '2024-01-01T00:00:00Z'}
            for i in range(120)
        }
        projects = [
            {'id': 'cedar-house', 'title': 'Cedar House', 'category': 'residential',
             'thumbnail': 'img-0', 'images': ['img-1', 'img-2'], 'rank': 0},
            {'id': 'office-one', 'title': 'Office One', 'category': 'commercial'},
        ]
        write_site_data(self.tmp.name, images, projects)

        out = StringIO()
        call_command('import_site_data', data_dir=self.tmp.name, stdout=out)

        self.assertEqual(Image.objects.count(), 120)
        self.assertEqual(Image.objects.get(pk='img-7').focal_point, {'x': 0.25, 'y': 0.75})
        self.assertIn('Inserted images batch 3/3', out.getvalue())
        project = Project.objects.get(pk='cedar-house')
        self.assertEqual(project.thumbnail_id, 'img-0')
        self.assertEqual(project.images, ['img-1', 'img-2'])
        self.assertEqual(Project.objects.get(pk='office-one').rank, 0)

    def test_import_upserts(self):
        Image.objects.create(id='hero', cloudflare_id='old', account_hash='hash', alt='Old')
        write_site_data(self.tmp.name,
                        {'hero': {'cloudflareId': 'new', 'accountHash': 'hash', 'alt': 'New'}}, [])

        call_command('import_site_data', data_dir=self.tmp.name, stdout=StringIO())

        hero = Image.objects.get(pk='hero')
        self.assertEqual((hero.cloudflare_id, hero.alt), ('new', 'New'))
        self.assertEqual(Image.objects.count(), 1)

    def test_missing_files(self):
        with self.assertRaises(CommandError):
            call_command('import_site_data', data_dir=self.tmp.name, stdout=StringIO())


class ExportSiteDataTest(TestCase):

    def test_writes_both_files(self):
        Image.objects.create(id='hero', cloudflare_id='cf', account_hash='hash')
        Project.objects.create(id='cedar-house', title='Cedar House', category='residential',
                               thumbnail_id='hero', images=['hero'])

        with tempfile.TemporaryDirectory() as tmp:
            call_command('export_site_data', output_dir=tmp, stdout=StringIO())
            images = json.loads(Path(tmp, 'images.json').read_text(encoding='utf-8'))
            projects = json.loads(Path(tmp, 'projects.json').read_text(encoding='utf-8'))

        self.assertEqual(images['hero']['cloudflareId'], 'cf')
        self.assertEqual(projects['projects'][0]['thumbnail'], 'hero')
        self.assertEqual(projects['projects'][0]['images'], ['hero'])


class PopulateImagesTest(TestCase):

    def test_random_focal_point_bounds(self):
        rng = random.Random(7)
        for _ in range(200):
            point = random_focal_point(rng)
            for value in (point['x'], point['y']):
                self.assertGreaterEqual(value, 0.2)
                self.assertLessEqual(value, 0.8)
                self.assertEqual(value, round(value, 2))

    @patch('portfolio.management.commands.populate_images.get_image_host_client')
    def test_dry_run_touches_nothing(self, mock_factory):
        out = StringIO()
        call_command('populate_images', dry_run=True, limit=3, stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        self.assertIn(PLACEHOLDER_IMAGES[0][0], out.getvalue())
        mock_factory.assert_not_called()
        self.assertEqual(Image.objects.count(), 0)

    @patch('portfolio.management.commands.populate_images.time.sleep')
    @patch('portfolio.management.commands.populate_images.download_placeholder')
    @patch('portfolio.management.commands.populate_images.get_image_host_client')
    def test_uploads_and_saves(self, mock_factory, mock_download, mock_sleep):
        client = MagicMock()
        client.upload.side_effect = [
            UploadResult(image_id='cf-a', account_hash='hash'),
            ImageHostError('Image host upload failed'),
        ]
        mock_factory.return_value = client
        mock_download.return_value = b'jpeg-bytes'

        out = StringIO()
        call_command('populate_images', limit=2, delay=0.5, stdout=out)

        first_id, width, height, _ = PLACEHOLDER_IMAGES[0]
        image = Image.objects.get(pk=first_id)
        self.assertEqual(image.cloudflare_id, 'cf-a')
        self.assertEqual((image.width, image.height), (width, height))
        self.assertFalse(Image.objects.filter(pk=PLACEHOLDER_IMAGES[1][0]).exists())
        self.assertIn('1 uploaded, 1 failed', out.getvalue())
        mock_sleep.assert_called_once_with(0.5)

    @patch('portfolio.management.commands.populate_images.download_placeholder')
    @patch('portfolio.management.commands.populate_images.get_image_host_client')
    def test_download_failure_skips_image(self, mock_factory, mock_download):
        mock_download.side_effect = requests.HTTPError('503')
        out = StringIO()
        call_command('populate_images', limit=1, delay=0, stdout=out)
        mock_factory.return_value.upload.assert_not_called()
        self.assertIn('0 uploaded, 1 failed', out.getvalue())


class StartServerTest(SimpleTestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        self.assertEqual(resolve_address(), ('localhost', 3001, 'default'))

    @patch.dict(os.environ, {'PORT': '8080', 'DJANGO_HOST': '0.0.0.0'}, clear=True)
    def test_environment(self):
        self.assertEqual(resolve_address(), ('0.0.0.0', 8080, 'environment'))

    @patch.dict(os.environ, {'PORT': '8080'}, clear=True)
    def test_command_line_wins(self):
        self.assertEqual(resolve_address(port=9000, host='127.0.0.1'), ('127.0.0.1', 9000, 'command line'))

    @patch('portfolio.management.commands.start_server.call_command')
    @patch.dict(os.environ, {}, clear=True)
    def test_runs_runserver(self, mock_call):
        call_command('start_server', stdout=StringIO())
        mock_call.assert_called_once_with('runserver', 'localhost:3001', verbosity=1)

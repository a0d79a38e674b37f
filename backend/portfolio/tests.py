"""
Tests for the portfolio models and admin API endpoints.
"""

import base64
import io
from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from PIL import Image as PILImage
from rest_framework import status
from rest_framework.test import APITestCase

from portfolio.image_host import ImageHostError, UploadResult
from portfolio.models import Image, Project, clamp_unit


def make_png(width=40, height=30):
    buffer = io.BytesIO()
    PILImage.new('RGB', (width, height), color=(200, 120, 40)).save(buffer, format='PNG')
    return buffer.getvalue()


def create_image(image_id, **kwargs):
    defaults = {'cloudflare_id': f'cf-{image_id}', 'account_hash': 'hash123'}
    defaults.update(kwargs)
    return Image.objects.create(id=image_id, **defaults)


class ImageModelTest(TestCase):
    """Test the Image model."""

    def test_default_focal_point_is_center(self):
        image = create_image('hero')
        image.refresh_from_db()
        self.assertEqual(image.focal_point, {'x': 0.5, 'y': 0.5})

    def test_set_focal_point_clamps(self):
        image = create_image('hero')
        image.set_focal_point(1.7, -0.2)
        image.save()
        image.refresh_from_db()
        self.assertEqual(image.focal_point_x, Decimal('1'))
        self.assertEqual(image.focal_point_y, Decimal('0'))

    def test_set_focal_point_rounds_to_four_places(self):
        image = create_image('hero')
        image.set_focal_point(0.123456, 0.98765)
        self.assertEqual(image.focal_point, {'x': 0.1235, 'y': 0.9877})

    def test_clamp_unit_handles_bad_input(self):
        self.assertEqual(clamp_unit('abc'), 0.5)
        self.assertEqual(clamp_unit(None), 0.5)
        self.assertEqual(clamp_unit(float('nan')), 0.5)
        self.assertEqual(clamp_unit('0.25'), 0.25)

    def test_string_representation(self):
        self.assertEqual(str(create_image('hero')), 'hero')


class ProjectModelTest(TestCase):
    """Test the Project model."""

    def test_projects_ordered_by_rank(self):
        Project.objects.create(id='b', title='B', category='residential', rank=1)
        Project.objects.create(id='a', title='A', category='residential', rank=0)
        self.assertEqual([p.id for p in Project.objects.all()], ['a', 'b'])

    def test_thumbnail_cleared_when_image_deleted(self):
        image = create_image('thumb')
        project = Project.objects.create(id='p', title='P', category='commercial', thumbnail=image)
        image.delete()
        project.refresh_from_db()
        self.assertIsNone(project.thumbnail_id)


@override_settings(ADMIN_PASSWORD='')
class ImageAPITest(APITestCase):
    """Test the image endpoints."""

    def setUp(self):
        self.image = create_image('cedar-house-1', alt='Cedar House facade', width=1200, height=800)

    def test_list_images_keyed_by_id(self):
        response = self.client.get('/api/images')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertIn('cedar-house-1', data)
        self.assertEqual(data['cedar-house-1']['cloudflareId'], 'cf-cedar-house-1')
        self.assertEqual(data['cedar-house-1']['focalPoint'], {'x': 0.5, 'y': 0.5})

    def test_get_image(self):
        response = self.client.get('/api/images/cedar-house-1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['alt'], 'Cedar House facade')

    def test_get_missing_image_returns_404(self):
        response = self.client.get('/api/images/missing')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'error': 'Image not found'})

    def test_save_image_creates_record(self):
        payload = {
            'cloudflareId': 'cf-new',
            'accountHash': 'hash123',
            'focalPoint': {'x': 0.3, 'y': 0.7},
            'alt': ' New image ',
            'filename': 'new.jpg',
            'uploadedAt': '2024-05-01T10:00:00Z',
        }
        response = self.client.post('/api/images/new-image', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()['success'])

        image = Image.objects.get(pk='new-image')
        self.assertEqual(image.cloudflare_id, 'cf-new')
        self.assertEqual(image.alt, 'New image')
        self.assertEqual(image.focal_point, {'x': 0.3, 'y': 0.7})

    def test_save_image_upserts(self):
        payload = {'cloudflareId': 'cf-cedar-house-1', 'accountHash': 'hash123',
                   'focalPoint': {'x': 0.9, 'y': 0.1}, 'alt': 'Updated'}
        response = self.client.post('/api/images/cedar-house-1', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Image.objects.count(), 1)
        self.image.refresh_from_db()
        self.assertEqual(self.image.alt, 'Updated')

    def test_save_image_clamps_focal_point(self):
        payload = {'cloudflareId': 'cf', 'accountHash': 'h', 'focalPoint': {'x': 4, 'y': -3}}
        self.client.post('/api/images/clamped', payload, format='json')
        self.assertEqual(Image.objects.get(pk='clamped').focal_point, {'x': 1.0, 'y': 0.0})

    def test_save_image_missing_fields(self):
        response = self.client.post('/api/images/bad', {'alt': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertIn('error', body)
        self.assertEqual(body['details']['missing_fields'], ['cloudflareId', 'accountHash'])

    @patch('portfolio.services.get_image_host_client')
    def test_delete_removes_remote_then_local(self, mock_factory):
        client = MagicMock()
        mock_factory.return_value = client
        Project.objects.create(id='cedar-house', title='Cedar House', category='residential',
                               images=['cedar-house-1'])

        response = self.client.delete('/api/images/cedar-house-1')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'success': True})
        client.delete.assert_called_once_with('cf-cedar-house-1')
        self.assertFalse(Image.objects.filter(pk='cedar-house-1').exists())
        self.assertEqual(Project.objects.get(pk='cedar-house').images, [])

    @patch('portfolio.services.get_image_host_client')
    def test_failed_remote_delete_keeps_local_record(self, mock_factory):
        client = MagicMock()
        client.delete.side_effect = ImageHostError(
            "Image host delete failed", details=[{'code': 5404, 'message': 'Image not found'}]
        )
        mock_factory.return_value = client

        response = self.client.delete('/api/images/cedar-house-1')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        body = response.json()
        self.assertEqual(body['error'], 'Failed to delete from Cloudflare')
        self.assertEqual(body['details'], [{'code': 5404, 'message': 'Image not found'}])
        self.assertTrue(Image.objects.filter(pk='cedar-house-1').exists())

    @patch('portfolio.services.get_image_host_client')
    def test_delete_missing_image_never_calls_host(self, mock_factory):
        response = self.client.delete('/api/images/missing')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        mock_factory.assert_not_called()


@override_settings(ADMIN_PASSWORD='')
class UploadAPITest(APITestCase):
    """Test the upload endpoint."""

    @patch('portfolio.services.get_image_host_client')
    def test_upload_returns_host_ids_and_dimensions(self, mock_factory):
        client = MagicMock()
        client.upload.return_value = UploadResult(
            image_id='cf-123',
            account_hash='hash123',
            variants=['https://imagedelivery.net/hash123/cf-123/public'],
            filename='photo.png',
        )
        mock_factory.return_value = client

        upload = SimpleUploadedFile('photo.png', make_png(40, 30), content_type='image/png')
        response = self.client.post('/api/upload', {'image': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['cloudflareId'], 'cf-123')
        self.assertEqual(body['accountHash'], 'hash123')
        self.assertEqual((body['width'], body['height']), (40, 30))
        # Upload alone never creates a record
        self.assertEqual(Image.objects.count(), 0)

    def test_upload_without_file(self):
        response = self.client.post('/api/upload', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error'], 'No file uploaded')

    @patch('portfolio.services.get_image_host_client')
    def test_upload_rejects_non_image(self, mock_factory):
        upload = SimpleUploadedFile('notes.txt', b'not an image', content_type='text/plain')
        response = self.client.post('/api/upload', {'image': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error'], 'Please select an image file')
        mock_factory.assert_not_called()

    @patch('portfolio.services.get_image_host_client')
    def test_upload_host_failure(self, mock_factory):
        client = MagicMock()
        client.upload.side_effect = ImageHostError("Image host upload failed",
                                                   details=[{'code': 10000, 'message': 'Auth error'}])
        mock_factory.return_value = client

        upload = SimpleUploadedFile('photo.png', make_png(), content_type='image/png')
        response = self.client.post('/api/upload', {'image': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()['error'], 'Cloudflare upload failed')


@override_settings(ADMIN_PASSWORD='')
class ProjectAPITest(APITestCase):
    """Test the project endpoints."""

    def setUp(self):
        create_image('cedar-1')
        create_image('cedar-2')
        for rank, project_id in enumerate(['cedar-house', 'pine-villa', 'oak-loft']):
            Project.objects.create(id=project_id, title=project_id.replace('-', ' ').title(),
                                   category='residential', rank=rank)
        Project.objects.create(id='office-one', title='Office One', category='commercial', rank=0)

    def test_list_projects_by_category(self):
        response = self.client.get('/api/projects', {'category': 'residential'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [p['id'] for p in response.json()['projects']]
        self.assertEqual(ids, ['cedar-house', 'pine-villa', 'oak-loft'])

    def test_list_projects_invalid_category(self):
        response = self.client.get('/api/projects', {'category': 'industrial'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_project_appends_rank(self):
        payload = {'id': 'birch-cabin', 'title': 'Birch Cabin', 'category': 'residential',
                   'thumbnail': 'cedar-1', 'images': ['cedar-1', 'cedar-2'], 'year': '2023'}
        response = self.client.post('/api/projects', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = Project.objects.get(pk='birch-cabin')
        self.assertEqual(project.rank, 3)
        self.assertEqual(project.images, ['cedar-1', 'cedar-2'])
        self.assertEqual(response.json()['project']['thumbnail'], 'cedar-1')

    def test_create_duplicate_project(self):
        payload = {'id': 'cedar-house', 'title': 'Again', 'category': 'residential'}
        response = self.client.post('/api/projects', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already exists', response.json()['error'])

    def test_create_project_with_unknown_image(self):
        payload = {'id': 'x', 'title': 'X', 'category': 'commercial', 'images': ['ghost']}
        response = self.client.post('/api/projects', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['details']['missing_images'], ['ghost'])

    def test_update_project(self):
        response = self.client.put('/api/projects/cedar-house',
                                   {'location': 'Oslo', 'images': ['cedar-2']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project = Project.objects.get(pk='cedar-house')
        self.assertEqual(project.location, 'Oslo')
        self.assertEqual(project.images, ['cedar-2'])

    def test_update_cannot_change_id(self):
        response = self.client.put('/api/projects/cedar-house', {'id': 'other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_project(self):
        response = self.client.delete('/api/projects/oak-loft')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Project.objects.filter(pk='oak-loft').exists())

    def test_delete_missing_project(self):
        response = self.client.delete('/api/projects/nope')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reorder_assigns_contiguous_ranks(self):
        order = ['oak-loft', 'cedar-house', 'pine-villa']
        response = self.client.put('/api/projects/reorder',
                                   {'category': 'residential', 'order': order}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['order'], order)
        ranks = dict(Project.objects.filter(category='residential').values_list('id', 'rank'))
        self.assertEqual(ranks, {'oak-loft': 0, 'cedar-house': 1, 'pine-villa': 2})

    def test_reorder_leaves_other_category_untouched(self):
        Project.objects.create(id='office-two', title='Office Two', category='commercial', rank=5)
        self.client.put('/api/projects/reorder',
                        {'category': 'residential', 'order': ['pine-villa', 'oak-loft', 'cedar-house']},
                        format='json')
        self.assertEqual(Project.objects.get(pk='office-one').rank, 0)
        self.assertEqual(Project.objects.get(pk='office-two').rank, 5)

    def test_reorder_rejects_project_from_other_category(self):
        response = self.client.put('/api/projects/reorder',
                                   {'category': 'residential', 'order': ['office-one', 'cedar-house']},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['details']['unknown_projects'], ['office-one'])
        self.assertEqual(Project.objects.get(pk='cedar-house').rank, 0)

    def test_reorder_partial_order_keeps_rest_after(self):
        self.client.put('/api/projects/reorder',
                        {'category': 'residential', 'order': ['oak-loft']}, format='json')
        ranks = dict(Project.objects.filter(category='residential').values_list('id', 'rank'))
        self.assertEqual(ranks, {'oak-loft': 0, 'cedar-house': 1, 'pine-villa': 2})


class ConfigAPITest(APITestCase):

    @override_settings(ADMIN_PASSWORD='', CLOUDFLARE_ACCOUNT_ID='acct-42')
    def test_config_exposes_account_id(self):
        response = self.client.get('/api/config')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'accountId': 'acct-42'})


@override_settings(ADMIN_USERNAME='admin', ADMIN_PASSWORD='s3cret')
class BasicAuthTest(APITestCase):
    """Test the basic auth middleware."""

    def _auth(self, username, password):
        token = base64.b64encode(f'{username}:{password}'.encode()).decode()
        return {'HTTP_AUTHORIZATION': f'Basic {token}'}

    def test_missing_credentials(self):
        response = self.client.get('/api/images')
        self.assertEqual(response.status_code, 401)
        self.assertIn('Basic', response['WWW-Authenticate'])
        self.assertEqual(response.json(), {'error': 'Authentication required'})

    def test_wrong_password(self):
        response = self.client.get('/api/images', **self._auth('admin', 'nope'))
        self.assertEqual(response.status_code, 401)

    def test_non_ascii_credentials_rejected(self):
        response = self.client.get('/api/images', **self._auth('admé', 's3cret'))
        self.assertEqual(response.status_code, 401)
        response = self.client.get('/api/images', **self._auth('admin', 'sécret'))
        self.assertEqual(response.status_code, 401)

    @override_settings(ADMIN_USERNAME='admé', ADMIN_PASSWORD='sécret')
    def test_non_ascii_configured_credentials(self):
        response = self.client.get('/api/images', **self._auth('admé', 'sécret'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_valid_credentials(self):
        response = self.client.get('/api/images', **self._auth('admin', 's3cret'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

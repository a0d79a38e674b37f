"""
Tests for the image host client. The HTTP session is mocked throughout.
"""

from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase

from portfolio.image_host import CloudflareImagesClient, ImageHostError, account_hash_from_variant


def response_with(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class ImageHostClientTest(SimpleTestCase):

    def setUp(self):
        self.session = MagicMock()
        self.client = CloudflareImagesClient(
            account_id='acct',
            api_token='token',
            api_base='https://api.example.com/client/v4',
            delivery_base='https://imagedelivery.net',
            timeout=5,
            session=self.session,
        )

    def test_account_hash_from_variant(self):
        self.assertEqual(account_hash_from_variant('https://imagedelivery.net/abc123/img-1/public'), 'abc123')

    def test_account_hash_from_bad_url(self):
        with self.assertRaises(ImageHostError):
            account_hash_from_variant('not-a-url')

    def test_upload_success(self):
        self.session.post.return_value = response_with({
            'success': True,
            'result': {'id': 'img-1', 'variants': ['https://imagedelivery.net/abc123/img-1/public']},
        })

        result = self.client.upload(b'bytes', 'photo.jpg')

        self.assertEqual(result.image_id, 'img-1')
        self.assertEqual(result.account_hash, 'abc123')
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], 'https://api.example.com/client/v4/accounts/acct/images/v1')
        self.assertEqual(kwargs['headers'], {'Authorization': 'Bearer token'})
        self.assertEqual(kwargs['files'], {'file': ('photo.jpg', b'bytes')})
        self.assertEqual(kwargs['timeout'], 5)

    def test_upload_failure_carries_errors(self):
        errors = [{'code': 5400, 'message': 'Bad request'}]
        self.session.post.return_value = response_with({'success': False, 'errors': errors}, 400)

        with self.assertRaises(ImageHostError) as ctx:
            self.client.upload(b'bytes', 'photo.jpg')
        self.assertEqual(ctx.exception.details, errors)

    def test_upload_network_error(self):
        self.session.post.side_effect = requests.ConnectionError('boom')
        with self.assertRaises(ImageHostError):
            self.client.upload(b'bytes', 'photo.jpg')

    def test_non_json_response(self):
        response = response_with(None, 502)
        response.json.side_effect = ValueError('no json')
        self.session.delete.return_value = response

        with self.assertRaises(ImageHostError) as ctx:
            self.client.delete('img-1')
        self.assertEqual(ctx.exception.details, {'status_code': 502})

    def test_non_object_json_response(self):
        self.session.delete.return_value = response_with(['unexpected'], 502)

        with self.assertRaises(ImageHostError) as ctx:
            self.client.delete('img-1')
        self.assertEqual(ctx.exception.details, {'status_code': 502, 'body': ['unexpected']})

    def test_delete_success(self):
        self.session.delete.return_value = response_with({'success': True, 'result': {}})
        self.client.delete('img-1')
        args, _ = self.session.delete.call_args
        self.assertEqual(args[0], 'https://api.example.com/client/v4/accounts/acct/images/v1/img-1')

    def test_delete_failure(self):
        self.session.delete.return_value = response_with(
            {'success': False, 'errors': [{'code': 5404, 'message': 'Image not found'}]}, 404
        )
        with self.assertRaises(ImageHostError):
            self.client.delete('img-1')

    def test_missing_credentials(self):
        client = CloudflareImagesClient(account_id='', api_token='', session=self.session)
        with self.assertRaises(ImageHostError):
            client.delete('img-1')
        self.session.delete.assert_not_called()

    def test_delivery_url(self):
        self.assertEqual(
            self.client.delivery_url('abc123', 'img-1', 'w=400'),
            'https://imagedelivery.net/abc123/img-1/w=400',
        )

"""
Client for the hosted image CDN (Cloudflare Images, API v1).

The host is treated as an opaque upload / delete / URL-transform service.
Every call either returns a parsed result or raises ImageHostError carrying
whatever error list the host reported.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import requests

from .config import get_image_host_config

logger = logging.getLogger(__name__)


class ImageHostError(Exception):
    """Raised when the image host rejects a request or cannot be reached."""
    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


@dataclass
class UploadResult:
    image_id: str
    account_hash: str
    variants: List[str] = field(default_factory=list)
    filename: str = ''


def account_hash_from_variant(variant_url: str) -> str:
    """
    Extract the account hash from a delivery URL of the form
    https://imagedelivery.net/<account_hash>/<image_id>/<variant>.
    """
    parts = variant_url.split('/')
    if len(parts) < 4 or not parts[3]:
        raise ImageHostError(f"Unexpected variant URL: {variant_url}")
    return parts[3]


class CloudflareImagesClient:
    """Thin wrapper around the Cloudflare Images REST endpoints."""

    def __init__(self, account_id: Optional[str] = None, api_token: Optional[str] = None,
                 api_base: Optional[str] = None, delivery_base: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        config = get_image_host_config()
        self.account_id = account_id if account_id is not None else config['account_id']
        self.api_token = api_token if api_token is not None else config['api_token']
        self.api_base = (api_base or config['api_base']).rstrip('/')
        self.delivery_base = (delivery_base or config['delivery_base']).rstrip('/')
        self.timeout = timeout or config['timeout']
        self.session = session or requests.Session()

    @property
    def images_endpoint(self) -> str:
        return f"{self.api_base}/accounts/{self.account_id}/images/v1"

    def _headers(self):
        return {'Authorization': f'Bearer {self.api_token}'}

    def _ensure_configured(self):
        if not self.account_id or not self.api_token:
            raise ImageHostError("Image host credentials are not configured")

    def _parse(self, response: requests.Response, action: str) -> dict:
        try:
            payload = response.json()
        except ValueError:
            raise ImageHostError(
                f"Image host {action} returned a non-JSON response",
                details={"status_code": response.status_code},
            )

        if not isinstance(payload, dict):
            raise ImageHostError(
                f"Image host {action} returned an unexpected response",
                details={"status_code": response.status_code, "body": payload},
            )
        if not payload.get('success'):
            errors = payload.get('errors') or []
            logger.error(f"Image host {action} error: {errors}")
            raise ImageHostError(f"Image host {action} failed", details=errors)
        return payload

    def upload(self, content: bytes, filename: str) -> UploadResult:
        """Upload raw image bytes and return the hosted id and account hash."""
        self._ensure_configured()
        try:
            response = self.session.post(
                self.images_endpoint,
                headers=self._headers(),
                files={'file': (filename, content)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Image host upload request failed for {filename}: {e}")
            raise ImageHostError("Image host upload failed", details=str(e))

        result = self._parse(response, 'upload')['result']
        variants = result.get('variants') or []
        if not variants:
            raise ImageHostError("Image host upload returned no variants", details=result)

        uploaded = UploadResult(
            image_id=result['id'],
            account_hash=account_hash_from_variant(variants[0]),
            variants=variants,
            filename=filename,
        )
        logger.info(f"Uploaded {filename} to image host as {uploaded.image_id}")
        return uploaded

    def delete(self, image_id: str) -> None:
        """Delete a hosted image. Raises ImageHostError unless the host confirms."""
        self._ensure_configured()
        try:
            response = self.session.delete(
                f"{self.images_endpoint}/{image_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Image host delete request failed for {image_id}: {e}")
            raise ImageHostError("Image host delete failed", details=str(e))

        self._parse(response, 'delete')
        logger.info(f"Deleted {image_id} from image host")

    def delivery_url(self, account_hash: str, image_id: str, variant: str = 'public') -> str:
        return f"{self.delivery_base}/{account_hash}/{image_id}/{variant}"


def get_image_host_client() -> CloudflareImagesClient:
    """Client configured from settings; patched out in tests."""
    return CloudflareImagesClient()

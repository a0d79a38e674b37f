"""
Client for the admin REST API, plus the upload/edit form logic of the
image manager.

The forms validate locally before touching the network: an upload with no
file, no identifier, or an identifier already in the library is refused
without any request being sent.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import requests

from .gallery.geometry import Rect

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class AdminClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def failure_message(self, action: str = 'delete') -> str:
        """Text for the blocking alert shown to the operator."""
        if self.details:
            return f"Failed to {action}: {json.dumps(self.details)}"
        return self.message or f"{action.capitalize()} failed"


class DuplicateImageId(AdminClientError):
    def __init__(self, image_id: str):
        super().__init__(f"Image id '{image_id}' is already in use")
        self.image_id = image_id


def suggest_image_id(filename: str) -> str:
    """'Cedar House_01.JPG' -> 'cedar-house-01'"""
    stem = re.sub(r'\.[^/.]+$', '', filename).lower()
    return re.sub(r'[^a-z0-9]+', '-', stem).strip('-')


@dataclass
class FocalPoint:
    x: float = 0.5
    y: float = 0.5

    def as_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    def display(self) -> str:
        return f"x: {self.x:.2f}, y: {self.y:.2f}"

    def object_position(self) -> str:
        return f"{self.x * 100:g}% {self.y * 100:g}%"


class FocalPointPicker:
    def __init__(self, focal_point: Optional[FocalPoint] = None):
        self.focal_point = focal_point or FocalPoint()

    def reset(self) -> None:
        self.focal_point = FocalPoint()

    def set_from_pointer(self, client_x: float, client_y: float, rect: Rect) -> FocalPoint:
        """Place the focal point where the preview image was clicked."""
        x = (client_x - rect.left) / rect.width if rect.width else 0.5
        y = (client_y - rect.top) / rect.height if rect.height else 0.5
        self.focal_point = FocalPoint(max(0.0, min(1.0, x)), max(0.0, min(1.0, y)))
        return self.focal_point


class AdminClient:
    """Thin wrapper over the /api endpoints."""

    def __init__(self, base_url: str, auth: Optional[Tuple[str, str]] = None,
                 session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        if auth:
            self.session.auth = auth
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        kwargs.setdefault('timeout', self.timeout)
        try:
            response = self.session.request(method, self._url(path), **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise AdminClientError(f"Request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get('error') if isinstance(data, dict) else None
            details = data.get('details') if isinstance(data, dict) else None
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            raise AdminClientError(message or f"Request failed with status {response.status_code}",
                                   status_code=response.status_code, details=details)
        return data

    # Images
    def list_images(self) -> Dict[str, dict]:
        return self._request('GET', 'images')

    def get_image(self, image_id: str) -> dict:
        return self._request('GET', f'images/{image_id}')

    def save_image(self, image_id: str, data: Dict[str, Any]) -> dict:
        return self._request('POST', f'images/{image_id}', json=data)

    def delete_image(self, image_id: str) -> dict:
        return self._request('DELETE', f'images/{image_id}')

    def upload(self, content: bytes, filename: str) -> dict:
        return self._request('POST', 'upload', files={'image': (filename, content)})

    # Projects
    def list_projects(self, category: Optional[str] = None) -> List[dict]:
        params = {'category': category} if category else None
        return self._request('GET', 'projects', params=params)['projects']

    def get_project(self, project_id: str) -> dict:
        return self._request('GET', f'projects/{project_id}')

    def create_project(self, data: Dict[str, Any]) -> dict:
        return self._request('POST', 'projects', json=data)

    def update_project(self, project_id: str, data: Dict[str, Any]) -> dict:
        return self._request('PUT', f'projects/{project_id}', json=data)

    def delete_project(self, project_id: str) -> dict:
        return self._request('DELETE', f'projects/{project_id}')

    def reorder_projects(self, category: str, order: List[str]) -> dict:
        return self._request('PUT', 'projects/reorder', json={'category': category, 'order': order})

    def get_config(self) -> dict:
        return self._request('GET', 'config')


class AdminSession:
    """The image library as last loaded from the server."""

    def __init__(self, client: AdminClient):
        self.client = client
        self.images: Dict[str, dict] = {}

    def reload(self) -> Dict[str, dict]:
        self.images = self.client.list_images()
        return self.images

    def has_image(self, image_id: str) -> bool:
        return image_id in self.images

    def upload_form(self) -> 'UploadForm':
        return UploadForm(self)

    def edit_form(self, image_id: str) -> 'EditForm':
        return EditForm(self, image_id)


@dataclass
class UploadForm:
    session: AdminSession
    content: Optional[bytes] = None
    filename: str = ''
    image_id: str = ''
    alt: str = ''
    picker: FocalPointPicker = field(default_factory=FocalPointPicker)

    def select_file(self, file: Union[str, Path, bytes], filename: Optional[str] = None) -> None:
        """Select a file by path, or raw bytes plus a filename."""
        if isinstance(file, (str, Path)):
            path = Path(file)
            self.content = path.read_bytes()
            self.filename = filename or path.name
        else:
            self.content = file
            self.filename = filename or ''
        self.image_id = suggest_image_id(self.filename)
        self.picker.reset()

    def is_valid(self) -> bool:
        image_id = self.image_id.strip()
        return bool(image_id and self.content is not None and not self.session.has_image(image_id))

    def submit(self) -> dict:
        image_id = self.image_id.strip()
        if self.content is None:
            raise AdminClientError("No file selected")
        if not image_id:
            raise AdminClientError("Image id is required")
        if self.session.has_image(image_id):
            raise DuplicateImageId(image_id)

        uploaded = self.session.client.upload(self.content, self.filename)
        data = {
            'cloudflareId': uploaded['cloudflareId'],
            'accountHash': uploaded['accountHash'],
            'focalPoint': self.picker.focal_point.as_dict(),
            'alt': self.alt.strip(),
            'filename': uploaded.get('filename', self.filename),
            'uploadedAt': datetime.now(timezone.utc).isoformat(),
        }
        if uploaded.get('width'):
            data['width'] = uploaded['width']
            data['height'] = uploaded['height']
        result = self.session.client.save_image(image_id, data)
        logger.info(f"Uploaded {self.filename} as {image_id}")
        self.session.reload()
        return result


class EditForm:
    def __init__(self, session: AdminSession, image_id: str):
        if not session.has_image(image_id):
            raise AdminClientError(f"Unknown image '{image_id}'")
        self.session = session
        self.image_id = image_id
        image = session.images[image_id]
        self.alt = image.get('alt') or ''
        focal = image.get('focalPoint') or {}
        self.picker = FocalPointPicker(FocalPoint(focal.get('x', 0.5), focal.get('y', 0.5)))

    def save(self) -> dict:
        data = dict(self.session.images[self.image_id])
        data['focalPoint'] = self.picker.focal_point.as_dict()
        data['alt'] = self.alt.strip()
        result = self.session.client.save_image(self.image_id, data)
        self.session.reload()
        return result

    def delete(self) -> dict:
        """Delete the image. On failure the library is left as it was."""
        result = self.session.client.delete_image(self.image_id)
        self.session.reload()
        return result

"""
Conversion between request payloads, model rows and the flat camelCase
JSON shape shared by the admin API, the admin client and the static site.
"""

import json
import logging
from datetime import datetime

from django.http.request import RawPostDataException
from django.utils.dateparse import parse_datetime

from .models import Image, Project, clamp_unit

logger = logging.getLogger(__name__)

# camelCase payload key -> Project field
PROJECT_FIELDS = {
    'title': 'title',
    'category': 'category',
    'shortDescription': 'short_description',
    'fullDescription': 'full_description',
    'year': 'year',
    'location': 'location',
    'type': 'type',
}


def get_json_payload(request):
    """
    Unified way to get a JSON payload from a DRF request.

    Falls back to the raw body when the parser produced nothing, which
    happens when a client omits the Content-Type header.
    """
    data = getattr(request, "data", None)
    if data not in (None, {}, []):
        return data

    if request.method in ("POST", "PUT", "PATCH"):
        try:
            raw = request.body
        except RawPostDataException:
            # The parser already consumed the stream; what it produced is all there is
            return data if data is not None else {}
        if not raw:
            return {}
        try:
            return json.loads(raw.decode(request.encoding or "utf-8"))
        except (ValueError, UnicodeDecodeError):
            logger.warning("Request body is not valid JSON")
            return {}

    return {}


def _isoformat(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value or ''


def serialize_image(image: Image) -> dict:
    return {
        'id': image.id,
        'cloudflareId': image.cloudflare_id,
        'accountHash': image.account_hash,
        'focalPoint': image.focal_point,
        'alt': image.alt or '',
        'filename': image.filename or '',
        'width': image.width or 0,
        'height': image.height or 0,
        'uploadedAt': _isoformat(image.uploaded_at),
    }


def serialize_project(project: Project) -> dict:
    return {
        'id': project.id,
        'title': project.title,
        'category': project.category,
        'thumbnail': project.thumbnail_id or '',
        'shortDescription': project.short_description or '',
        'fullDescription': project.full_description or '',
        'year': project.year or '',
        'location': project.location or '',
        'type': project.type or '',
        'images': list(project.images or []),
        'rank': project.rank,
    }


def _int_or_none(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def image_fields_from_payload(data: dict) -> dict:
    """Map an image payload to model field values, clamping the focal point."""
    focal = data.get('focalPoint') or {}
    if not isinstance(focal, dict):
        focal = {}

    fields = {
        'cloudflare_id': str(data.get('cloudflareId', '')).strip(),
        'account_hash': str(data.get('accountHash', '')).strip(),
        'focal_x': clamp_unit(focal.get('x', 0.5)),
        'focal_y': clamp_unit(focal.get('y', 0.5)),
        'alt': str(data.get('alt') or '').strip(),
        'filename': str(data.get('filename') or ''),
        'width': _int_or_none(data.get('width')),
        'height': _int_or_none(data.get('height')),
    }

    uploaded_at = data.get('uploadedAt')
    if uploaded_at:
        parsed = parse_datetime(str(uploaded_at))
        if parsed is None:
            logger.warning(f"Ignoring unparseable uploadedAt value: {uploaded_at}")
        else:
            fields['uploaded_at'] = parsed
    return fields


def project_fields_from_payload(data: dict) -> dict:
    """Map the camelCase keys present in a project payload to model fields."""
    fields = {}
    for key, field_name in PROJECT_FIELDS.items():
        if key in data:
            value = data[key]
            fields[field_name] = '' if value is None else str(value).strip()
    if 'thumbnail' in data:
        fields['thumbnail_id'] = data['thumbnail'] or None
    if 'images' in data:
        fields['images'] = data['images']
    if 'rank' in data:
        fields['rank'] = data['rank']
    return fields

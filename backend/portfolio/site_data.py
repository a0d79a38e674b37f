"""
Read side used by the static site build: images and projects in the
frontend shape.
"""

import logging
from typing import Dict, List, Optional

from django.db import DatabaseError

from .models import Image, Project
from .payloads import serialize_image, serialize_project

logger = logging.getLogger(__name__)


class SiteDataError(Exception):
    pass


def fetch_images() -> Dict[str, dict]:
    """All images keyed by id; the id itself is not repeated in the value."""
    try:
        rows = list(Image.objects.all())
    except DatabaseError as e:
        raise SiteDataError(f"Failed to fetch images: {e}") from e

    images = {}
    for row in rows:
        data = serialize_image(row)
        data.pop('id')
        images[row.id] = data
    return images


def fetch_projects(category: Optional[str] = None) -> List[dict]:
    """Projects ordered by rank, optionally restricted to one category."""
    queryset = Project.objects.all()
    if category:
        queryset = queryset.filter(category=category)
    try:
        return [serialize_project(p) for p in queryset.order_by('rank', 'id')]
    except DatabaseError as e:
        raise SiteDataError(f"Failed to fetch projects: {e}") from e


def projects_by_category() -> Dict[str, List[dict]]:
    grouped = {choice: [] for choice, _ in Project.CATEGORY_CHOICES}
    for project in fetch_projects():
        grouped.setdefault(project['category'], []).append(project)
    return grouped

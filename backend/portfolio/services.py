"""
Handlers behind the admin API.

Each handler performs at most one image host call and one persistence call.
The image host always goes first on upload and delete so the database never
references an asset that does not exist remotely. Failures raise typed API
errors; nothing is retried or compensated.
"""

import logging
from typing import Any, Dict, List, Optional

from django.db import DatabaseError, transaction
from django.db.models import Max

from .error_handlers import ResourceNotFoundError, UpstreamError, ValidationError, validate_required_fields
from .image_host import ImageHostError, get_image_host_client
from .models import Image, Project
from .payloads import image_fields_from_payload, project_fields_from_payload
from .validators import (
    ImageValidator,
    validate_category,
    validate_identifier,
    validate_image_references,
    validate_rank,
)

logger = logging.getLogger(__name__)


def get_image_or_404(image_id: str) -> Image:
    try:
        return Image.objects.get(pk=image_id)
    except Image.DoesNotExist:
        raise ResourceNotFoundError("Image not found", resource_type='Image', resource_id=image_id)


def get_project_or_404(project_id: str) -> Project:
    try:
        return Project.objects.get(pk=project_id)
    except Project.DoesNotExist:
        raise ResourceNotFoundError("Project not found", resource_type='Project', resource_id=project_id)


def handle_image_upload(image_file, client=None) -> Dict[str, Any]:
    """
    Validate an uploaded file and push it to the image host.

    Nothing is persisted here: the caller confirms the upload by saving
    metadata under an id of its choosing.

    Args:
        image_file: Django uploaded file object (or anything with .name and .read())
        client: Image host client, defaults to the configured one

    Returns:
        Dictionary with the hosted id, account hash, variants and dimensions
    """
    if image_file is None:
        raise ValidationError("No file uploaded", field='image')

    filename = getattr(image_file, 'name', '') or 'upload'
    content = image_file.read()
    info = ImageValidator.inspect(content, filename)

    client = client or get_image_host_client()
    try:
        uploaded = client.upload(content, filename)
    except ImageHostError as e:
        raise UpstreamError("Cloudflare upload failed", details=e.details)

    return {
        "cloudflareId": uploaded.image_id,
        "accountHash": uploaded.account_hash,
        "variants": uploaded.variants,
        "filename": filename,
        "width": info['width'],
        "height": info['height'],
    }


def save_image(image_id: str, data: Dict[str, Any]) -> Image:
    """Create or replace the metadata stored under image_id."""
    image_id = validate_identifier(image_id)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    validate_required_fields(data, ['cloudflareId', 'accountHash'])

    fields = image_fields_from_payload(data)
    focal_x = fields.pop('focal_x')
    focal_y = fields.pop('focal_y')

    try:
        image = Image.objects.filter(pk=image_id).first() or Image(id=image_id)
        for name, value in fields.items():
            setattr(image, name, value)
        image.set_focal_point(focal_x, focal_y)
        image.save()
    except DatabaseError as e:
        logger.exception(f"Failed to save image {image_id}: {e}")
        raise UpstreamError("Save failed", details=str(e))

    logger.info(f"Saved image metadata for {image_id}")
    return image


def delete_image(image_id: str, client=None) -> None:
    """
    Delete an image from the host, then from the database.

    If the host does not confirm the deletion the local record is left
    untouched and the host's error details are surfaced.
    """
    image = get_image_or_404(image_id)

    client = client or get_image_host_client()
    try:
        client.delete(image.cloudflare_id)
    except ImageHostError as e:
        raise UpstreamError("Failed to delete from Cloudflare", details=e.details)

    try:
        with transaction.atomic():
            for project in Project.objects.select_for_update().all():
                if image_id in (project.images or []):
                    project.images = [i for i in project.images if i != image_id]
                    project.save(update_fields=['images'])
            image.delete()
    except DatabaseError as e:
        logger.exception(f"Image {image_id} removed remotely but local delete failed: {e}")
        raise UpstreamError("Delete failed", details=str(e))

    logger.info(f"Deleted image {image_id}")


def list_projects(category: Optional[str] = None) -> List[Project]:
    queryset = Project.objects.all()
    if category:
        queryset = queryset.filter(category=validate_category(category))
    return list(queryset.order_by('rank', 'id'))


def _validated_project_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    fields = project_fields_from_payload(data)
    if 'title' in fields and not fields['title']:
        raise ValidationError("Missing 'title'", field='title')
    if 'category' in fields:
        validate_category(fields['category'])
    if fields.get('thumbnail_id'):
        validate_image_references([fields['thumbnail_id']], field='thumbnail')
    if 'images' in fields:
        fields['images'] = validate_image_references(fields['images'] or [])
    if 'rank' in fields:
        validate_rank(fields['rank'])
    return fields


def create_project(data: Dict[str, Any]) -> Project:
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    validate_required_fields(data, ['id', 'title', 'category'])
    project_id = validate_identifier(data['id'])

    if Project.objects.filter(pk=project_id).exists():
        raise ValidationError(f"Project '{project_id}' already exists", field='id')

    fields = _validated_project_fields(data)
    if 'rank' not in fields:
        current_max = Project.objects.filter(category=fields['category']).aggregate(Max('rank'))['rank__max']
        fields['rank'] = 0 if current_max is None else current_max + 1

    try:
        project = Project.objects.create(id=project_id, **fields)
    except DatabaseError as e:
        logger.exception(f"Failed to create project {project_id}: {e}")
        raise UpstreamError("Save failed", details=str(e))

    logger.info(f"Created project {project_id} in {project.category} at rank {project.rank}")
    return project


def update_project(project_id: str, data: Dict[str, Any]) -> Project:
    project = get_project_or_404(project_id)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    if 'id' in data and data['id'] != project_id:
        raise ValidationError("Project id cannot be changed", field='id')

    fields = _validated_project_fields(data)
    for name, value in fields.items():
        setattr(project, name, value)

    try:
        project.save()
    except DatabaseError as e:
        logger.exception(f"Failed to update project {project_id}: {e}")
        raise UpstreamError("Save failed", details=str(e))

    logger.info(f"Updated project {project_id}")
    return project


def delete_project(project_id: str) -> None:
    project = get_project_or_404(project_id)
    try:
        project.delete()
    except DatabaseError as e:
        logger.exception(f"Failed to delete project {project_id}: {e}")
        raise UpstreamError("Delete failed", details=str(e))
    logger.info(f"Deleted project {project_id}")


def reorder_projects(category: str, order: List[str]) -> List[Project]:
    """
    Reassign ranks 0..n-1 in the submitted order, touching only projects of
    the given category. All ranks are written in one transaction.
    """
    validate_category(category)
    if not isinstance(order, list) or not all(isinstance(i, str) for i in order):
        raise ValidationError("'order' must be a list of project ids", field='order')
    if len(set(order)) != len(order):
        raise ValidationError("'order' contains duplicate project ids", field='order')

    projects = {p.id: p for p in Project.objects.filter(category=category)}
    unknown = [project_id for project_id in order if project_id not in projects]
    if unknown:
        raise ValidationError(
            f"Projects not in category '{category}': {', '.join(unknown)}",
            field='order',
            details={"unknown_projects": unknown},
        )

    # Projects left out of the submitted order keep their relative order after it
    remaining = sorted(
        (p for p in projects.values() if p.id not in order),
        key=lambda p: (p.rank, p.id),
    )
    ordered = [projects[project_id] for project_id in order] + remaining

    try:
        with transaction.atomic():
            for rank, project in enumerate(ordered):
                if project.rank != rank:
                    project.rank = rank
                    project.save(update_fields=['rank'])
    except DatabaseError as e:
        logger.exception(f"Failed to reorder {category} projects: {e}")
        raise UpstreamError("Reorder failed", details=str(e))

    logger.info(f"Reordered {len(ordered)} {category} projects")
    return ordered

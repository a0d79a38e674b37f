"""
Input validation for uploads, identifiers and project references.
"""

import io
import logging
import re
from typing import Any, Dict, Iterable, List

from PIL import Image as PILImage, UnidentifiedImageError

from .error_handlers import ValidationError
from .models import Image, Project

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 25 * 1024 * 1024  # 25MB
ALLOWED_FORMATS = {'JPEG', 'PNG', 'WEBP', 'GIF', 'AVIF', 'HEIF', 'TIFF'}
IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._-]*$')


class ImageValidator:
    """
    Validation for uploaded image files.
    """

    @classmethod
    def inspect(cls, content: bytes, filename: str = '') -> Dict[str, Any]:
        """
        Read format and pixel dimensions from raw image bytes.

        Raises:
            ValidationError: If the content is empty, too large or not an image
        """
        if not content:
            raise ValidationError("File is empty", field='image')

        if len(content) > MAX_FILE_SIZE:
            raise ValidationError(
                f"File too large: {len(content)} bytes (max: {MAX_FILE_SIZE})",
                field='image',
                details={"file_size": len(content), "max_size": MAX_FILE_SIZE},
            )

        try:
            with PILImage.open(io.BytesIO(content)) as img:
                info = {'format': img.format, 'width': img.width, 'height': img.height}
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Rejected non-image upload {filename}: {e}")
            raise ValidationError("Please select an image file", field='image')

        if info['format'] not in ALLOWED_FORMATS:
            raise ValidationError(
                f"Unsupported image format: {info['format']}",
                field='image',
                details={"allowed_formats": sorted(ALLOWED_FORMATS)},
            )
        return info


def validate_identifier(value: Any, field: str = 'id') -> str:
    """Identifiers are caller-chosen, human-readable, URL-safe keys."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing '{field}'", field=field)
    value = value.strip()
    if not IDENTIFIER_PATTERN.match(value):
        raise ValidationError(
            f"Invalid '{field}': use letters, digits, '.', '_' or '-'",
            field=field,
        )
    return value


def validate_category(value: Any) -> str:
    categories = [choice for choice, _ in Project.CATEGORY_CHOICES]
    if value not in categories:
        raise ValidationError(
            f"Invalid category: {value!r}",
            field='category',
            details={"allowed": categories},
        )
    return value


def validate_image_references(image_ids: Iterable[Any], field: str = 'images') -> List[str]:
    """All referenced images must exist; returns the ids in their given order."""
    if not isinstance(image_ids, (list, tuple)):
        raise ValidationError(f"'{field}' must be a list of image ids", field=field)

    ids = []
    for image_id in image_ids:
        if not isinstance(image_id, str) or not image_id:
            raise ValidationError(f"'{field}' must contain only image ids", field=field)
        ids.append(image_id)

    existing = set(Image.objects.filter(id__in=ids).values_list('id', flat=True))
    missing = [image_id for image_id in ids if image_id not in existing]
    if missing:
        raise ValidationError(
            f"Unknown image reference(s): {', '.join(missing)}",
            field=field,
            details={"missing_images": missing},
        )
    return ids


def validate_rank(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("'rank' must be an integer", field='rank')
    return value

from decimal import Decimal

from django.db import models
from django.utils import timezone


def clamp_unit(value, default=0.5):
    """Clamp a focal coordinate into [0, 1]; non-numeric input falls back to default."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return max(0.0, min(1.0, number))


class Image(models.Model):
    """
    An image hosted on the image CDN, keyed by a human-readable id.
    The row is only ever created after the upload was confirmed and only
    removed after the remote copy was deleted.
    """
    id = models.CharField(max_length=255, primary_key=True)
    cloudflare_id = models.CharField(max_length=255)
    account_hash = models.CharField(max_length=255)
    focal_point_x = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.5'))
    focal_point_y = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.5'))
    alt = models.TextField(blank=True, default='')
    filename = models.CharField(max_length=255, blank=True, default='')
    width = models.IntegerField(null=True, blank=True)
    height = models.IntegerField(null=True, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'images'
        ordering = ['id']

    @property
    def focal_point(self):
        return {'x': float(self.focal_point_x), 'y': float(self.focal_point_y)}

    def set_focal_point(self, x, y):
        self.focal_point_x = Decimal(str(round(clamp_unit(x), 4)))
        self.focal_point_y = Decimal(str(round(clamp_unit(y), 4)))

    def __str__(self):
        return self.id


class Project(models.Model):
    """
    A portfolio project shown in one of the two gallery categories.
    `rank` orders projects within a category and is reassigned 0..n-1 on reorder.
    """
    RESIDENTIAL = 'residential'
    COMMERCIAL = 'commercial'
    CATEGORY_CHOICES = [
        (RESIDENTIAL, 'Residential'),
        (COMMERCIAL, 'Commercial'),
    ]

    id = models.CharField(max_length=255, primary_key=True)
    title = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, db_index=True)
    thumbnail = models.ForeignKey(
        Image,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        db_column='thumbnail',
        related_name='thumbnail_for',
    )
    short_description = models.TextField(blank=True, default='')
    full_description = models.TextField(blank=True, default='')
    year = models.CharField(max_length=50, blank=True, default='')
    location = models.CharField(max_length=255, blank=True, default='')
    type = models.CharField(max_length=255, blank=True, default='')
    # Ordered list of image ids
    images = models.JSONField(default=list, blank=True)
    rank = models.IntegerField(default=0, db_index=True)

    class Meta:
        db_table = 'projects'
        ordering = ['rank', 'id']

    def __str__(self):
        return f"{self.title} ({self.category})"

from django.contrib import admin
from .models import Image, Project


@admin.register(Image)
class ImageAdmin(admin.ModelAdmin):
    list_display = ('id', 'filename', 'cloudflare_id', 'focal_point_x', 'focal_point_y', 'uploaded_at')
    search_fields = ('id', 'filename', 'alt')
    readonly_fields = ('cloudflare_id', 'account_hash', 'uploaded_at')

    def has_delete_permission(self, request, obj=None):
        # Deletion must go through the API so the hosted copy is removed first
        return False


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'rank', 'image_count')
    list_filter = ('category',)
    search_fields = ('id', 'title', 'location')
    raw_id_fields = ('thumbnail',)
    ordering = ('category', 'rank')

    def image_count(self, obj):
        return len(obj.images or [])
    image_count.short_description = 'Number of Images'

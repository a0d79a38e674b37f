"""
URL configuration for the admin API.
"""

from django.urls import path
from . import views

urlpatterns = [
    # Image metadata and hosting
    path('images', views.list_images, name='list_images'),
    path('images/<str:image_id>', views.image_detail, name='image_detail'),
    path('upload', views.upload_image, name='upload_image'),

    # Projects (reorder must precede the detail route)
    path('projects', views.project_list, name='project_list'),
    path('projects/reorder', views.reorder_projects, name='reorder_projects'),
    path('projects/<str:project_id>', views.project_detail, name='project_detail'),

    path('config', views.get_config, name='get_config'),
]

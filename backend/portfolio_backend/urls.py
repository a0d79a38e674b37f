"""
URL configuration for portfolio_backend project.

The admin REST API lives under /api/; the Django admin is kept at
/django-admin/ for direct record inspection.
"""
from django.contrib import admin
from django.urls import path, include
from portfolio import urls as portfolio_urls

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include(portfolio_urls)),
]

"""
URL configuration for marriage registration service.
"""

from django.contrib import admin
from django.urls import path, include
from registration.api.health import health_check, readiness_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include("registration.api.urls")),
    path("api/health/", health_check, name="health_check"),
    path("api/ready/", readiness_check, name="readiness_check"),
]

"""URL configuration for the vehicle rental project.

The `urlpatterns` list routes URLs to views. It includes the Django admin,
the API schema and the application‑level routers provided by Django Rest
Framework in each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/vehicles/', include('apps.vehicles.urls')),
    path('api/v1/reservations/', include('apps.reservations.urls')),
    # API schema and docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]

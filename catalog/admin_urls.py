"""Admin router for catalog write endpoints."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .admin_views import ProductAdminViewSet, ProductVariantAdminViewSet

router = SimpleRouter()
router.register(r"products", ProductAdminViewSet, basename="admin-product")
router.register(r"variants", ProductVariantAdminViewSet, basename="admin-variant")

urlpatterns = [path("", include(router.urls))]

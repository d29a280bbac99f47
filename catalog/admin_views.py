"""Admin viewsets for write endpoints in the catalog app.

Endpoints are restricted to staff users and use scoped throttling.
"""

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, permissions, viewsets

from .admin_serializers import ProductAdminSerializer, ProductVariantAdminSerializer
from .models import Product, ProductVariant


class AdminBaseViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    # Catalog rows referenced by the stock ledger are never deleted; deactivate instead
    permission_classes = [permissions.IsAdminUser]
    throttle_scope = "catalog_admin_write"


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List products (admin)"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get product (admin)"),
    create=extend_schema(tags=["Admin Endpoints"], summary="Create product"),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update product"),
    partial_update=extend_schema(tags=["Admin Endpoints"], summary="Partial update product"),
)
class ProductAdminViewSet(AdminBaseViewSet):
    queryset = Product.objects.all().order_by("title")
    serializer_class = ProductAdminSerializer


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List variants (admin)"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get variant (admin)"),
    create=extend_schema(
        tags=["Admin Endpoints"],
        summary="Create variant",
        description="Creates a variant. `initial_stock` is booked as a restock transaction.",
    ),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update variant"),
    partial_update=extend_schema(
        tags=["Admin Endpoints"],
        summary="Partial update variant",
        description="Edits price, cost, and tracking flag. Stock changes go through inventory adjustments.",
    ),
)
class ProductVariantAdminViewSet(AdminBaseViewSet):
    queryset = ProductVariant.objects.select_related("product").order_by("sku")
    serializer_class = ProductVariantAdminSerializer

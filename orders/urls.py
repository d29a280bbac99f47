"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import OrderBulkStatusView, OrderDetailView, OrderListCreateView, ShippingCompanyListCreateView

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list"),
    path("bulk-status/", OrderBulkStatusView.as_view(), name="order-bulk-status"),
    path("shipping-companies/", ShippingCompanyListCreateView.as_view(), name="shipping-company-list"),
    path("<int:order_id>/", OrderDetailView.as_view(), name="order-detail"),
]

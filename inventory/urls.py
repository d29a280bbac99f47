from django.urls import path

from .views import (
    InventoryHealthView,
    StockAdjustmentView,
    StockLevelListView,
    StockSummaryView,
    StockTransactionListView,
)

urlpatterns = [
    path("health/", InventoryHealthView.as_view(), name="inventory-health"),
    path("stock-levels/", StockLevelListView.as_view(), name="stock-level-list"),
    path("summary/", StockSummaryView.as_view(), name="inventory-summary"),
    path("transactions/", StockTransactionListView.as_view(), name="stock-transaction-list"),
    path("adjustments/", StockAdjustmentView.as_view(), name="stock-adjustment"),
]

# EOF

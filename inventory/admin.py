"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockTransaction


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "variant", "kind", "quantity", "order", "note", "created_by", "created_at")
    list_filter = ("kind", "created_at")
    search_fields = ("variant__sku", "note", "idempotency_key")
    date_hierarchy = "created_at"

    # The log is append-only; entries are written by the ledger services
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# EOF

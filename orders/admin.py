from django.contrib import admin

from .models import IdempotencyKey, Order, OrderLine, ShippingCompany


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    fields = ("variant", "variant_sku", "product_title", "quantity", "unit_price", "unit_cost")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        # Lines change through the order services so stock stays reconciled
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "status", "revision", "customer_name", "channel", "total", "created_at")
    list_filter = ("status", "channel", "created_at")
    search_fields = ("number", "customer_name", "customer_phone")
    date_hierarchy = "created_at"
    readonly_fields = ("number", "status", "revision", "subtotal", "total", "total_cost", "created_by")
    inlines = [OrderLineInline]


@admin.register(ShippingCompany)
class ShippingCompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"

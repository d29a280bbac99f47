"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "title", "price", "cost_price", "track_inventory", "stock_quantity")
    readonly_fields = ("stock_quantity",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("title", "slug", "is_active")
    search_fields = ("title", "slug")
    list_filter = ("is_active",)
    prepopulated_fields = {"slug": ("title",)}
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("sku", "product", "price", "cost_price", "track_inventory", "stock_quantity")
    list_filter = ("track_inventory",)
    search_fields = ("sku", "title", "product__title")
    readonly_fields = ("stock_quantity",)

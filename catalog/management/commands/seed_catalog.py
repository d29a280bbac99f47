"""Seed a small catalog with opening stock for local development.

Re-running is idempotent: products are reused by slug, variants by SKU, and
opening stock is booked through the ledger under a fixed idempotency key
so it is never counted twice.
"""

from decimal import Decimal

from catalog.models import Product, ProductVariant
from common.choices import TransactionKind
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify
from inventory.services import apply_delta

PRODUCTS = [
    {
        "title": "Basic Tee",
        "description": "Cotton crew neck tee.",
        "variants": [
            ("TEE-BLK-M", "Black / M", "250.00", "120.00", 12),
            ("TEE-BLK-L", "Black / L", "250.00", "120.00", 8),
            ("TEE-WHT-M", "White / M", "250.00", "115.00", 3),
        ],
    },
    {
        "title": "Denim Jacket",
        "description": "Washed denim jacket with button front.",
        "variants": [
            ("DNM-JKT-M", "Medium", "900.00", "520.00", 4),
            ("DNM-JKT-L", "Large", "900.00", "520.00", 2),
        ],
    },
    {
        "title": "Gift Wrap",
        "description": "Made to order, not stocked.",
        "track_inventory": False,
        "variants": [
            ("GIFT-WRAP", "Standard", "30.00", "5.00", 0),
        ],
    },
]


class Command(BaseCommand):
    help = "Seed products and variants with opening stock"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")
        booked = 0
        for entry in PRODUCTS:
            product, _ = Product.objects.get_or_create(
                slug=slugify(entry["title"]),
                defaults={"title": entry["title"], "description": entry["description"]},
            )
            for sku, title, price, cost, opening in entry["variants"]:
                variant, _ = ProductVariant.objects.get_or_create(
                    sku=sku,
                    defaults={
                        "product": product,
                        "title": title,
                        "price": Decimal(price),
                        "cost_price": Decimal(cost),
                        "track_inventory": entry.get("track_inventory", True),
                    },
                )
                if opening and apply_delta(
                    variant_id=variant.id,
                    quantity=opening,
                    kind=TransactionKind.RESTOCK,
                    note="Opening stock",
                    idempotency_key=f"seed:{sku}",
                ):
                    booked += 1

        self.stdout.write(self.style.SUCCESS(f"Catalog seeded. Opening stock booked for {booked} variant(s)."))

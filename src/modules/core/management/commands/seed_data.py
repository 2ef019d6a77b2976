from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.models import Brand, Category, Product
from modules.catalog.repositories.ledger import InventoryDjangoLedger
from modules.orders.constants import OrderKind
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderLineDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderPlacementService


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=10,
            help="Number of demo orders to place (default: 10).",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        categories = self._seed_categories()
        brands = self._seed_brands()
        products = self._seed_products(categories, brands)
        orders_placed = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"categories={len(categories)}, "
                f"brands={len(brands)}, "
                f"products={len(products)}, "
                f"orders={orders_placed}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_categories(self) -> dict[str, Category]:
        self.stdout.write("Creating categories...")
        categories: dict[str, Category] = {}
        for name, description in [
            ("Smartphones", "Phones and accessories"),
            ("Laptops", "Notebooks and ultrabooks"),
            ("Audio", "Headphones and speakers"),
            ("Home", "Small home appliances"),
        ]:
            category, _ = Category.objects.get_or_create(
                name=name, defaults={"description": description}
            )
            categories[name] = category
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))
        return categories

    def _seed_brands(self) -> dict[str, Brand]:
        self.stdout.write("Creating brands...")
        brands: dict[str, Brand] = {}
        for name, country in [
            ("Nordlys", "Norway"),
            ("Kaito", "Japan"),
            ("Veloce", "Italy"),
        ]:
            brand, _ = Brand.objects.get_or_create(
                name=name, defaults={"country": country}
            )
            brands[name] = brand
        self.stdout.write(self.style.SUCCESS("Creating brands... Done!"))
        return brands

    def _seed_products(
        self, categories: dict[str, Category], brands: dict[str, Brand]
    ) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Kaito S12", "Smartphones", "Kaito", Decimal("699.00")),
            ("Kaito S12 Mini", "Smartphones", "Kaito", Decimal("549.00")),
            ("Nordlys Phone 3", "Smartphones", "Nordlys", Decimal("499.90")),
            ("Veloce Book 14", "Laptops", "Veloce", Decimal("1299.00")),
            ("Kaito Air 13", "Laptops", "Kaito", Decimal("999.00")),
            ("Nordlys Studio 16", "Laptops", "Nordlys", Decimal("1899.00")),
            ("Veloce Buds", "Audio", "Veloce", Decimal("129.90")),
            ("Nordlys Over-Ear", "Audio", "Nordlys", Decimal("249.00")),
            ("Kaito Soundbar", "Audio", "Kaito", Decimal("329.00")),
            ("Veloce Kettle", "Home", "Veloce", Decimal("59.90")),
            ("Nordlys Air Purifier", "Home", "Nordlys", Decimal("219.00")),
            ("Kaito Rice Cooker", "Home", "Kaito", Decimal("89.90")),
        ]
        for name, category, brand, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": f"{brand} {category.lower()}",
                    "price": price,
                    "stock_quantity": random.randint(10, 200),
                    "rating": Decimal(random.randint(30, 50)) / 10,
                    "guarantee": "24 months",
                    "category": categories[category],
                    "brand": brands[brand],
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        """Place demo orders through the placement service.

        Each order carries a fixed idempotency key, so re-running the
        command does not place duplicates.
        """
        self.stdout.write("Placing orders...")
        if not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no products)."))
            return 0

        service = OrderPlacementService(
            order_repository=OrderDjangoRepository(),
            inventory_ledger=InventoryDjangoLedger(),
        )
        placed = 0
        for i in range(count):
            picked = random.sample(products, k=min(random.randint(1, 3), len(products)))
            lines = [
                PlaceOrderLineDTO(product_id=product.id, quantity=random.randint(1, 3))
                for product in picked
            ]
            price = sum(
                (p.price * line.quantity for p, line in zip(picked, lines)),
                Decimal("0.00"),
            )
            if i % 2:
                contact = {
                    "kind": OrderKind.LEGAL,
                    "organization": f"Seed Trading {i + 1}",
                    "tax_id": f"77070838{i:02d}",
                    "comment": "Invoice by email",
                }
            else:
                contact = {
                    "kind": OrderKind.INDIVIDUAL,
                    "phone": f"+7 916 555-{i:02d}-00",
                    "name": f"Seed Customer {i + 1}",
                }
            dto = PlaceOrderDTO(
                **contact,
                price=price,
                status="new",
                service_mode="delivery",
                lines=lines,
                idempotency_key=f"seed-order-{i + 1}",
            )
            try:
                service.place_order(dto)
            except InsufficientStock as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order {i + 1}: {exc}"))
                continue
            placed += 1

        self.stdout.write(self.style.SUCCESS("Placing orders... Done!"))
        return placed

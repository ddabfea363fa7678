from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.customers.models import CustomerProfile
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.models import Order
from modules.orders.services import build_order_service
from modules.products.models import Product
from shared.infrastructure.bus import InMemoryEventBus

# Status paths walked through the transition authority after creation.
STATUS_PATHS = [
    ([], 0.20),
    ([OrderStatus.PROCESSING], 0.20),
    ([OrderStatus.PROCESSING, OrderStatus.SHIPPED], 0.15),
    ([OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED], 0.30),
    ([OrderStatus.CANCELLED], 0.15),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders", type=int, default=50, help="Number of orders to create."
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        customers = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(customers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        self.stdout.write("Creating users...")
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user(
                "manager", email="manager@example.com", password="manager123", is_staff=True
            )

        seed_customers = [
            ("amina", "Amina", "Otieno", "0712345678"),
            ("brian", "Brian", "Kamau", "0723456789"),
            ("cynthia", "Cynthia", "Wanjiru", "+254734567890"),
            ("david", "David", "Mwangi", "745678901"),
            ("esther", "Esther", "Achieng", ""),
            ("felix", "Felix", "Njoroge", "0756789012"),
        ]
        customers = []
        for username, first, last, phone in seed_customers:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "first_name": first,
                    "last_name": last,
                    "email": f"{username}@example.com",
                },
            )
            if created:
                user.set_password(f"{username}123")
                user.save(update_fields=["password"])
            CustomerProfile.objects.get_or_create(
                user=user, defaults={"phone_number": phone}
            )
            customers.append(user)
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELEC-001", "27\" Monitor", "Electronics", Decimal("24999.00")),
            ("ELEC-002", "Mechanical Keyboard", "Electronics", Decimal("6499.00")),
            ("ELEC-003", "Wireless Mouse", "Electronics", Decimal("1999.00")),
            ("ELEC-004", "14\" Laptop", "Electronics", Decimal("89999.00")),
            ("ELEC-005", "Headset", "Electronics", Decimal("3499.00")),
            ("HOME-001", "Office Desk", "Furniture", Decimal("15999.00")),
            ("HOME-002", "Ergonomic Chair", "Furniture", Decimal("21999.00")),
            ("HOME-003", "Bookshelf", "Furniture", Decimal("8999.00")),
            ("OFF-001", "A4 Paper (500 sheets)", "Office", Decimal("649.00")),
            ("OFF-002", "Blue Pen", "Office", Decimal("25.00")),
            ("OFF-003", "Notebook", "Office", Decimal("150.00")),
            ("OFF-004", "Stapler", "Office", Decimal("450.00")),
            ("OFF-005", "Sticky Notes", "Office", Decimal("120.00")),
            ("OFF-006", "Desk Lamp", "Office", Decimal("1850.00")),
        ]
        for sku, name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "description": category,
                    "price": price,
                    "stock_quantity": random.randint(10, 200),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, customers: list, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        # Seeded orders go through the real service but notify nobody.
        service = build_order_service(bus=InMemoryEventBus())
        paths = [path for path, _ in STATUS_PATHS]
        weights = [weight for _, weight in STATUS_PATHS]
        orders_created = 0

        for _ in range(count):
            customer = random.choice(customers)
            lines = random.sample(products, k=min(random.randint(1, 4), len(products)))
            dto = CreateOrderDTO(
                user_id=customer.id,
                items=[
                    CreateOrderItemDTO(product_id=p.id, quantity=random.randint(1, 3))
                    for p in lines
                ],
            )
            try:
                order = service.create_order(dto)
            except InsufficientStock as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order: {exc}"))
                continue

            for new_status in random.choices(paths, weights=weights, k=1)[0]:
                order = service.update_status(order.id, new_status, order.version)

            created_at = timezone.now() - timedelta(days=random.randint(0, 30))
            Order.objects.filter(id=order.id).update(created_at=created_at)
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created

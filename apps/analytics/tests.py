# apps/analytics/tests.py
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.catalog.models import Product
from apps.orders.models import Order
from .services import compute_store_stats


class StoreStatsTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser(email="owner@example.com", password="secret123", username="owner")
        User.objects.create_admin(email="clerk@example.com", password="secret123", username="clerk")
        self.customer = User.objects.create_user(email="c@example.com", password="secret123", username="c")

        Product.objects.create(name="Mop", price="12.00", category="Tools", stock=2)
        Product.objects.create(name="Bleach", price="3.00", category="Cleaners", stock=0)

        for total, state in (("10.00", "pending"), ("5.50", "pending"), ("20.25", "delivered")):
            Order.objects.create(
                customer_name="Ravi",
                customer_email="ravi@example.com",
                address="Somewhere",
                total_amount=Decimal(total),
                status=state,
            )

    def test_compute_store_stats(self):
        stats = compute_store_stats()

        self.assertEqual(stats["totalProducts"], 2)
        self.assertEqual(stats["totalOrders"], 3)
        self.assertEqual(stats["totalAdmins"], 2)
        self.assertEqual(stats["totalSales"], Decimal("35.75"))
        self.assertEqual(stats["ordersByStatus"], {"pending": 2, "delivered": 1})

    def test_empty_store(self):
        Order.objects.all().delete()
        stats = compute_store_stats()

        self.assertEqual(stats["totalSales"], Decimal("0.00"))
        self.assertEqual(stats["ordersByStatus"], {})

    def test_stats_endpoint_is_admin_only(self):
        client = APIClient()
        self.assertEqual(client.get("/api/stats").status_code, status.HTTP_401_UNAUTHORIZED)

        client.force_authenticate(self.customer)
        self.assertEqual(client.get("/api/stats").status_code, status.HTTP_403_FORBIDDEN)

        client.force_authenticate(self.admin)
        resp = client.get("/api/stats")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["totalOrders"], 3)

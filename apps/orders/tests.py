# apps/orders/tests.py
import threading
import uuid
from decimal import Decimal
from unittest import skipUnless
from unittest.mock import patch

from django.conf import settings
from django.db import DatabaseError, connection, connections
from django.test import TestCase, TransactionTestCase

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from apps.accounts.models import User
from apps.catalog.models import Product
from apps.inventory.services import InventoryService
from apps.utils.exceptions import (
    OrderValidationError,
    InvalidReferenceError,
    InsufficientStockError,
    InvalidTransitionError,
    PersistenceError,
)
from apps.orders.models import Order, OrderItem, OrderTimeline
from apps.orders.services import OrderService


def order_payload(*lines, **overrides):
    payload = {
        "customerName": "Ravi Kumar",
        "customerEmail": "ravi@example.com",
        "customerPhone": "+919876543210",
        "address": "12 MG Road, Bengaluru",
        "items": [{"id": str(product_id), "quantity": qty} for product_id, qty in lines],
    }
    payload.update(overrides)
    return payload


class OrderTestMixin:
    def make_products(self):
        self.spray = Product.objects.create(name="Glass Spray", price=Decimal("2.50"), category="Cleaners", stock=10)
        self.mop = Product.objects.create(name="Mop", price=Decimal("12.00"), category="Tools", stock=1)
        self.bleach = Product.objects.create(name="Bleach", price=Decimal("3.33"), category="Cleaners", stock=0)

    def stock_of(self, product):
        return Product.objects.values_list("stock", flat=True).get(pk=product.pk)


class PlaceOrderServiceTests(OrderTestMixin, TestCase):

    def setUp(self):
        self.make_products()

    def test_successful_order(self):
        order = OrderService.place_order(order_payload((self.spray.id, 2), (self.mop.id, 1)))

        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.total_amount, Decimal("17.00"))
        self.assertEqual(self.stock_of(self.spray), 8)
        self.assertEqual(self.stock_of(self.mop), 0)

        items = list(order.items.all())
        self.assertEqual([i.product_name for i in items], ["Glass Spray", "Mop"])
        self.assertEqual([i.unit_price for i in items], [Decimal("2.50"), Decimal("12.00")])
        self.assertEqual(order.total_amount, sum(i.subtotal for i in items))
        self.assertEqual(order.timeline.count(), 1)

    def test_client_prices_are_ignored(self):
        payload = order_payload((self.spray.id, 3))
        payload["items"][0].update({"price": "0.01", "name": "Free stuff"})

        order = OrderService.place_order(payload)

        item = order.items.get()
        self.assertEqual(item.unit_price, Decimal("2.50"))
        self.assertEqual(item.product_name, "Glass Spray")
        self.assertEqual(order.total_amount, Decimal("7.50"))

    def test_total_is_rounded_to_cents(self):
        self.bleach.stock = 5
        self.bleach.save()

        order = OrderService.place_order(order_payload((self.bleach.id, 3)))
        self.assertEqual(order.total_amount, Decimal("9.99"))

    def test_product_id_alias(self):
        payload = order_payload()
        payload["items"] = [{"productId": str(self.spray.id), "quantity": 1}]

        order = OrderService.place_order(payload)
        self.assertEqual(order.items.get().product_id, self.spray.id)

    def test_insufficient_stock_rolls_back_earlier_lines(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            OrderService.place_order(order_payload((self.spray.id, 4), (self.mop.id, 2)))

        self.assertIn("Mop", ctx.exception.message)
        self.assertEqual(ctx.exception.product_ref, str(self.mop.id))
        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertEqual(self.stock_of(self.mop), 1)
        self.assertFalse(Order.objects.exists())

    def test_same_product_twice_counts_against_one_stock(self):
        with self.assertRaises(InsufficientStockError):
            OrderService.place_order(order_payload((self.spray.id, 6), (self.spray.id, 6)))

        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertFalse(Order.objects.exists())

    def test_malformed_product_id_touches_nothing(self):
        with patch.object(InventoryService, "reserve", wraps=InventoryService.reserve) as reserve:
            with self.assertRaises(InvalidReferenceError):
                OrderService.place_order(order_payload((self.spray.id, 1), ("bogus-id", 1)))

        reserve.assert_not_called()
        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertFalse(Order.objects.exists())

    def test_unknown_product_rolls_back(self):
        with self.assertRaises(InvalidReferenceError) as ctx:
            OrderService.place_order(order_payload((self.spray.id, 2), (uuid.uuid4(), 1)))

        self.assertIn("Product not found", ctx.exception.message)
        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertFalse(Order.objects.exists())

    def test_too_many_lines(self):
        lines = [(self.spray.id, 1)] * (settings.ORDER_MAX_LINE_ITEMS + 1)

        with self.assertRaises(OrderValidationError) as ctx:
            OrderService.place_order(order_payload(*lines))

        self.assertIn("Too many items", ctx.exception.message)
        self.assertEqual(self.stock_of(self.spray), 10)

    def test_bad_quantities(self):
        for quantity in (0, -1, settings.ORDER_MAX_ITEM_QUANTITY + 1, "two"):
            with self.subTest(quantity=quantity):
                with self.assertRaises(OrderValidationError):
                    OrderService.place_order(order_payload((self.spray.id, quantity)))

        self.assertEqual(self.stock_of(self.spray), 10)

    def test_missing_fields(self):
        for field in ("customerName", "customerEmail", "address", "items"):
            with self.subTest(field=field):
                payload = order_payload((self.spray.id, 1))
                del payload[field]
                with self.assertRaises(OrderValidationError) as ctx:
                    OrderService.place_order(payload)
                self.assertTrue(ctx.exception.message.startswith(field))

    def test_empty_items_and_bad_email(self):
        with self.assertRaises(OrderValidationError):
            OrderService.place_order(order_payload())
        with self.assertRaises(OrderValidationError):
            OrderService.place_order(order_payload((self.spray.id, 1), customerEmail="not-an-email"))
        with self.assertRaises(OrderValidationError) as ctx:
            OrderService.place_order(order_payload(items=[{"quantity": 1}]))
        self.assertIn("id or productId", ctx.exception.message)

    def test_bad_phone_rejected(self):
        with self.assertRaises(OrderValidationError) as ctx:
            OrderService.place_order(order_payload((self.spray.id, 1), customerPhone="call me"))

        self.assertEqual(ctx.exception.message, "customerPhone: Invalid phone number format.")
        self.assertEqual(self.stock_of(self.spray), 10)

    def test_blank_phone_accepted(self):
        order = OrderService.place_order(order_payload((self.spray.id, 1), customerPhone=""))
        self.assertEqual(order.customer_phone, "")

    def test_phone_is_optional(self):
        payload = order_payload((self.spray.id, 1))
        del payload["customerPhone"]

        order = OrderService.place_order(payload)
        self.assertEqual(order.customer_phone, "")

    def test_sequential_orders_never_oversell(self):
        self.spray.stock = 3
        self.spray.save()

        placed = failed = 0
        for _ in range(5):
            try:
                OrderService.place_order(order_payload((self.spray.id, 1)))
                placed += 1
            except InsufficientStockError:
                failed += 1

        self.assertEqual((placed, failed), (3, 2))
        self.assertEqual(self.stock_of(self.spray), 0)
        self.assertEqual(Order.objects.count(), 3)


class CompensationTests(OrderTestMixin, TestCase):

    def setUp(self):
        self.make_products()
        self.cloth = Product.objects.create(name="Cloth", price=Decimal("1.00"), category="Tools", stock=5)

    def test_releases_follow_reservation_order(self):
        with patch.object(InventoryService, "release", wraps=InventoryService.release) as release:
            with self.assertRaises(InsufficientStockError):
                OrderService.place_order(
                    order_payload((self.spray.id, 2), (self.cloth.id, 1), (self.bleach.id, 1))
                )

        self.assertEqual(
            [c.args for c in release.call_args_list],
            [(self.spray.id, 2), (self.cloth.id, 1)],
        )

    def test_failed_release_is_critical_and_others_continue(self):
        real_release = InventoryService.release
        calls = []

        def flaky_release(product_id, quantity):
            calls.append(product_id)
            if len(calls) == 1:
                raise DatabaseError("connection lost")
            return real_release(product_id, quantity)

        with patch.object(InventoryService, "release", side_effect=flaky_release):
            with self.assertLogs("apps.orders.services", level="CRITICAL") as logs:
                with self.assertRaises(InsufficientStockError):
                    OrderService.place_order(
                        order_payload((self.spray.id, 2), (self.cloth.id, 1), (self.bleach.id, 1))
                    )

        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].product_id, str(self.spray.id))
        self.assertEqual(logs.records[0].quantity, 2)
        # first release failed; the second still ran
        self.assertEqual(self.stock_of(self.spray), 8)
        self.assertEqual(self.stock_of(self.cloth), 5)

    def test_insert_failure_releases_stock(self):
        with patch.object(Order.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertLogs("apps.orders.services", level="ERROR"):
                with self.assertRaises(PersistenceError) as ctx:
                    OrderService.place_order(order_payload((self.spray.id, 2), (self.mop.id, 1)))

        self.assertEqual(ctx.exception.message, "Failed to create order")
        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertEqual(self.stock_of(self.mop), 1)
        self.assertFalse(OrderItem.objects.exists())

    def test_reservation_failure_releases_stock(self):
        real_reserve = InventoryService.reserve

        def failing_reserve(product_id, quantity):
            if product_id == self.cloth.id:
                raise DatabaseError("timeout")
            return real_reserve(product_id, quantity)

        with patch.object(InventoryService, "reserve", side_effect=failing_reserve):
            with self.assertLogs("apps.orders.services", level="ERROR"):
                with self.assertRaises(PersistenceError):
                    OrderService.place_order(order_payload((self.spray.id, 3), (self.cloth.id, 1)))

        self.assertEqual(self.stock_of(self.spray), 10)
        self.assertFalse(Order.objects.exists())


class UpdateStatusTests(OrderTestMixin, TestCase):

    def setUp(self):
        self.make_products()
        self.order = OrderService.place_order(order_payload((self.spray.id, 1)))

    def test_forward_transitions(self):
        OrderService.update_status(self.order.id, "confirmed")
        order = OrderService.update_status(self.order.id, "delivered")

        self.assertEqual(order.status, Order.Status.DELIVERED)
        self.assertCountEqual(
            OrderTimeline.objects.filter(order=order).values_list("status", flat=True),
            ["pending", "confirmed", "delivered"],
        )

    def test_skipping_confirmed_is_allowed(self):
        order = OrderService.update_status(self.order.id, "delivered")
        self.assertEqual(order.status, Order.Status.DELIVERED)

    def test_delivered_cannot_return_to_pending(self):
        OrderService.update_status(self.order.id, "delivered")

        with self.assertRaises(InvalidTransitionError):
            OrderService.update_status(self.order.id, "pending")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.DELIVERED)

    def test_unknown_status(self):
        with self.assertRaises(OrderValidationError):
            OrderService.update_status(self.order.id, "shipped")

    def test_cancel_does_not_restock(self):
        OrderService.update_status(self.order.id, "cancelled")
        self.assertEqual(self.stock_of(self.spray), 9)

    def test_same_status_adds_no_timeline_entry(self):
        OrderService.update_status(self.order.id, "pending")
        self.assertEqual(self.order.timeline.count(), 1)


class OrderAPITests(OrderTestMixin, APITestCase):

    def setUp(self):
        self.client = APIClient()
        self.make_products()
        self.superadmin = User.objects.create_superuser(
            email="owner@example.com", password="secret123", username="owner"
        )
        self.admin = User.objects.create_admin(
            email="clerk@example.com", password="secret123", username="clerk"
        )
        self.customer = User.objects.create_user(
            email="shopper@example.com", password="secret123", username="shopper"
        )

    def _place(self):
        return OrderService.place_order(order_payload((self.spray.id, 2)))

    def test_anonymous_checkout(self):
        resp = self.client.post("/api/orders", order_payload((self.spray.id, 2), (self.mop.id, 1)), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["status"], "pending")
        self.assertEqual(resp.data["totalAmount"], Decimal("17.00"))
        self.assertEqual([i["name"] for i in resp.data["items"]], ["Glass Spray", "Mop"])
        self.assertEqual(resp.data["items"][0]["productId"], str(self.spray.id))

    def test_checkout_insufficient_stock(self):
        resp = self.client.post("/api/orders", order_payload((self.mop.id, 5)), format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "insufficient_stock")
        self.assertEqual(resp.data["error"], 'Insufficient stock for "Mop"')
        self.assertEqual(resp.data["productId"], str(self.mop.id))

    def test_checkout_validation_error(self):
        resp = self.client.post("/api/orders", order_payload((self.spray.id, 1), customerEmail=""), format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "validation_error")
        self.assertTrue(resp.data["error"].startswith("customerEmail"))

    def test_checkout_invalid_reference(self):
        resp = self.client.post("/api/orders", order_payload(("123", 1)), format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "invalid_reference")

    def test_checkout_persistence_error_is_generic(self):
        with patch.object(Order.objects, "create", side_effect=DatabaseError("password=hunter2")):
            with self.assertLogs("apps", level="ERROR"):
                resp = self.client.post("/api/orders", order_payload((self.spray.id, 1)), format="json")

        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data, {"error": "Failed to create order", "code": "persistence_error"})

    def test_list_requires_admin(self):
        self._place()

        self.assertEqual(self.client.get("/api/orders").status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.get("/api/orders").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        resp = self.client.get("/api/orders")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data), 1)

    def test_retrieve_includes_timeline(self):
        order = self._place()
        self.client.force_authenticate(self.admin)

        resp = self.client.get(f"/api/orders/{order.id}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["timeline"][0]["status"], "pending")

    def test_invalid_and_missing_order_ids(self):
        self.client.force_authenticate(self.admin)

        resp = self.client.get("/api/orders/not-an-id")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Invalid order ID")

        resp = self.client.get(f"/api/orders/{uuid.uuid4()}")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_endpoint(self):
        order = self._place()
        self.client.force_authenticate(self.admin)
        url = f"/api/orders/{order.id}/status"

        resp = self.client.put(url, {"status": "delivered"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "delivered")
        self.assertEqual(order.timeline.get(status="delivered").created_by, self.admin)

        resp = self.client.put(url, {"status": "pending"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "invalid_transition")

        resp = self.client.put(url, {"status": "lost"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.put(url, {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_endpoint_requires_admin(self):
        order = self._place()
        resp = self.client.put(f"/api/orders/{order.id}/status", {"status": "confirmed"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_delete_is_superadmin_only(self):
        order = self._place()
        url = f"/api/orders/{order.id}"

        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.superadmin)
        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["message"], "Order deleted")
        self.assertFalse(Order.objects.filter(pk=order.pk).exists())

    def test_history_survives_product_edits(self):
        order = self._place()
        self.spray.price = Decimal("9.99")
        self.spray.name = "Glass Spray XL"
        self.spray.save()

        self.client.force_authenticate(self.admin)
        resp = self.client.get(f"/api/orders/{order.id}")
        self.assertEqual(resp.data["items"][0]["name"], "Glass Spray")
        self.assertEqual(resp.data["items"][0]["price"], Decimal("2.50"))
        self.assertEqual(resp.data["totalAmount"], Decimal("5.00"))


@skipUnless(connection.vendor == "postgresql", "needs row-level write concurrency")
class ConcurrentCheckoutTests(TransactionTestCase):

    def test_parallel_orders_never_oversell(self):
        product = Product.objects.create(name="Mop", price=Decimal("12.00"), category="Tools", stock=5)
        results = []
        lock = threading.Lock()

        def buy():
            try:
                OrderService.place_order(order_payload((product.id, 1)))
                outcome = "ok"
            except InsufficientStockError:
                outcome = "short"
            finally:
                connections.close_all()
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=buy) for _ in range(12)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count("ok"), 5)
        self.assertEqual(results.count("short"), 7)
        product.refresh_from_db()
        self.assertEqual(product.stock, 0)
        self.assertEqual(Order.objects.count(), 5)

import uuid

from django.test import TestCase

from apps.catalog.models import Product
from .services import InventoryService


class InventoryServiceTests(TestCase):

    def setUp(self):
        self.product = Product.objects.create(name="Mop", price="12.00", category="Tools", stock=5)

    def test_reserve_decrements(self):
        self.assertTrue(InventoryService.reserve(self.product.id, 3))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)

    def test_reserve_exact_stock(self):
        self.assertTrue(InventoryService.reserve(self.product.id, 5))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 0)

    def test_reserve_refuses_over_sell(self):
        self.assertFalse(InventoryService.reserve(self.product.id, 6))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_reserve_unknown_product(self):
        self.assertFalse(InventoryService.reserve(uuid.uuid4(), 1))

    def test_release_restores(self):
        InventoryService.reserve(self.product.id, 4)
        self.assertTrue(InventoryService.release(self.product.id, 4))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_release_of_deleted_product_is_logged(self):
        missing = uuid.uuid4()
        with self.assertLogs("apps.inventory.services", level="WARNING"):
            self.assertFalse(InventoryService.release(missing, 2))

    def test_lookup_name(self):
        self.assertEqual(InventoryService.lookup_name(self.product.id), "Mop")
        self.assertIsNone(InventoryService.lookup_name(uuid.uuid4()))

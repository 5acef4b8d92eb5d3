# apps/catalog/tests.py
import os
from io import StringIO
import tempfile
import uuid
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from apps.accounts.models import User
from apps.inventory.services import InventoryService
from .models import Category, Product
from .services import CatalogService, CATEGORY_LIST_CACHE_KEY
from .views import ProductViewSet


class CatalogAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.admin = User.objects.create_admin(
            email="admin@example.com", password="secret123", username="admin"
        )
        self.customer = User.objects.create_user(
            email="shopper@example.com", password="secret123", username="shopper"
        )
        self.cleaners = Category.objects.create(name="Cleaners")
        self.tools = Category.objects.create(name="Tools")


class CategoryViewSetTests(CatalogAPITestCase):

    def test_public_list_sorted_by_name(self):
        Category.objects.create(name="Air Fresheners")
        cache.clear()

        resp = self.client.get("/api/categories")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([c["name"] for c in resp.data], ["Air Fresheners", "Cleaners", "Tools"])

    def test_list_is_cached_and_invalidated_on_write(self):
        self.client.get("/api/categories")
        self.assertIsNotNone(cache.get(CATEGORY_LIST_CACHE_KEY))

        self.client.force_authenticate(self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.post("/api/categories", {"name": "Laundry"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(cache.get(CATEGORY_LIST_CACHE_KEY))

        names = [c["name"] for c in self.client.get("/api/categories").data]
        self.assertIn("Laundry", names)

    def test_create_requires_admin(self):
        resp = self.client.post("/api/categories", {"name": "Laundry"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.customer)
        resp = self.client.post("/api/categories", {"name": "Laundry"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_name_rejected(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post("/api/categories", {"name": "Tools"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Category already exists")

    def test_rename_moves_products(self):
        Product.objects.create(name="Mop", price="12.00", category="Tools", stock=3)
        self.client.force_authenticate(self.admin)

        resp = self.client.put(f"/api/categories/{self.tools.id}", {"name": "Equipment"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.get(name="Mop").category, "Equipment")

    def test_rename_drops_cache_only_after_commit(self):
        CatalogService.list_categories()

        with self.captureOnCommitCallbacks() as callbacks:
            CatalogService.update_category(self.tools, name="Equipment")
            # a reader inside the open transaction still gets the cached list
            self.assertIsNotNone(cache.get(CATEGORY_LIST_CACHE_KEY))

        self.assertEqual(len(callbacks), 1)
        callbacks[0]()
        self.assertIsNone(cache.get(CATEGORY_LIST_CACHE_KEY))
        self.assertIn("Equipment", [c.name for c in CatalogService.list_categories()])

    def test_delete_drops_cache_after_commit(self):
        CatalogService.list_categories()

        with self.captureOnCommitCallbacks(execute=True):
            CatalogService.delete_category(self.cleaners)

        self.assertEqual([c.name for c in CatalogService.list_categories()], ["Tools"])

    def test_rename_to_existing_name_rejected(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.put(f"/api/categories/{self.tools.id}", {"name": "Cleaners"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Category name already exists")

    def test_delete_blocked_while_products_exist(self):
        Product.objects.create(name="Mop", price="12.00", category="Tools", stock=3)
        self.client.force_authenticate(self.admin)

        resp = self.client.delete(f"/api/categories/{self.tools.id}")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Cannot delete category that has products")

        resp = self.client.delete(f"/api/categories/{self.cleaners.id}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Category.objects.filter(name="Cleaners").exists())

    def test_malformed_and_missing_ids(self):
        resp = self.client.get("/api/categories/not-a-uuid")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Invalid category ID")

        resp = self.client.get(f"/api/categories/{uuid.uuid4()}")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class ProductViewSetTests(CatalogAPITestCase):

    def setUp(self):
        super().setUp()
        self.spray = Product.objects.create(name="Glass Spray", price="4.50", category="Cleaners", stock=10)
        self.bleach = Product.objects.create(name="Bleach", price="3.00", category="Cleaners", stock=0)
        self.mop = Product.objects.create(name="Mop", price="12.00", category="Tools", stock=2)

    def test_list_hides_out_of_stock(self):
        resp = self.client.get("/api/products")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual({p["name"] for p in resp.data}, {"Glass Spray", "Mop"})

    def test_list_all_includes_out_of_stock(self):
        resp = self.client.get("/api/products", {"all": "true"})
        self.assertEqual({p["name"] for p in resp.data}, {"Glass Spray", "Bleach", "Mop"})

    def test_filter_by_category(self):
        resp = self.client.get("/api/products", {"category": "Cleaners", "all": "true"})
        self.assertEqual({p["name"] for p in resp.data}, {"Glass Spray", "Bleach"})

        resp = self.client.get("/api/products", {"category": "all"})
        self.assertEqual({p["name"] for p in resp.data}, {"Glass Spray", "Mop"})

    def test_detail_shows_out_of_stock_product(self):
        resp = self.client.get(f"/api/products/{self.bleach.id}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stock"], 0)

    def test_admin_creates_product(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            "/api/products",
            {"name": "Sponge", "price": "1.25", "category": "Tools", "stock": 40},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["price"], Decimal("1.25"))
        self.assertEqual(resp.data["image"], "/uploads/placeholder.svg")

    def test_product_needs_known_category(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            "/api/products",
            {"name": "Sponge", "price": "1.25", "category": "Garden"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "category: Unknown category 'Garden'")

    def test_negative_values_rejected(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            "/api/products",
            {"name": "Sponge", "price": "-1", "category": "Tools"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.put(f"/api/products/{self.mop.id}", {"stock": -5}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_partial_update(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.put(f"/api/products/{self.mop.id}", {"stock": 7}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        self.mop.refresh_from_db()
        self.assertEqual(self.mop.stock, 7)
        self.assertEqual(self.mop.name, "Mop")

    def test_edit_keeps_stock_reserved_during_the_request(self):
        real_get_object = ProductViewSet.get_object

        def get_object_then_checkout(view):
            product = real_get_object(view)
            # a checkout takes the remaining units after the admin's read
            self.assertTrue(InventoryService.reserve(product.pk, 2))
            return product

        self.client.force_authenticate(self.admin)
        with patch.object(ProductViewSet, "get_object", get_object_then_checkout):
            resp = self.client.put(f"/api/products/{self.mop.id}", {"name": "Mop v2"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stock"], 0)
        self.mop.refresh_from_db()
        self.assertEqual(self.mop.name, "Mop v2")
        self.assertEqual(self.mop.stock, 0)

    def test_writes_require_admin(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.delete(f"/api/products/{self.mop.id}")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.delete(f"/api/products/{self.mop.id}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["message"], "Product deleted")
        self.assertFalse(Product.objects.filter(pk=self.mop.pk).exists())

    def test_invalid_product_id(self):
        resp = self.client.get("/api/products/xyz")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"], "Invalid product ID")


class ImportCatalogCommandTests(TestCase):

    def setUp(self):
        cache.clear()

    def _write_csv(self, content):
        fd, path = tempfile.mkstemp(suffix=".csv")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        self.addCleanup(os.remove, path)
        return path

    def test_imports_and_updates(self):
        path = self._write_csv(
            "name,category,price,stock,description\n"
            "Glass Spray,Cleaners,4.50,10,Streak free\n"
            "Mop,Tools,12.00,2,\n"
            ",Tools,1.00,1,skipped\n"
        )
        call_command("import_catalog", path, stdout=StringIO())

        self.assertEqual(Product.objects.count(), 2)
        self.assertEqual(
            [c.name for c in CatalogService.list_categories()], ["Cleaners", "Tools"]
        )

        path = self._write_csv("name,category,price,stock,description\nMop,Tools,15.00,5,\n")
        call_command("import_catalog", path, stdout=StringIO())

        mop = Product.objects.get(name="Mop")
        self.assertEqual(mop.price, Decimal("15.00"))
        self.assertEqual(mop.stock, 5)

    def test_bad_row_aborts_import(self):
        path = self._write_csv(
            "name,category,price,stock,description\n"
            "Glass Spray,Cleaners,4.50,10,\n"
            "Mop,Tools,cheap,2,\n"
        )
        with self.assertRaises(CommandError):
            call_command("import_catalog", path, stdout=StringIO())

        self.assertEqual(Product.objects.count(), 0)

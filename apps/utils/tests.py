# apps/utils/tests.py
import uuid
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError, NotAuthenticated
from rest_framework.test import APIClient

from .exceptions import (
    BusinessLogicException,
    InsufficientStockError,
    PersistenceError,
    custom_exception_handler,
    describe_validation_error,
)
from .validators import validate_phone, is_valid_identifier


class ValidatorTests(TestCase):
    def test_phone_validator(self):
        self.assertEqual(validate_phone("+919876543210"), "+919876543210")
        self.assertEqual(validate_phone("555-123 4567"), "555-123 4567")
        with self.assertRaises(ValidationError):
            validate_phone("123")  # Too short
        with self.assertRaises(ValidationError):
            validate_phone("call me")

    def test_identifier_validator(self):
        self.assertTrue(is_valid_identifier(str(uuid.uuid4())))
        self.assertTrue(is_valid_identifier(uuid.uuid4()))
        self.assertFalse(is_valid_identifier("not-an-id"))
        self.assertFalse(is_valid_identifier(""))
        self.assertFalse(is_valid_identifier(None))
        self.assertFalse(is_valid_identifier(42))


class ExceptionHandlerTests(TestCase):
    def test_business_exception_envelope(self):
        resp = custom_exception_handler(BusinessLogicException("Nope", code="nope"), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data, {"error": "Nope", "code": "nope"})

    def test_stock_error_carries_product_id(self):
        ref = str(uuid.uuid4())
        resp = custom_exception_handler(InsufficientStockError('Insufficient stock for "Soap"', product_ref=ref), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "insufficient_stock")
        self.assertEqual(resp.data["productId"], ref)

    def test_persistence_error_is_500(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            resp = custom_exception_handler(PersistenceError("Failed to create order"), {})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data["error"], "Failed to create order")

    def test_drf_validation_error_flattened(self):
        resp = custom_exception_handler(ValidationError({"email": ["Enter a valid email address."]}), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"], "email: Enter a valid email address.")
        self.assertEqual(resp.data["code"], "validation_error")
        self.assertIn("fields", resp.data)

    def test_drf_auth_error(self):
        resp = custom_exception_handler(NotAuthenticated(), {})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], "not_authenticated")

    def test_unhandled_exception_hides_details(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            resp = custom_exception_handler(RuntimeError("db password is hunter2"), {})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.data, {"error": "Internal Server Error", "code": "server_error"})

    def test_nested_validation_message(self):
        detail = {"items": [{}, {"quantity": ["Quantity must be between 1 and 1000"]}]}
        self.assertEqual(
            describe_validation_error(detail),
            "items[1].quantity: Quantity must be between 1 and 1000",
        )
        self.assertEqual(describe_validation_error({"non_field_errors": ["Bad"]}), "Bad")
        self.assertEqual(describe_validation_error({}), "Invalid input")


class SystemEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_landing(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content.decode(), "Cleaning Store Backend Running")

    def test_health_ok(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["components"], {"db": "ok", "cache": "ok"})

    @patch("apps.utils.health.connection")
    def test_health_reports_db_failure(self, mock_connection):
        mock_connection.cursor.side_effect = DatabaseError("down")
        with self.assertLogs("apps.utils.health", level="WARNING"):
            resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["components"]["db"], "unknown")

    def test_info(self):
        resp = self.client.get("/api/info")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("max_order_items", resp.data)

    def test_unknown_api_path_is_json_404(self):
        resp = self.client.get("/api/does-not-exist")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Endpoint not found.")

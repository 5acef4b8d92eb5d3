from unittest.mock import patch
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import User, Role
from apps.accounts.services import AuthService


def auth_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AuthService.issue_tokens(user)['token']}")
    return client


class CustomerAuthTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.payload = {
            "username": "Asha",
            "email": "Asha@Example.com",
            "password": "secret123",
            "phone": "+919876543210",
        }

    def test_register_customer(self):
        response = self.client.post("/api/customers/register", self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Customer registered successfully")

        user = User.objects.get()
        self.assertEqual(user.email, "asha@example.com")
        self.assertEqual(user.role, Role.CUSTOMER)
        self.assertFalse(user.is_staff)
        self.assertTrue(user.check_password("secret123"))

    def test_register_duplicate_email(self):
        self.client.post("/api/customers/register", self.payload, format="json")
        response = self.client.post("/api/customers/register", self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Email already in use")

    def test_register_short_password(self):
        self.payload["password"] = "123"
        response = self.client.post("/api/customers/register", self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "password: Password must be at least 6 characters")

    def test_login_and_profile(self):
        self.client.post("/api/customers/register", self.payload, format="json")

        response = self.client.post(
            "/api/customers/login", {"email": "asha@example.com", "password": "secret123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("refresh", response.data)

        token = AccessToken(response.data["token"])
        self.assertEqual(token["type"], "customer")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        me = self.client.get("/api/customers/me")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["username"], "Asha")
        self.assertNotIn("password", me.data)

    def test_login_wrong_password(self):
        self.client.post("/api/customers/register", self.payload, format="json")
        response = self.client.post(
            "/api/customers/login", {"email": "asha@example.com", "password": "wrong-pass"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "Invalid credentials")

    def test_me_requires_token(self):
        response = self.client.get("/api/customers/me")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_token_rejected_on_customer_profile(self):
        admin = User.objects.create_superuser(email="root@example.com", password="secret123", username="root")
        response = auth_client(admin).get("/api/customers/me")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "Not a customer token")


class AdminAuthTests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def _register(self, client, username, email):
        return client.post(
            "/api/auth/register",
            {"username": username, "email": email, "password": "secret123"},
            format="json",
        )

    def test_first_admin_becomes_superadmin(self):
        response = self._register(self.client, "owner", "owner@example.com")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["admin"]["role"], "superadmin")
        self.assertIn("token", response.data)

        owner = User.objects.get(username="owner")
        self.assertTrue(owner.is_staff)
        self.assertTrue(owner.is_superuser)
        self.assertEqual(AccessToken(response.data["token"])["type"], "admin")

    def test_later_admins_need_superadmin(self):
        self._register(self.client, "owner", "owner@example.com")

        anonymous = self._register(APIClient(), "intruder", "intruder@example.com")
        self.assertEqual(anonymous.status_code, status.HTTP_403_FORBIDDEN)

        owner = User.objects.get(username="owner")
        response = self._register(auth_client(owner), "clerk", "clerk@example.com")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["admin"]["role"], "admin")

        clerk = User.objects.get(username="clerk")
        blocked = self._register(auth_client(clerk), "clerk2", "clerk2@example.com")
        self.assertEqual(blocked.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_admin(self):
        self._register(self.client, "owner", "owner@example.com")
        owner = User.objects.get(username="owner")

        response = self._register(auth_client(owner), "owner", "other@example.com")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Username or email already exists")

    def test_login_and_me(self):
        self._register(self.client, "owner", "owner@example.com")

        response = self.client.post(
            "/api/auth/login", {"username": "owner", "password": "secret123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["admin"]["username"], "owner")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        me = self.client.get("/api/auth/me")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "owner@example.com")

    def test_login_bad_password(self):
        self._register(self.client, "owner", "owner@example.com")
        response = self.client.post(
            "/api/auth/login", {"username": "owner", "password": "nope-nope"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_customer_token_rejected_on_admin_profile(self):
        customer = User.objects.create_user(email="c@example.com", password="secret123", username="c")
        response = auth_client(customer).get("/api/auth/me")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "Not an admin token")

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        response = self.client.get("/api/auth/me")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_refresh(self):
        owner = User.objects.create_superuser(email="root@example.com", password="secret123", username="root")
        refresh = AuthService.issue_tokens(owner)["refresh"]

        response = self.client.post("/api/auth/token/refresh", {"refresh": refresh}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)


class CreateAdminCommandTests(TestCase):

    def test_bootstraps_superadmin_from_env(self):
        env = {
            "ADMIN_USERNAME": "boot",
            "ADMIN_EMAIL": "boot@example.com",
            "ADMIN_PASSWORD": "secret123",
            "ALLOW_CREATE_ADMIN_IN_PROD": "True",
        }
        with patch.dict("os.environ", env):
            call_command("create_admin")

        user = User.objects.get(email="boot@example.com")
        self.assertTrue(user.is_superadmin)
        self.assertTrue(user.check_password("secret123"))

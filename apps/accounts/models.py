import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils import timezone
from .managers import UserManager

class Role(models.TextChoices):
    CUSTOMER = "CUSTOMER", "Customer"
    ADMIN = "ADMIN", "Admin"
    SUPERADMIN = "SUPERADMIN", "Super Admin"


ADMIN_ROLES = (Role.ADMIN, Role.SUPERADMIN)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Single identity table for store customers and dashboard admins.
    Customers sign in with email, admins with username.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER, db_index=True)

    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        constraints = [
            models.UniqueConstraint(
                fields=["username"],
                condition=models.Q(is_staff=True),
                name="uniq_admin_username",
            )
        ]

    def __str__(self):
        return f"{self.username} <{self.email}>"

    @property
    def is_admin(self):
        return self.role in ADMIN_ROLES

    @property
    def is_superadmin(self):
        return self.role == Role.SUPERADMIN

    @property
    def token_type(self):
        return "admin" if self.is_admin else "customer"

# apps/catalog/models.py
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.utils.models import TimestampedModel


def default_product_image():
    return settings.PRODUCT_PLACEHOLDER_IMAGE


class Category(TimestampedModel):
    """
    Flat product category. Products refer to it by name, not by id.
    """
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Product(TimestampedModel):
    """
    Sellable item. `stock` only moves through InventoryService during
    checkout; admins may overwrite it directly.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    # Category *name*; kept in sync on rename by CatalogService
    category = models.CharField(max_length=255, db_index=True)
    stock = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    image = models.CharField(max_length=500, default=default_product_image)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "stock"], name="product_category_stock_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name='product_stock_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='product_price_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.stock} in stock)"

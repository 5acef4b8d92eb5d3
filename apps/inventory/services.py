import logging
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import Product

logger = logging.getLogger(__name__)

class InventoryService:
    """
    Checkout-time stock movement.
    Each call is one single-row UPDATE; atomicity holds per product only.
    Callers that touch several products own the compensation.
    """

    @staticmethod
    def reserve(product_id, quantity: int) -> bool:
        """
        Guarded decrement: takes `quantity` units only if that many are
        on hand at write time. Returns False when nothing matched, which
        covers both an unknown product and insufficient stock.
        """
        updated = (
            Product.objects
            .filter(pk=product_id, stock__gte=quantity)
            .update(stock=F("stock") - quantity, updated_at=timezone.now())
        )
        return updated == 1

    @staticmethod
    def release(product_id, quantity: int) -> bool:
        """
        Compensating increment for an earlier successful reserve().
        Returns False if the product vanished in between.
        """
        updated = (
            Product.objects
            .filter(pk=product_id)
            .update(stock=F("stock") + quantity, updated_at=timezone.now())
        )
        if not updated:
            logger.warning(
                f"Stock release skipped, product {product_id} no longer exists",
                extra={"product_id": product_id, "quantity": quantity},
            )
        return updated == 1

    @staticmethod
    def lookup_name(product_id):
        """Name of the product, or None if it does not exist."""
        return Product.objects.filter(pk=product_id).values_list("name", flat=True).first()

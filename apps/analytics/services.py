# apps/analytics/services.py
import logging
from decimal import Decimal

from django.db.models import Sum, Count

from apps.accounts.models import User
from apps.catalog.models import Product
from apps.orders.models import Order

logger = logging.getLogger(__name__)


def compute_store_stats() -> dict:
    """
    Live counters for the admin dashboard. Every value is computed on
    request; nothing is snapshotted.
    """
    total_sales = Order.objects.aggregate(s=Sum("total_amount"))["s"] or Decimal("0.00")

    orders_by_status = {
        row["status"]: row["count"]
        for row in Order.objects.order_by().values("status").annotate(count=Count("id"))
    }

    return {
        "totalProducts": Product.objects.count(),
        "totalOrders": Order.objects.count(),
        "totalAdmins": User.objects.admins().count(),
        "totalSales": total_sales,
        "ordersByStatus": orders_by_status,
    }

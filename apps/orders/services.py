import uuid
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from django.conf import settings
from django.db import transaction, DatabaseError
from rest_framework.exceptions import ValidationError

from apps.utils.exceptions import (
    BusinessLogicException,
    OrderValidationError,
    InvalidReferenceError,
    InsufficientStockError,
    InvalidTransitionError,
    PersistenceError,
    describe_validation_error,
)
from apps.utils.validators import is_valid_identifier
from apps.inventory.services import InventoryService
from apps.catalog.models import Product
from .models import Order, OrderItem, OrderTimeline
from .serializers import OrderCreateSerializer

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderLine:
    product_ref: str
    quantity: int

    @property
    def product_id(self) -> uuid.UUID:
        return uuid.UUID(str(self.product_ref))


@dataclass(frozen=True)
class OrderRequest:
    customer_name: str
    customer_email: str
    address: str
    lines: List[OrderLine]
    customer_phone: Optional[str] = None


class OrderService:

    @staticmethod
    def parse_request(payload) -> OrderRequest:
        """
        Turns a raw request body into an OrderRequest, or raises
        OrderValidationError. Nothing is read from the database here.
        """
        serializer = OrderCreateSerializer(
            data=payload,
            context={
                "max_items": settings.ORDER_MAX_LINE_ITEMS,
                "max_quantity": settings.ORDER_MAX_ITEM_QUANTITY,
            },
        )
        try:
            serializer.is_valid(raise_exception=True)
        except ValidationError as exc:
            raise OrderValidationError(describe_validation_error(exc.detail))

        data = serializer.validated_data
        return OrderRequest(
            customer_name=data["customerName"],
            customer_email=data["customerEmail"].lower(),
            customer_phone=data.get("customerPhone") or None,
            address=data["address"],
            lines=[OrderLine(product_ref=i["product_ref"], quantity=i["quantity"]) for i in data["items"]],
        )

    @staticmethod
    def place_order(payload) -> Order:
        """
        Order placement:
        1. Validate the request (no side effects)
        2. Reserve stock line by line with guarded decrements
        3. Snapshot prices server-side and insert the order

        Any failure after step 2 has started releases every unit this
        request reserved before the error is raised. The reservation loop
        is not one transaction: each decrement commits on
        its own, so a concurrent reader can briefly see stock that a
        failing request is about to give back.
        """
        request = payload if isinstance(payload, OrderRequest) else OrderService.parse_request(payload)

        for line in request.lines:
            if not is_valid_identifier(line.product_ref):
                raise InvalidReferenceError(
                    f"Invalid product ID: {line.product_ref}", product_ref=line.product_ref
                )

        reserved = OrderService._reserve_lines(request.lines)

        try:
            order = OrderService._commit(request, reserved)
        except BusinessLogicException:
            OrderService._release_lines(reserved)
            raise
        except DatabaseError:
            logger.exception("Order insert failed, releasing reserved stock")
            OrderService._release_lines(reserved)
            raise PersistenceError("Failed to create order")

        logger.info(
            f"Order {order.id} placed: {len(reserved)} lines, total {order.total_amount}",
            extra={"order_id": order.id},
        )
        return order

    @staticmethod
    def _reserve_lines(lines: List[OrderLine]) -> List[OrderLine]:
        """
        Strictly sequential: the release path must know exactly which
        decrements went through.
        """
        reserved = []

        for line in lines:
            try:
                if InventoryService.reserve(line.product_id, line.quantity):
                    reserved.append(line)
                    continue
                product_name = InventoryService.lookup_name(line.product_id)
            except DatabaseError:
                logger.exception(
                    f"Stock reservation failed for product {line.product_ref}",
                    extra={"product_id": line.product_ref},
                )
                OrderService._release_lines(reserved)
                raise PersistenceError("Failed to create order")

            OrderService._release_lines(reserved)

            if product_name is None:
                logger.warning(f"Order rejected: product {line.product_ref} not found")
                raise InvalidReferenceError(
                    f"Product not found: {line.product_ref}", product_ref=line.product_ref
                )

            logger.warning(
                f"Order rejected: insufficient stock for {line.product_ref} (wanted {line.quantity})",
                extra={"product_id": line.product_ref, "quantity": line.quantity},
            )
            raise InsufficientStockError(
                f'Insufficient stock for "{product_name}"', product_ref=line.product_ref
            )

        return reserved

    @staticmethod
    def _release_lines(reserved: List[OrderLine]):
        """
        Compensation, in the order the decrements happened. A release that
        fails leaves stock under-counted; it is logged as CRITICAL for an
        operator to correct and the remaining releases still run.
        """
        for line in reserved:
            try:
                InventoryService.release(line.product_id, line.quantity)
            except DatabaseError:
                logger.critical(
                    f"Stock compensation failed: product {line.product_ref} "
                    f"is under-counted by {line.quantity}",
                    exc_info=True,
                    extra={"product_id": line.product_ref, "quantity": line.quantity},
                )

    @staticmethod
    @transaction.atomic
    def _commit(request: OrderRequest, reserved: List[OrderLine]) -> Order:
        # Fetch products from DB (client-sent prices are never used)
        products = Product.objects.in_bulk([line.product_id for line in reserved])

        snapshots = []
        total_amount = Decimal("0.00")

        for position, line in enumerate(reserved):
            product = products.get(line.product_id)
            if product is None:
                # deleted between its reservation and now
                raise InvalidReferenceError(
                    f"Product not found: {line.product_ref}", product_ref=line.product_ref
                )

            total_amount += product.price * line.quantity
            snapshots.append((position, product, line.quantity))

        order = Order.objects.create(
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone or "",
            address=request.address,
            total_amount=total_amount.quantize(CENT, rounding=ROUND_HALF_UP),
            status=Order.Status.PENDING,
        )

        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=product,
                product_name=product.name,
                unit_price=product.price,
                quantity=quantity,
                position=position,
            ) for position, product, quantity in snapshots
        ])

        OrderTimeline.objects.create(
            order=order,
            status=Order.Status.PENDING,
            note="Order placed",
        )

        return order

    @staticmethod
    @transaction.atomic
    def update_status(order_id, new_status: str, actor=None) -> Order:
        """
        Any status may follow any other, except that a delivered order
        can never go back to pending. Raises Order.DoesNotExist for an
        unknown id.
        """
        if new_status not in Order.Status.values:
            raise OrderValidationError(
                f"Status must be one of: {', '.join(Order.Status.values)}"
            )

        order = Order.objects.select_for_update().get(pk=order_id)

        if order.status == Order.Status.DELIVERED and new_status == Order.Status.PENDING:
            raise InvalidTransitionError("A delivered order cannot be moved back to pending")

        previous = order.status
        order.status = new_status
        order.save(update_fields=["status", "updated_at"])

        if previous != new_status:
            OrderTimeline.objects.create(
                order=order,
                status=new_status,
                note=f"Status changed from {previous}",
                created_by=actor if getattr(actor, "is_authenticated", False) else None,
            )
            logger.info(f"Order {order.id}: {previous} -> {new_status}", extra={"order_id": order.id})

        return order

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdmin, IsSuperAdmin
from apps.utils.views import IdentifierLookupMixin
from .models import Order
from .serializers import OrderSerializer, OrderDetailSerializer, OrderStatusSerializer
from .services import OrderService


class OrderViewSet(IdentifierLookupMixin, viewsets.GenericViewSet):
    """
    Storefront checkout is anonymous; everything after it is back office.
    """
    serializer_class = OrderSerializer
    invalid_id_message = "Invalid order ID"
    filter_backends = []

    def get_queryset(self):
        return (
            Order.objects.all()
            .prefetch_related('items', 'timeline')
            .order_by('-created_at')
        )

    def get_permissions(self):
        if self.action == 'create':
            return [AllowAny()]
        if self.action == 'destroy':
            return [IsAuthenticated(), IsSuperAdmin()]
        return [IsAuthenticated(), IsAdmin()]

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return OrderDetailSerializer
        if self.action == 'update_status':
            return OrderStatusSerializer
        return OrderSerializer

    def create(self, request):
        # Validation, stock reservation and rollback all live in the service
        order = OrderService.place_order(request.data)
        order = self.get_queryset().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def list(self, request):
        serializer = OrderSerializer(self.get_queryset(), many=True)
        return Response(serializer.data)

    def retrieve(self, request, pk=None):
        return Response(OrderDetailSerializer(self.get_object()).data)

    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status(
            order.pk, serializer.validated_data['status'], actor=request.user
        )
        return Response(OrderSerializer(order).data)

    def destroy(self, request, pk=None):
        self.get_object().delete()
        return Response({"message": "Order deleted"})

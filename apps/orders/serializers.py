from rest_framework import serializers
from apps.utils.validators import validate_phone
from .models import Order, OrderItem, OrderTimeline


class OrderLineInputSerializer(serializers.Serializer):
    """
    One requested line. Storefront clients send `id`, older ones
    `productId`; any name/price they add is ignored.
    """
    id = serializers.CharField(required=False, trim_whitespace=True)
    productId = serializers.CharField(required=False, trim_whitespace=True)
    quantity = serializers.IntegerField(required=False, default=1)

    def validate(self, attrs):
        product_ref = attrs.get("id") or attrs.get("productId")
        if not product_ref:
            raise serializers.ValidationError("Each item needs an id or productId")

        max_quantity = self.context["max_quantity"]
        quantity = attrs["quantity"]
        if quantity < 1 or quantity > max_quantity:
            raise serializers.ValidationError(f"Quantity must be between 1 and {max_quantity}")

        return {"product_ref": product_ref, "quantity": quantity}


class OrderCreateSerializer(serializers.Serializer):
    customerName = serializers.CharField(max_length=255)
    customerEmail = serializers.EmailField()
    customerPhone = serializers.CharField(
        max_length=20, required=False, allow_blank=True, allow_null=True, validators=[validate_phone]
    )
    address = serializers.CharField()
    items = OrderLineInputSerializer(many=True, allow_empty=False)

    def validate_items(self, value):
        max_items = self.context["max_items"]
        if len(value) > max_items:
            raise serializers.ValidationError(f"Too many items: an order may contain at most {max_items} lines")
        return value


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.UUIDField(source="product_id", read_only=True)
    name = serializers.CharField(source="product_name")
    price = serializers.DecimalField(source="unit_price", max_digits=10, decimal_places=2)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['productId', 'name', 'quantity', 'price', 'subtotal']


class OrderTimelineSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTimeline
        fields = ['status', 'note', 'timestamp']


class OrderSerializer(serializers.ModelSerializer):
    customerName = serializers.CharField(source="customer_name")
    customerEmail = serializers.EmailField(source="customer_email")
    customerPhone = serializers.CharField(source="customer_phone")
    items = OrderItemSerializer(many=True, read_only=True)
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customerName', 'customerEmail', 'customerPhone', 'address',
            'items', 'totalAmount', 'status', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    timeline = OrderTimelineSerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['timeline']
        read_only_fields = fields


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

# apps/catalog/serializers.py
from decimal import Decimal
from rest_framework import serializers
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "description", "createdAt", "updatedAt"]
        extra_kwargs = {
            # uniqueness is reported by CatalogService with the store's own message
            "name": {"validators": []},
            "description": {"required": False, "allow_blank": True},
        }


class ProductSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.00"))
    stock = serializers.IntegerField(min_value=0, required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "category",
            "stock",
            "image",
            "createdAt",
            "updatedAt",
        ]
        extra_kwargs = {
            "description": {"required": False, "allow_blank": True},
            "image": {"required": False},
        }

    def update(self, instance, validated_data):
        # Only the sent columns are written; stock moves under checkout's guarded updates
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=[*validated_data, "updated_at"])

        if "stock" not in validated_data:
            instance.refresh_from_db(fields=["stock"])
        return instance

    def validate_category(self, value):
        if not Category.objects.filter(name=value).exists():
            raise serializers.ValidationError(f"Unknown category '{value}'")
        return value

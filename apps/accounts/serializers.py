from rest_framework import serializers
from apps.utils.validators import validate_phone
from .models import User


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(
        min_length=6,
        write_only=True,
        error_messages={"min_length": "Password must be at least 6 characters"},
    )
    # blank phones skip the format check
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, validators=[validate_phone])


class CustomerLoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True)


class AdminLoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)


class CustomerProfileSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'phone', 'createdAt']


class AdminProfileSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'phone', 'role', 'createdAt']

    def get_role(self, obj):
        return obj.role.lower()

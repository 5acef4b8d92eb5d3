from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated

from .permissions import IsAdmin, IsCustomer
from .services import AuthService
from .serializers import (
    RegisterSerializer,
    CustomerLoginSerializer,
    AdminLoginSerializer,
    CustomerProfileSerializer,
    AdminProfileSerializer,
)


class CustomerRegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AuthService.register_customer(**serializer.validated_data)

        return Response(
            {"message": "Customer registered successfully"},
            status=status.HTTP_201_CREATED
        )


class CustomerLoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CustomerLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = AuthService.authenticate_customer(**serializer.validated_data)
        return Response(AuthService.issue_tokens(user), status=status.HTTP_200_OK)


class CustomerMeView(APIView):
    permission_classes = [IsAuthenticated, IsCustomer]

    def get(self, request):
        return Response(CustomerProfileSerializer(request.user).data)


class AdminRegisterView(APIView):
    """
    Open only while the store has no admin; afterwards superadmin-only
    (enforced in AuthService.register_admin).
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = AuthService.register_admin(requested_by=request.user, **serializer.validated_data)

        return Response({
            **AuthService.issue_tokens(admin),
            "admin": AdminProfileSerializer(admin).data,
        }, status=status.HTTP_201_CREATED)


class AdminLoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = AdminLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = AuthService.authenticate_admin(**serializer.validated_data)
        return Response({
            **AuthService.issue_tokens(admin),
            "admin": AdminProfileSerializer(admin).data,
        }, status=status.HTTP_200_OK)


class AdminMeView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(AdminProfileSerializer(request.user).data)

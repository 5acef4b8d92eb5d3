from rest_framework import viewsets, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdmin
from apps.utils.views import IdentifierLookupMixin
from .filters import ProductFilter
from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer
from .services import CatalogService


class AdminWriteMixin:
    """
    Reads are public; every write needs an admin token.
    """
    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [AllowAny()]
        return [IsAuthenticated(), IsAdmin()]


class CategoryViewSet(AdminWriteMixin, IdentifierLookupMixin, viewsets.ModelViewSet):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    invalid_id_message = "Invalid category ID"
    filter_backends = []

    def list(self, request, *args, **kwargs):
        categories = CatalogService.list_categories()
        return Response(self.get_serializer(categories, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = CatalogService.create_category(**serializer.validated_data)
        return Response(self.get_serializer(category).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        category = self.get_object()
        serializer = self.get_serializer(category, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        category = CatalogService.update_category(category, **serializer.validated_data)
        return Response(self.get_serializer(category).data)

    def destroy(self, request, *args, **kwargs):
        CatalogService.delete_category(self.get_object())
        return Response({"message": "Category deleted"})


class ProductViewSet(AdminWriteMixin, IdentifierLookupMixin, viewsets.ModelViewSet):
    """
    Storefront listing hides out-of-stock products unless ?all=true.
    """
    queryset = Product.objects.all().order_by("-created_at")
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    invalid_id_message = "Invalid product ID"

    def filter_queryset(self, queryset):
        # stock/category filters are listing concerns; detail routes see every product
        if self.action != "list":
            return queryset
        return super().filter_queryset(queryset)

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({"message": "Product deleted"})

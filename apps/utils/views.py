# apps/utils/views.py
from django.conf import settings
from django.http import JsonResponse
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import BusinessLogicException
from .validators import is_valid_identifier


class ServerInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({
            "app_name": "Cleaning Store",
            "version": "1.0.0",
            "debug": settings.DEBUG,
            "max_order_items": settings.ORDER_MAX_LINE_ITEMS,
        })


class IdentifierLookupMixin:
    """
    Rejects malformed ids with a 400 before the queryset is consulted,
    so only well-formed but unknown ids produce a 404.
    """
    invalid_id_message = "Invalid ID"

    def get_object(self):
        lookup_url_kwarg = self.lookup_url_kwarg or self.lookup_field
        if not is_valid_identifier(self.kwargs.get(lookup_url_kwarg)):
            raise BusinessLogicException(self.invalid_id_message, code="invalid_id")
        return super().get_object()


def not_found(request, exception=None):
    return JsonResponse({"error": "Endpoint not found.", "code": "not_found"}, status=404)


def server_error(request):
    return JsonResponse({"error": "Something went wrong.", "code": "server_error"}, status=500)

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    CustomerRegisterView,
    CustomerLoginView,
    CustomerMeView,
    AdminRegisterView,
    AdminLoginView,
    AdminMeView,
)

urlpatterns = [
    # Customers
    path('customers/register', CustomerRegisterView.as_view(), name='customer-register'),
    path('customers/login', CustomerLoginView.as_view(), name='customer-login'),
    path('customers/me', CustomerMeView.as_view(), name='customer-me'),

    # Admins
    path('auth/register', AdminRegisterView.as_view(), name='admin-register'),
    path('auth/login', AdminLoginView.as_view(), name='admin-login'),
    path('auth/me', AdminMeView.as_view(), name='admin-me'),
    path('auth/token/refresh', TokenRefreshView.as_view(), name='token-refresh'),
]

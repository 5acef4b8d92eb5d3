import logging
from django.db import transaction, IntegrityError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied

from apps.utils.exceptions import BusinessLogicException
from .models import User, Role

logger = logging.getLogger(__name__)


class AuthService:

    @staticmethod
    def issue_tokens(user: User) -> dict:
        """
        Access token carries the caller kind so clients can branch on it
        without another round trip.
        """
        refresh = RefreshToken.for_user(user)
        refresh['type'] = user.token_type
        refresh['role'] = user.role

        return {
            'token': str(refresh.access_token),
            'refresh': str(refresh),
        }

    @staticmethod
    def register_customer(username: str, email: str, password: str, phone: str = "") -> User:
        email = email.strip().lower()
        if User.objects.filter(email=email).exists():
            raise BusinessLogicException("Email already in use", code="duplicate_email")

        try:
            user = User.objects.create_user(
                email=email, password=password, username=username.strip(), phone=phone or ""
            )
        except IntegrityError:
            raise BusinessLogicException("Email already in use", code="duplicate_email")

        logger.info(f"Customer registered: {user.id}")
        return user

    @staticmethod
    def authenticate_customer(email: str, password: str) -> User:
        user = User.objects.filter(email=email.strip().lower(), role=Role.CUSTOMER).first()
        if not user or not user.is_active or not user.check_password(password):
            raise AuthenticationFailed("Invalid credentials")
        return user

    @staticmethod
    @transaction.atomic
    def register_admin(username: str, email: str, password: str, phone: str = "", requested_by=None) -> User:
        """
        The very first admin bootstraps the store and becomes SUPERADMIN.
        Every later admin must be created by an authenticated superadmin.
        """
        is_first = not User.objects.admins().exists()

        if not is_first:
            if requested_by is None or not requested_by.is_authenticated or not requested_by.is_superadmin:
                raise PermissionDenied("Only a superadmin can register new admins")

        email = email.strip().lower()
        username = username.strip()
        if (
            User.objects.filter(email=email).exists()
            or User.objects.admins().filter(username=username).exists()
        ):
            raise BusinessLogicException("Username or email already exists", code="duplicate_admin")

        role = Role.SUPERADMIN if is_first else Role.ADMIN
        try:
            with transaction.atomic():
                user = User.objects.create_admin(
                    email=email,
                    password=password,
                    username=username,
                    phone=phone or "",
                    role=role,
                    is_superuser=is_first,
                )
        except IntegrityError:
            raise BusinessLogicException("Username or email already exists", code="duplicate_admin")

        logger.info(f"Admin registered: {user.id} role={role}")
        return user

    @staticmethod
    def authenticate_admin(username: str, password: str) -> User:
        user = User.objects.admins().filter(username=username.strip()).first()
        if not user or not user.is_active or not user.check_password(password):
            raise AuthenticationFailed("Invalid credentials")
        return user

import os
from django.core.management.base import BaseCommand
from django.conf import settings
from django.contrib.auth import get_user_model

class Command(BaseCommand):
    help = "Create or reset the store superadmin from environment variables."

    def handle(self, *args, **options):
        # 1. Safety Check for Production
        if not settings.DEBUG and not os.getenv("ALLOW_CREATE_ADMIN_IN_PROD") == "True":
            self.stderr.write(self.style.ERROR(
                "Production Lock: Set ALLOW_CREATE_ADMIN_IN_PROD=True to run this."
            ))
            return

        username = os.getenv("ADMIN_USERNAME")
        email = os.getenv("ADMIN_EMAIL")
        password = os.getenv("ADMIN_PASSWORD")

        if not username or not email or not password:
            self.stderr.write(self.style.ERROR(
                "Missing ADMIN_USERNAME, ADMIN_EMAIL or ADMIN_PASSWORD env vars."
            ))
            return

        User = get_user_model()
        email = email.strip().lower()

        # 2. Get or Create
        user = User.objects.filter(email=email).first()
        created = user is None
        if created:
            user = User.objects.create_superuser(email=email, password=password, username=username)
        else:
            # 3. Enforce Permissions
            user.username = username
            user.role = "SUPERADMIN"
            user.is_staff = True
            user.is_superuser = True
            user.set_password(password)
            user.save()

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created superadmin: {username}"))
        else:
            self.stdout.write(self.style.WARNING(f"Updated superadmin: {username}"))

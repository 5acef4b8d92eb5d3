import csv
import os
from decimal import Decimal, InvalidOperation
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from apps.catalog.models import Category, Product
from apps.catalog.services import CatalogService

class Command(BaseCommand):
    help = 'Import categories and products from a CSV (name,category,price,stock,description)'

    def add_arguments(self, parser):
        parser.add_argument('file_path', type=str, help='Path to CSV file')

    def handle(self, *args, **kwargs):
        file_path = kwargs['file_path']
        if not os.path.exists(file_path):
            raise CommandError(f'File not found: {file_path}')

        created = updated = skipped = 0
        with open(file_path, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            with transaction.atomic():
                for line_no, row in enumerate(reader, start=2):
                    cat_name = (row.get('category') or '').strip()
                    name = (row.get('name') or '').strip()

                    if not cat_name or not name:
                        skipped += 1
                        continue

                    try:
                        price = Decimal((row.get('price') or '0').strip())
                        stock = int((row.get('stock') or '0').strip())
                    except (InvalidOperation, ValueError):
                        raise CommandError(f'Line {line_no}: bad price or stock for "{name}"')
                    if price < 0 or stock < 0:
                        raise CommandError(f'Line {line_no}: price and stock must be non-negative')

                    Category.objects.get_or_create(name=cat_name)
                    _, was_created = Product.objects.update_or_create(
                        name=name,
                        category=cat_name,
                        defaults={
                            'price': price,
                            'stock': stock,
                            'description': (row.get('description') or '').strip(),
                        }
                    )
                    if was_created:
                        created += 1
                    else:
                        updated += 1

        CatalogService.invalidate_category_cache()
        self.stdout.write(self.style.SUCCESS(
            f'Imported catalog: {created} created, {updated} updated, {skipped} skipped.'
        ))

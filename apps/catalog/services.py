import logging
from django.conf import settings
from django.core.cache import cache
from django.db import transaction, IntegrityError

from apps.utils.exceptions import BusinessLogicException
from .models import Category, Product

logger = logging.getLogger(__name__)

CATEGORY_LIST_CACHE_KEY = "catalog:categories:v1"


class CatalogService:
    """
    Category writes go through here so the cached category list and the
    products' category-name references never drift. The cached list is
    dropped only after commit, so a reader racing a write cannot re-cache
    the old rows.
    """

    @staticmethod
    def list_categories():
        categories = cache.get(CATEGORY_LIST_CACHE_KEY)
        if categories is None:
            categories = list(Category.objects.order_by("name"))
            cache.set(CATEGORY_LIST_CACHE_KEY, categories, timeout=settings.CATEGORY_CACHE_TIMEOUT)
        return categories

    @staticmethod
    def invalidate_category_cache():
        cache.delete(CATEGORY_LIST_CACHE_KEY)

    @staticmethod
    def create_category(name: str, description: str = "") -> Category:
        if Category.objects.filter(name=name).exists():
            raise BusinessLogicException("Category already exists", code="duplicate_category")
        try:
            with transaction.atomic():
                category = Category.objects.create(name=name, description=description or "")
        except IntegrityError:
            raise BusinessLogicException("Category already exists", code="duplicate_category")

        transaction.on_commit(CatalogService.invalidate_category_cache)
        return category

    @staticmethod
    @transaction.atomic
    def update_category(category: Category, name=None, description=None) -> Category:
        old_name = category.name

        if name and name != old_name:
            if Category.objects.filter(name=name).exclude(pk=category.pk).exists():
                raise BusinessLogicException("Category name already exists", code="duplicate_category")
            category.name = name
        if description is not None:
            category.description = description

        category.save()

        if category.name != old_name:
            moved = Product.objects.filter(category=old_name).update(category=category.name)
            logger.info(f"Category renamed '{old_name}' -> '{category.name}', {moved} products updated")

        transaction.on_commit(CatalogService.invalidate_category_cache)
        return category

    @staticmethod
    def delete_category(category: Category):
        if Product.objects.filter(category=category.name).exists():
            raise BusinessLogicException(
                "Cannot delete category that has products", code="category_in_use"
            )
        category.delete()
        transaction.on_commit(CatalogService.invalidate_category_cache)

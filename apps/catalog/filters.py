import django_filters

from .models import Product

TRUTHY = {"1", "true", "yes", "on"}


class ProductFilter(django_filters.FilterSet):
    """
    ?category=<name>  (the literal "all" disables the filter)
    ?all=true         include out-of-stock products (storefront hides them)
    """
    category = django_filters.CharFilter(method="filter_category")
    all = django_filters.CharFilter(method="filter_all")

    class Meta:
        model = Product
        fields = ["category", "all"]

    def filter_category(self, queryset, name, value):
        if not value or value == "all":
            return queryset
        return queryset.filter(category=value)

    def filter_all(self, queryset, name, value):
        # Applied only when ?all is present; absent params are handled in filter_queryset
        if value.lower() in TRUTHY:
            return queryset
        return queryset.filter(stock__gt=0)

    def filter_queryset(self, queryset):
        if not self.form.cleaned_data.get("all"):
            queryset = queryset.filter(stock__gt=0)
        return super().filter_queryset(queryset)

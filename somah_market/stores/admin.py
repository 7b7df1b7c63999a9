from django.contrib import admin

from .models import Product, Store, StoreLocation


class StoreLocationInline(admin.StackedInline):
    model = StoreLocation
    can_delete = False


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "phone", "status", "rating")
    list_filter = ("status", "category")
    search_fields = ("name", "phone")
    inlines = [StoreLocationInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "store", "price", "stock", "status", "is_available")
    list_filter = ("status", "is_available")
    search_fields = ("name", "store__name")

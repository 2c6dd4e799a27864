# apps/catalog/admin.py
from django.contrib import admin

from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "parent", "is_active")
    list_filter = ("is_active", "parent")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "general_price",
        "architect_price",
        "dealer_price",
        "gst",
        "is_active",
    )
    search_fields = ("name", "description")
    list_filter = ("category", "is_active")
    readonly_fields = ("created_at", "updated_at")

from django.contrib import admin

from .models import ShippingAddress


@admin.register(ShippingAddress)
class ShippingAddressAdmin(admin.ModelAdmin):
    list_display = ('user', 'name', 'address_type', 'city', 'pincode', 'is_default')
    list_filter = ('address_type', 'is_default', 'country')
    search_fields = ('user__email', 'name', 'phone', 'pincode')

import json

from django.contrib import admin
from django.utils.html import format_html

from .models import CartItem, Order, OrderCancellation, OrderItem, OrderTimeline


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'price', 'subtotal', 'gst_rate', 'gst_amount', 'total')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class OrderTimelineInline(admin.TabularInline):
    model = OrderTimeline
    extra = 0
    readonly_fields = ('timestamp', 'status', 'note', 'created_by')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'status', 'payment_method', 'payment_status', 'total', 'order_date')
    list_filter = ('status', 'payment_status', 'payment_method', 'order_date')
    search_fields = ('id', 'user__email', 'user__name', 'tracking_number')

    inlines = [OrderItemInline, OrderTimelineInline]

    # Amounts and the address snapshot are fixed at checkout
    readonly_fields = (
        'id',
        'user',
        'subtotal',
        'gst_amount',
        'total',
        'delivery_address_type',
        'formatted_delivery_address',
        'shipping_address_ref',
        'order_date',
        'updated_at',
    )

    fieldsets = (
        ('Order Details', {
            'fields': ('id', 'user', 'status', 'order_date', 'notes')
        }),
        ('Financials', {
            'fields': ('subtotal', 'gst_amount', 'total', 'payment_method', 'payment_status', 'payment_proof')
        }),
        ('Delivery Info', {
            'fields': (
                'delivery_address_type', 'formatted_delivery_address', 'shipping_address_ref',
                'expected_delivery_date', 'tracking_number', 'shipping_provider',
            )
        }),
        ('System Data', {
            'fields': ('updated_at',),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False

    @admin.display(description="Delivery Address Snapshot")
    def formatted_delivery_address(self, obj):
        if not obj.delivery_address_data:
            return "-"
        return format_html("<pre>{}</pre>", json.dumps(obj.delivery_address_data, indent=2))


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ('order', 'product', 'quantity', 'price', 'total')
    search_fields = ('order__id', 'product__name')


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ('user', 'product', 'quantity', 'added_at')
    search_fields = ('user__email', 'product__name')
    readonly_fields = ('added_at',)


@admin.register(OrderCancellation)
class OrderCancellationAdmin(admin.ModelAdmin):
    list_display = ('order', 'cancelled_by', 'cancelled_by_user', 'created_at')
    list_filter = ('cancelled_by',)
    search_fields = ('order__id', 'reason')
    readonly_fields = ('order', 'created_at', 'cancelled_by_user')

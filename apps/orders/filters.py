import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    """
    ?status=Pending&status=Shipped&paymentStatus=Awaiting&startDate=...&endDate=...
    `userId` only narrows the result further; visibility is decided by the view.
    """
    status = django_filters.MultipleChoiceFilter(choices=Order.Status.choices)
    paymentStatus = django_filters.MultipleChoiceFilter(
        field_name="payment_status", choices=Order.PaymentStatus.choices
    )
    startDate = django_filters.IsoDateTimeFilter(field_name="order_date", lookup_expr="gte")
    endDate = django_filters.IsoDateTimeFilter(field_name="order_date", lookup_expr="lte")
    userId = django_filters.NumberFilter(field_name="user_id")

    class Meta:
        model = Order
        fields = ["status", "paymentStatus", "startDate", "endDate", "userId"]

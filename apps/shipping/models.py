# apps/shipping/models.py

from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel


class ShippingAddress(TimestampedModel):
    class AddressType(models.TextChoices):
        HOME = "Home", "Home"
        OFFICE = "Office", "Office"
        OTHER = "Other", "Other"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="shipping_addresses",
    )

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    address = models.TextField()
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    country = models.CharField(max_length=100)
    pincode = models.CharField(max_length=20)

    address_type = models.CharField(
        max_length=10, choices=AddressType.choices, default=AddressType.HOME
    )
    # At most one default per user; kept that way by ShippingAddressService
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = "shipping_addresses"
        ordering = ["-is_default", "-created_at"]
        indexes = [
            models.Index(fields=["user", "is_default"], name="shipping_user_default_idx"),
        ]

    def __str__(self):
        return f"{self.address_type} - {self.name}, {self.city}"

    def as_dict(self):
        """
        Snapshot-safe representation for Orders
        """
        return {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "pincode": self.pincode,
            "addressType": self.address_type,
        }

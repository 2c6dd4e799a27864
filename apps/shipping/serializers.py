from rest_framework import serializers

from .models import ShippingAddress


class ShippingAddressSerializer(serializers.ModelSerializer):
    addressType = serializers.ChoiceField(
        source="address_type",
        choices=ShippingAddress.AddressType.choices,
        required=False,
    )
    isDefault = serializers.BooleanField(source="is_default", required=False)

    class Meta:
        model = ShippingAddress
        fields = [
            "id",
            "name",
            "phone",
            "address",
            "city",
            "state",
            "country",
            "pincode",
            "addressType",
            "isDefault",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

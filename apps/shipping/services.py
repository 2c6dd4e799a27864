from django.db import transaction

from apps.utils.exceptions import NotFoundError

from .models import ShippingAddress


class ShippingAddressService:
    """
    Address book writes. Default-flag maintenance is a plain update,
    without row locks: concurrent writers may briefly both see themselves as default.
    """

    @staticmethod
    def get_for_user(user, address_id) -> ShippingAddress:
        try:
            return ShippingAddress.objects.get(id=address_id, user=user)
        except (ShippingAddress.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Shipping address not found.")

    @staticmethod
    def _unset_defaults(user, exclude_id=None):
        qs = ShippingAddress.objects.filter(user=user, is_default=True)
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        qs.update(is_default=False)

    @staticmethod
    @transaction.atomic
    def create_address(user, data: dict) -> ShippingAddress:
        is_default = bool(data.get("is_default", False))
        if is_default:
            ShippingAddressService._unset_defaults(user)

        return ShippingAddress.objects.create(
            user=user,
            name=data["name"],
            phone=data["phone"],
            address=data["address"],
            city=data["city"],
            state=data["state"],
            country=data["country"],
            pincode=data["pincode"],
            address_type=data.get("address_type") or ShippingAddress.AddressType.HOME,
            is_default=is_default,
        )

    @staticmethod
    @transaction.atomic
    def update_address(user, address_id, data: dict) -> ShippingAddress:
        address = ShippingAddressService.get_for_user(user, address_id)

        if data.get("is_default"):
            ShippingAddressService._unset_defaults(user, exclude_id=address.id)

        for field, value in data.items():
            setattr(address, field, value)
        address.save()
        return address

    @staticmethod
    def delete_address(user, address_id):
        address = ShippingAddressService.get_for_user(user, address_id)
        address.delete()

    @staticmethod
    @transaction.atomic
    def set_default_address(user, address_id) -> ShippingAddress:
        target_address = ShippingAddressService.get_for_user(user, address_id)

        if target_address.is_default:
            return target_address

        ShippingAddressService._unset_defaults(user)

        target_address.is_default = True
        target_address.save(update_fields=["is_default", "updated_at"])

        return target_address

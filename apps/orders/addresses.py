import logging

from apps.shipping.models import ShippingAddress
from apps.utils.exceptions import NotFoundError, ValidationError
from apps.utils.validators import find_missing_fields

from .types import AddressSnapshot

logger = logging.getLogger(__name__)

NEW_ADDRESS_REQUIRED_FIELDS = ('name', 'phone', 'address', 'city', 'state', 'country', 'pincode')

NO_ADDRESS_MESSAGE = "No complete address available. Please provide a new address or update your profile."


def _profile_address(user, source):
    return {
        "name": user.name,
        "phone": user.mobile or "Not provided",
        "address": user.address,
        "city": user.city,
        "state": user.state,
        "country": user.country,
        "pincode": user.pincode,
        "addressType": "Default",
        "isDefault": True,
        "source": source,
    }


class AddressResolver:
    """
    Picks the delivery address for a new order. Checked in order, first match wins:
    new payload -> saved shipping address -> complete profile address ->
    latest saved shipping address -> error.
    """

    @staticmethod
    def resolve(user, address_type="default", shipping_address_id=None, new_address_data=None) -> AddressSnapshot:
        if address_type == "new" and new_address_data is not None:
            return AddressResolver._from_new_address(user, new_address_data)

        if shipping_address_id:
            return AddressResolver._from_shipping_address(user, shipping_address_id)

        return AddressResolver._from_profile_or_fallback(user)

    @staticmethod
    def _from_new_address(user, payload) -> AddressSnapshot:
        data = {
            "name": payload.get("name"),
            "phone": payload.get("phone"),
            "address": payload.get("address") or payload.get("street"),
            "city": payload.get("city"),
            "state": payload.get("state"),
            "country": payload.get("country"),
            "pincode": payload.get("pincode") or payload.get("postalCode"),
        }

        missing = find_missing_fields(data, NEW_ADDRESS_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required address fields: {', '.join(missing)}")

        too_long = []
        for field in NEW_ADDRESS_REQUIRED_FIELDS:
            max_length = ShippingAddress._meta.get_field(field).max_length
            if max_length and len(data[field].strip()) > max_length:
                too_long.append(field)
        if too_long:
            raise ValidationError(f"Address fields too long: {', '.join(too_long)}")

        address_type = payload.get("addressType") or payload.get("type")
        if address_type not in ShippingAddress.AddressType.values:
            address_type = ShippingAddress.AddressType.HOME

        # Saved outright: the order transaction has not started yet
        address = ShippingAddress.objects.create(
            user=user,
            address_type=address_type,
            **{key: value.strip() for key, value in data.items()},
        )
        logger.info(f"Created shipping address {address.id} for user {user.id} during checkout")

        snapshot = address.as_dict()
        snapshot["isDefault"] = False
        return AddressSnapshot(type="new", data=snapshot, shipping_address_id=address.id)

    @staticmethod
    def _from_shipping_address(user, shipping_address_id) -> AddressSnapshot:
        try:
            address = ShippingAddress.objects.get(id=shipping_address_id, user=user)
        except (ShippingAddress.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(
                f"Shipping address with ID {shipping_address_id} not found or doesn't belong to user"
            )

        snapshot = address.as_dict()
        snapshot["name"] = address.name or "N/A"
        snapshot["phone"] = address.phone or "N/A"
        snapshot["isDefault"] = False
        return AddressSnapshot(type="shipping", data=snapshot, shipping_address_id=address.id)

    @staticmethod
    def _from_profile_or_fallback(user) -> AddressSnapshot:
        # Fresh read: the profile may have changed since authentication
        user.refresh_from_db()

        if user.has_complete_address:
            return AddressSnapshot(type="default", data=_profile_address(user, "user_profile"))

        fallback = ShippingAddress.objects.filter(user=user).order_by("-is_default", "-created_at", "-id").first()
        if fallback is None:
            raise ValidationError(NO_ADDRESS_MESSAGE)

        snapshot = fallback.as_dict()
        snapshot["name"] = fallback.name or user.name
        snapshot["phone"] = fallback.phone or user.mobile or "Not provided"
        snapshot["isDefault"] = False
        snapshot["source"] = "address_fallback"
        return AddressSnapshot(type="shipping", data=snapshot, shipping_address_id=fallback.id)

    @staticmethod
    def available_addresses(user) -> dict:
        """
        Everything the checkout page can offer: profile address plus saved addresses.
        """
        user.refresh_from_db()
        shipping_addresses = list(
            ShippingAddress.objects.filter(user=user).order_by("-is_default", "-created_at", "-id")
        )

        default_address = None
        if user.has_complete_address:
            default_address = {"type": "default", **_profile_address(user, "user_profile")}
            del default_address["addressType"], default_address["isDefault"]

        return {
            "default_address": default_address,
            "shipping_addresses": shipping_addresses,
            "default_shipping_address": next((a for a in shipping_addresses if a.is_default), None),
        }

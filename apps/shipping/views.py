from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import ShippingAddress
from .serializers import ShippingAddressSerializer
from .services import ShippingAddressService


class ShippingAddressViewSet(viewsets.ModelViewSet):
    """
    CRUD for the requester's address book.
    GET/POST/PUT/PATCH/DELETE /api/v1/shipping-addresses/
    """
    serializer_class = ShippingAddressSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        return ShippingAddress.objects.filter(user=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        address = ShippingAddressService.create_address(request.user, serializer.validated_data)
        return Response(
            {
                "message": "Shipping address created successfully",
                "shippingAddress": self.get_serializer(address).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        address = ShippingAddressService.update_address(
            request.user,
            instance.pk,
            serializer.validated_data,
        )
        return Response({
            "message": "Shipping address updated successfully",
            "shippingAddress": self.get_serializer(address).data,
        })

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        ShippingAddressService.delete_address(request.user, instance.pk)
        return Response({"message": "Shipping address deleted successfully"})

    @action(detail=True, methods=['post'], url_path='set-default')
    def set_default(self, request, pk=None):
        """
        POST /api/v1/shipping-addresses/{id}/set-default/
        """
        instance = self.get_object()
        address = ShippingAddressService.set_default_address(request.user, instance.pk)
        return Response({
            "message": "Default shipping address updated successfully",
            "shippingAddress": self.get_serializer(address).data,
        })

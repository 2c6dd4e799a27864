from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import ShippingAddressViewSet

router = SimpleRouter()
router.register(r'shipping-addresses', ShippingAddressViewSet, basename='shipping-address')

urlpatterns = [
    path('', include(router.urls)),
]

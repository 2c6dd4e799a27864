# apps/catalog/serializers.py
from django.conf import settings
from rest_framework import serializers

from .models import Category, Product
from .pricing import resolve_price


def build_image_url(filename, request=None):
    """
    Absolute URL for a stored product image. Full URLs and /uploads/ paths pass through.
    """
    if not filename:
        return None
    if filename.startswith(("http://", "https://", "/uploads/")):
        return filename
    path = f"{settings.MEDIA_URL.rstrip('/')}/products/{filename}"
    return request.build_absolute_uri(path) if request is not None else path


class CategorySummarySerializer(serializers.ModelSerializer):
    parentId = serializers.IntegerField(source="parent_id", read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "parentId"]


class ProductDisplaySerializer(serializers.ModelSerializer):
    """
    Client-facing product projection.
    Needs `role` in context (falls back to the request user's role) for currentPrice.
    """
    imageUrl = serializers.SerializerMethodField()
    imageUrls = serializers.SerializerMethodField()
    currentPrice = serializers.SerializerMethodField()
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    category = CategorySummarySerializer(read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "imageUrl", "imageUrls", "currentPrice", "isActive", "category"]

    def _role(self):
        if "role" in self.context:
            return self.context["role"]
        request = self.context.get("request")
        user = getattr(request, "user", None)
        return getattr(user, "role", None)

    def get_imageUrl(self, obj):
        return build_image_url(obj.image, self.context.get("request"))

    def get_imageUrls(self, obj):
        images = obj.images if isinstance(obj.images, list) else []
        return [build_image_url(img, self.context.get("request")) for img in images]

    def get_currentPrice(self, obj):
        return resolve_price(obj, self._role())


class ProductSerializer(ProductDisplaySerializer):
    gst = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta(ProductDisplaySerializer.Meta):
        fields = ProductDisplaySerializer.Meta.fields + ["description", "gst"]

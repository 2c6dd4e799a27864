from rest_framework import serializers

from .models import User


class UserProfileSerializer(serializers.ModelSerializer):
    hasCompleteAddress = serializers.BooleanField(source='has_complete_address', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'role', 'status', 'mobile', 'company',
            'address', 'city', 'state', 'country', 'pincode', 'hasCompleteAddress',
        ]
        # Role and approval are staff decisions, never self-service
        read_only_fields = ['id', 'email', 'role', 'status']

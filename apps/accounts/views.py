from rest_framework.generics import RetrieveUpdateAPIView
from rest_framework.permissions import IsAuthenticated

from .serializers import UserProfileSerializer


class MeView(RetrieveUpdateAPIView):
    """
    GET/PATCH /api/v1/accounts/me/
    Profile details, including the address used for 'default' deliveries.
    """
    serializer_class = UserProfileSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user

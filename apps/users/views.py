"""
Authentication views.
"""
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import CustomTokenObtainPairSerializer


class CustomTokenObtainPairView(TokenObtainPairView):
    """JWT login that returns the caller's profile and workflow role."""

    serializer_class = CustomTokenObtainPairSerializer

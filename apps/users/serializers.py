"""
Serializers for authentication and profile summaries.
"""

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.common.permissions import actor_role
from .models import Profile


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """JWT token serializer that carries the workflow role."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token['email'] = user.email
        token['role'] = actor_role(user)

        return token

    def validate(self, attrs):
        data = super().validate(attrs)

        user = self.user
        profile = getattr(user, 'profile', None)
        data.update({
            'user': {
                'id': str(user.id),
                'email': user.email,
                'profile_id': str(profile.id) if profile else None,
                'display_name': profile.get_full_name() if profile else user.email,
                'role': actor_role(user),
            }
        })

        return data


class ProfileSummarySerializer(serializers.ModelSerializer):
    """Compact profile representation embedded in workflow responses."""

    email = serializers.EmailField(source='user.email', read_only=True)
    name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = Profile
        fields = ('id', 'email', 'name', 'affiliation_name', 'role')
        read_only_fields = fields

from rest_framework import serializers

from .models import User


class UserMeSerializer(serializers.ModelSerializer):
    vendor_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = ["id", "email", "full_name", "role", "vendor_id", "is_active"]

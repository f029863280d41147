# accounts/serializers.py
from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    isPremium = serializers.BooleanField(source='is_premium', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'isPremium']
        read_only_fields = ['id', 'name', 'email']


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

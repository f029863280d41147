# accounts/authentication.py
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

from .models import User
from .tokens import InvalidToken, decode_token


class JWTAuthentication(BaseAuthentication):
    """Authenticate ``Authorization: Bearer <token>`` headers issued by accounts.tokens."""

    keyword = 'Bearer'

    def authenticate(self, request):
        auth = request.headers.get('Authorization', '')
        parts = auth.split()
        if not parts or parts[0].lower() != self.keyword.lower():
            return None
        if len(parts) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header')

        token = parts[1]
        try:
            user_id = decode_token(token)
        except InvalidToken as e:
            raise exceptions.AuthenticationFailed(str(e))

        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed('Invalid token')

        return user, token

    def authenticate_header(self, request):
        return self.keyword

# accounts/tokens.py
"""Signed bearer tokens for API clients."""
from datetime import datetime, timezone

import jwt
from django.conf import settings


class InvalidToken(Exception):
    pass


def issue_token(user, now=None):
    """Return a signed token identifying ``user`` that expires after JWT_EXPIRY."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        'userId': str(user.pk),
        'iat': issued_at,
        'exp': issued_at + settings.JWT_EXPIRY,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token):
    """Return the user id carried by ``token``; raise InvalidToken otherwise."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken('Token expired') from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken('Invalid token') from e

    user_id = claims.get('userId')
    if not user_id:
        raise InvalidToken('Invalid token')
    return user_id

# accounts/views.py
import logging

from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import User
from .serializers import LoginSerializer, SignupSerializer, UserSerializer
from .tokens import issue_token

logger = logging.getLogger(__name__)


def _auth_payload(user):
    return {
        'user': UserSerializer(user).data,
        'token': issue_token(user),
    }


def _user_exists_response():
    return Response({
        'success': False,
        'error': 'User already exists'
    }, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def signup(request):
    """
    POST /api/auth/signup/

    Create an account and return it together with a bearer token.

    Required fields: name, email, password
    """
    serializer = SignupSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'error': 'Invalid signup data',
            'details': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    email = User.objects.normalize_email(data['email'])
    if User.objects.filter(email=email).exists():
        return _user_exists_response()

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                name=data['name'],
                password=data['password'],
            )
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        return _user_exists_response()
    logger.info("Created user %s", user.pk)

    return Response(_auth_payload(user), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    """
    POST /api/auth/login/

    Exchange email and password for a bearer token.
    """
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'error': 'Email and password required'
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    email = User.objects.normalize_email(data['email'])
    user = User.objects.filter(email=email, is_active=True).first()

    # Same answer for unknown email and wrong password
    if user is None or not user.check_password(data['password']):
        return Response({
            'success': False,
            'error': 'Invalid credentials'
        }, status=status.HTTP_401_UNAUTHORIZED)

    return Response(_auth_payload(user), status=status.HTTP_200_OK)


@api_view(['GET'])
def me(request):
    """
    GET /api/auth/me/

    Return the account behind the bearer token.
    """
    return Response({'user': UserSerializer(request.user).data}, status=status.HTTP_200_OK)

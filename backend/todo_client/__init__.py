"""Python client for the smart to-do API."""
from .api import ApiError, TodoApiClient
from .session import AuthSession

__all__ = ['ApiError', 'AuthSession', 'TodoApiClient']

"""
Security utilities for the identity boundary.
"""

from .password import PasswordHasher
from .tokens import TokenPayload, TokenService

__all__ = [
    "PasswordHasher",
    "TokenService",
    "TokenPayload",
]

"""Google service account authentication utilities."""

from drive_helper.google.exceptions import (
    CredentialsNotFoundError,
    GoogleAuthError,
    InvalidKeyError,
    TokenError,
)
from drive_helper.google.service_account import SCOPES, GoogleServiceAccount

__all__ = [
    "GoogleServiceAccount",
    "SCOPES",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "InvalidKeyError",
    "TokenError",
]

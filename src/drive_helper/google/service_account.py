"""Google Service Account authentication.

Service accounts are used for server-to-server authentication without user interaction.
The service account acts as its own identity and can access:
- Files it owns (uploads made through it land in its own Drive)
- Resources explicitly shared with the service account email
- Google Workspace resources (if domain-wide delegation is configured)

Example:
    >>> auth = GoogleServiceAccount.from_file("service_account_key.json")
    >>> drive_service = auth.build_service("drive", "v3")
    >>> token = auth.get_access_token()
"""

import json
import logging
from pathlib import Path
from typing import Any

from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from googleapiclient.discovery import build

from drive_helper.google.exceptions import (
    CredentialsNotFoundError,
    InvalidKeyError,
    TokenError,
)

logger = logging.getLogger(__name__)


# Common Google Drive scopes
SCOPES = {
    "drive": "https://www.googleapis.com/auth/drive",
    "drive_readonly": "https://www.googleapis.com/auth/drive.readonly",
    "drive_file": "https://www.googleapis.com/auth/drive.file",
    "drive_metadata": "https://www.googleapis.com/auth/drive.metadata",
    "drive_metadata_readonly": "https://www.googleapis.com/auth/drive.metadata.readonly",
}


class GoogleServiceAccount:
    """Google Service Account authentication.

    Turns service account key material into credentials for the Drive API.
    No user interaction required.

    Note: To reach files owned by someone else, they must be shared with
    the service account email address.
    """

    def __init__(
        self,
        key_data: bytes | str | dict[str, Any],
        scopes: list[str] | None = None,
    ):
        """Initialize service account authentication.

        Args:
            key_data: Service account JSON key as raw bytes, a JSON string,
                      or an already-parsed dictionary.
            scopes: List of scope names (e.g., ["drive"]) or full URLs.
                   If None, defaults to ["drive"].

        Raises:
            InvalidKeyError: If the key material is malformed.
            ValueError: If a scope name is unknown.
        """
        self.key_path: Path | None = None
        self.scopes = self._resolve_scopes(scopes or ["drive"])

        key_info = self._parse_key(key_data)
        self.client_email = key_info.get("client_email", "")
        self.project_id = key_info.get("project_id", "")

        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                key_info,
                scopes=self.scopes,
            )
        except (ValueError, KeyError, google_exceptions.GoogleAuthError) as e:
            raise InvalidKeyError(f"Invalid service account key: {e}") from e

        logger.info(f"Service account initialized: {self.client_email}")
        logger.debug(f"Scopes: {self.scopes}")

    @classmethod
    def from_file(
        cls,
        key_path: str | Path,
        scopes: list[str] | None = None,
    ) -> "GoogleServiceAccount":
        """Load a service account from a JSON key file.

        Args:
            key_path: Path to service account JSON key file.
            scopes: Scope names or URLs, as for the constructor.

        Raises:
            CredentialsNotFoundError: If key file not found.
            InvalidKeyError: If key file is invalid.
        """
        key_path = Path(key_path)
        if not key_path.exists():
            raise CredentialsNotFoundError(str(key_path))

        instance = cls(key_path.read_bytes(), scopes=scopes)
        instance.key_path = key_path
        return instance

    @staticmethod
    def _parse_key(key_data: bytes | str | dict[str, Any]) -> dict[str, Any]:
        """Decode key material and check it is a service account key."""
        if isinstance(key_data, dict):
            key_info = key_data
        else:
            try:
                key_info = json.loads(key_data)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidKeyError(f"Invalid JSON in service account key: {e}") from e

        if not isinstance(key_info, dict):
            raise InvalidKeyError("Invalid service account key: expected a JSON object")

        if key_info.get("type") != "service_account":
            raise InvalidKeyError(
                f"Invalid key: expected type 'service_account', got '{key_info.get('type')}'"
            )
        return key_info

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    @property
    def credentials(self):
        """Get the service account credentials."""
        return self._credentials

    @property
    def email(self) -> str:
        """Get the service account email address.

        Share your Google resources with this email to grant access.
        """
        return self.client_email

    def build_service(self, service_name: str = "drive", version: str = "v3"):
        """Build a Google API service with service account credentials.

        Args:
            service_name: Name of the service (e.g., 'drive').
            version: API version (e.g., 'v3').

        Returns:
            Google API service object.
        """
        return build(service_name, version, credentials=self._credentials)

    def get_access_token(self) -> str:
        """Return a bearer token, refreshing it first if needed.

        Returns:
            OAuth access token string.

        Raises:
            TokenError: If the token endpoint rejects the key or is unreachable.
        """
        if not self._credentials.valid:
            logger.debug("Access token missing or expired, refreshing...")
            try:
                self._credentials.refresh(Request())
            except google_exceptions.GoogleAuthError as e:
                raise TokenError(f"Failed to refresh access token: {e}") from e
        return self._credentials.token

    def with_subject(self, subject_email: str) -> "GoogleServiceAccount":
        """Create credentials that impersonate a user (requires domain-wide delegation).

        Args:
            subject_email: Email of the user to impersonate.

        Returns:
            New GoogleServiceAccount instance with delegated credentials.
        """
        delegated_credentials = self._credentials.with_subject(subject_email)

        new_instance = object.__new__(GoogleServiceAccount)
        new_instance.key_path = self.key_path
        new_instance.scopes = self.scopes
        new_instance.client_email = self.client_email
        new_instance.project_id = self.project_id
        new_instance._credentials = delegated_credentials

        logger.info(f"Created delegated credentials for: {subject_email}")
        return new_instance

    def get_info(self) -> dict:
        """Get information about the service account.

        Returns:
            Dictionary with service account details.
        """
        return {
            "type": "service_account",
            "email": self.client_email,
            "project_id": self.project_id,
            "scopes": self.scopes,
            "key_path": str(self.key_path) if self.key_path else None,
        }

"""Google authentication exceptions."""


class GoogleAuthError(Exception):
    """Base exception for Google authentication errors."""

    pass


class CredentialsNotFoundError(GoogleAuthError):
    """Raised when the service account key file is not found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Service account key not found at {path}. "
            "Please download a JSON key from Google Cloud Console."
        )


class InvalidKeyError(GoogleAuthError):
    """Raised when service account key material cannot be used."""

    pass


class TokenError(GoogleAuthError):
    """Raised when an access token cannot be obtained or refreshed."""

    pass

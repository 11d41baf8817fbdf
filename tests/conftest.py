"""Shared fixtures: throwaway service account keys and fake Drive resources."""

import json
from unittest.mock import MagicMock

import httplib2
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from googleapiclient.errors import HttpError


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """Generate an RSA private key once per test session."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account_info(private_key_pem) -> dict:
    """A structurally valid service account key."""
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "0123456789abcdef",
        "private_key": private_key_pem,
        "client_email": "helper@test-project.iam.gserviceaccount.com",
        "client_id": "123456789012345678901",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    }


@pytest.fixture
def service_account_key(service_account_info) -> bytes:
    """The service account key as raw JSON bytes."""
    return json.dumps(service_account_info).encode()


@pytest.fixture
def fake_auth():
    """Credential handle stand-in that hands out a fixed token."""
    auth = MagicMock()
    auth.get_access_token.return_value = "ya29.test-token"
    return auth


def make_http_error(status: int, message: str = "error") -> HttpError:
    """Build the error googleapiclient raises for a failed request."""
    resp = httplib2.Response({"status": status, "reason": message})
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(resp, content)


class FakeRequest:
    """Mimics an API request object: ``execute()`` returns or raises."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeFiles:
    """In-memory ``files()`` resource serving a fixed file set in pages.

    Page tokens encode the offset of the next page, so the same data always
    yields the same token chain.
    """

    def __init__(self, count: int = 0, failing: set[str] | None = None):
        self.items = [
            {"id": f"f{i}", "name": f"file-{i}.txt", "size": str(i * 10), "mimeType": "text/plain"}
            for i in range(1, count + 1)
        ]
        self.failing = failing or set()
        self.list_calls: list[dict] = []
        self.delete_calls: list[str] = []

    def list(self, **kwargs):
        self.list_calls.append(kwargs)
        size = kwargs["pageSize"]
        fields = kwargs["fields"]
        token = kwargs.get("pageToken")
        start = int(token.removeprefix("offset-")) if token else 0

        result: dict = {}
        if "files(" in fields:
            result["files"] = [dict(item) for item in self.items[start : start + size]]
        if "nextPageToken" in fields and start + size < len(self.items):
            result["nextPageToken"] = f"offset-{start + size}"
        return FakeRequest(result)

    def delete(self, fileId):
        self.delete_calls.append(fileId)
        if fileId in self.failing:
            return FakeRequest(error=make_http_error(500, "Backend Error"))
        self.items = [item for item in self.items if item["id"] != fileId]
        return FakeRequest("")


@pytest.fixture
def drive_service():
    """A MagicMock Drive v3 service."""
    return MagicMock()

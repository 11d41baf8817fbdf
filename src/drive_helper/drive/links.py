"""Download link records and the redirect probe.

The Drive media endpoint answers an authorized request with a redirect to a
short-lived signed URL. To capture that URL without downloading anything, a
HEAD request is sent through a client whose response hook raises
``RedirectAttempted`` on the first redirect. The probe turns that sentinel
into ``Redirected`` and every other outcome into ``Failed``.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from urllib.parse import quote

import httpx
from googleapiclient import version as googleapiclient_version

from drive_helper.drive.exceptions import DownloadLinkError, DriveAPIError

logger = logging.getLogger(__name__)

MEDIA_URL = (
    "https://www.googleapis.com/drive/v3/files/{file_id}"
    "?alt=media&prettyPrint=false&access_token={token}"
)
SHARE_URL = "https://drive.google.com/file/d/{file_id}/view"

USER_AGENT = "drive-helper (gzip)"
X_API_CLIENT = f"gdcl/{googleapiclient_version.__version__} gl-python/{platform.python_version()}"


@dataclass
class DownloadDetails:
    """A resolved download link plus the request identity that produced it."""

    link: str
    token: str
    user_agent: str
    x_api_client: str


@dataclass(frozen=True)
class Redirected:
    """The probe hit a redirect; ``location`` is the signed URL."""

    location: str


@dataclass(frozen=True)
class Failed:
    """The probe did not produce a redirect."""

    cause: Exception


RedirectResult = Redirected | Failed


class RedirectAttempted(Exception):
    """Sentinel raised by the probe client on the first redirect."""

    def __init__(self, response: httpx.Response):
        self.status_code = response.status_code
        self.location = response.headers.get("Location", "")
        super().__init__(f"redirect ({response.status_code})")


def _raise_on_redirect(response: httpx.Response) -> None:
    if response.has_redirect_location:
        raise RedirectAttempted(response)


def build_media_url(file_id: str, token: str) -> str:
    """Build the direct media URL with the access token embedded."""
    return MEDIA_URL.format(file_id=quote(file_id, safe=""), token=quote(token, safe=""))


def build_share_url(file_id: str) -> str:
    """Build the canonical viewer URL for a file."""
    return SHARE_URL.format(file_id=file_id)


def build_probe_client(
    transport: httpx.BaseTransport | None = None,
    timeout: float = 30.0,
) -> httpx.Client:
    """Create an HTTP client that refuses to follow redirects.

    Args:
        transport: Optional transport override (e.g. ``httpx.MockTransport``).
        timeout: Request timeout in seconds.
    """
    return httpx.Client(
        follow_redirects=False,
        event_hooks={"response": [_raise_on_redirect]},
        transport=transport,
        timeout=timeout,
    )


def probe_redirect(
    client: httpx.Client,
    url: str,
    headers: dict[str, str] | None = None,
) -> RedirectResult:
    """Send a HEAD request and report where it redirects.

    Args:
        client: Client from ``build_probe_client``.
        url: URL to probe.
        headers: Extra request headers.

    Returns:
        ``Redirected`` with the ``Location`` header verbatim, or ``Failed``
        carrying the transport error, API error, or missing-redirect error.
    """
    try:
        response = client.head(url, headers=headers)
    except RedirectAttempted as sentinel:
        logger.debug(f"Probe redirected with status {sentinel.status_code}")
        return Redirected(location=sentinel.location)
    except httpx.HTTPError as e:
        logger.warning(f"Redirect probe failed: {e}")
        return Failed(cause=e)

    if response.is_error:
        return Failed(
            cause=DriveAPIError(
                f"Media endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        )
    return Failed(
        cause=DownloadLinkError(
            f"Expected a redirect from the media endpoint, got HTTP {response.status_code}"
        )
    )

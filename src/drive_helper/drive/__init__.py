"""Google Drive API client authenticated as a service account.

Usage:
    from drive_helper.drive import DriveClient

    client = DriveClient.from_key_file("service_account_key.json")

    # Quota and listing
    quota = client.get_quota()
    files = client.list_files(page=1, size=10)

    # Upload and share
    file = client.upload_file("document.pdf", "/path/to/document.pdf")
    _, url = client.get_sharable_link(file.id)

    # Signed download URL
    _, details = client.get_download_link(file.id)

Service Account Setup:
    1. Create a service account key in Google Cloud Console
    2. Import: drive-helper import-key ~/Downloads/key.json
    3. Check: drive-helper quota
"""

from __future__ import annotations

from drive_helper.drive.client import DriveClient, DriveFile, Quota
from drive_helper.drive.exceptions import (
    DownloadLinkError,
    DriveAPIError,
    DriveError,
    QuotaUnavailableError,
    UploadSourceError,
)
from drive_helper.drive.links import DownloadDetails, Failed, Redirected

__all__ = [
    "DriveClient",
    "DriveFile",
    "Quota",
    "DownloadDetails",
    "Redirected",
    "Failed",
    "DriveError",
    "DriveAPIError",
    "QuotaUnavailableError",
    "UploadSourceError",
    "DownloadLinkError",
]

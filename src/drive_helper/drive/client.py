"""Google Drive API client implementation."""

from __future__ import annotations

import contextlib
import io
import logging
import mimetypes
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import IO, Any

import httpx
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from drive_helper.config import get_service_account_key_path
from drive_helper.drive.exceptions import (
    DownloadLinkError,
    DriveAPIError,
    QuotaUnavailableError,
    UploadSourceError,
)
from drive_helper.drive.links import (
    USER_AGENT,
    X_API_CLIENT,
    DownloadDetails,
    Failed,
    build_media_url,
    build_probe_client,
    build_share_url,
    probe_redirect,
)
from drive_helper.google import GoogleServiceAccount

logger = logging.getLogger(__name__)


@dataclass
class DriveFile:
    """Represents a Google Drive file."""

    id: str
    name: str
    mime_type: str
    size: int | None = None
    description: str | None = None
    web_content_link: str | None = None
    web_view_link: str | None = None
    shared: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class Quota:
    """Storage quota snapshot for the authenticated account."""

    limit: int
    usage: int
    usage_in_drive: int | None = None
    usage_in_drive_trash: int | None = None
    user_email: str | None = None

    @property
    def percent(self) -> str:
        """Usage as a percentage of the limit, with three decimals."""
        if self.limit <= 0:
            raise QuotaUnavailableError(
                "Storage limit is zero or unlimited; usage percentage is undefined"
            )
        return f"{self.usage * 100 / self.limit:.3f}"

    def to_dict(self) -> dict[str, Any]:
        data = {key: value for key, value in asdict(self).items() if value is not None}
        data["percent"] = self.percent
        return data


DEFAULT_MIME_TYPE = "application/octet-stream"

# Field masks
LIST_FIELDS = "id, name, size, mimeType"
FILE_FIELDS = "id, name, size, mimeType, description"
DOWNLOAD_FIELDS = "id, name, size, mimeType, webContentLink, webViewLink, shared"


class DriveClient:
    """Google Drive API client authenticated as a service account.

    The client is owned by the caller and passed around explicitly; nothing
    is cached at module level.

    Usage:
        with DriveClient.from_key_file("service_account_key.json") as client:
            quota = client.get_quota()
            files = client.list_files(page=2, size=10)
            uploaded = client.upload_file("report.pdf", "/path/to/report.pdf")
            _, url = client.get_sharable_link(uploaded.id)

    Every Drive API failure surfaces as ``DriveAPIError``; nothing retries.
    """

    def __init__(
        self,
        auth: GoogleServiceAccount,
        service: Any = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Drive client.

        Args:
            auth: Credential handle providing ``build_service`` and
                  ``get_access_token``.
            service: Prebuilt Drive v3 service. Built from ``auth`` on first
                     use if omitted.
            transport: HTTP transport for download-link probes.
        """
        self._auth = auth
        self._service = service
        self._http = build_probe_client(transport)

    @classmethod
    def from_service_account_key(
        cls,
        key_data: bytes | str | dict[str, Any],
        scopes: list[str] | None = None,
        **kwargs: Any,
    ) -> DriveClient:
        """Create a client from raw service account key material."""
        return cls(GoogleServiceAccount(key_data, scopes=scopes), **kwargs)

    @classmethod
    def from_key_file(
        cls,
        key_path: str | Path | None = None,
        scopes: list[str] | None = None,
        **kwargs: Any,
    ) -> DriveClient:
        """Create a client from a key file, defaulting to the configured location."""
        path = Path(key_path) if key_path else get_service_account_key_path()
        return cls(GoogleServiceAccount.from_file(path, scopes=scopes), **kwargs)

    def _get_service(self) -> Any:
        """Get or create Drive API service."""
        if self._service is None:
            self._service = self._auth.build_service("drive", "v3")
        return self._service

    def _execute(self, request: Any, action: str) -> Any:
        """Run an API request, converting HTTP failures to DriveAPIError."""
        try:
            return request.execute()
        except HttpError as e:
            logger.error(f"Failed to {action}: {e}")
            raise DriveAPIError(f"Failed to {action}: {e}", status_code=e.resp.status) from e

    def get_access_token(self) -> str:
        """Get a fresh bearer token from the credential handle."""
        return self._auth.get_access_token()

    # =========================================================================
    # Quota
    # =========================================================================

    def get_quota(self) -> Quota:
        """Get storage limit and usage.

        Returns:
            Quota snapshot.

        Raises:
            QuotaUnavailableError: If the account reports no (or a zero) limit.
            DriveAPIError: If the API call fails.
        """
        service = self._get_service()
        about = self._execute(
            service.about().get(fields="user,storageQuota"),
            "fetch storage quota",
        )
        quota = about.get("storageQuota", {})
        limit = int(quota.get("limit") or 0)
        if limit <= 0:
            raise QuotaUnavailableError(
                "Drive reported no storage limit; usage percentage is undefined"
            )

        return Quota(
            limit=limit,
            usage=int(quota.get("usage") or 0),
            usage_in_drive=_optional_int(quota.get("usageInDrive")),
            usage_in_drive_trash=_optional_int(quota.get("usageInDriveTrash")),
            user_email=about.get("user", {}).get("emailAddress"),
        )

    # =========================================================================
    # Files
    # =========================================================================

    def list_files(self, page: int = 1, size: int = 10) -> list[DriveFile]:
        """List one page of files.

        Drive pages are cursor based, so for ``page > 1`` the continuation
        chain is walked from the first page to find the token for ``page``.

        Args:
            page: 1-based page number.
            size: Files per page.

        Returns:
            List of DriveFile objects; empty if ``page`` is past the end.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")

        if page == 1:
            return self._retrieve_files(None, size)

        page_token = self._get_page_token(page, size)
        if page_token is None:
            logger.info(f"Page {page} (size {size}) is past the last page")
            return []
        return self._retrieve_files(page_token, size)

    def _get_page_token(self, page: int, size: int) -> str | None:
        """Walk the continuation chain to the token for ``page``.

        Returns None if the chain ends before ``page`` is reached.
        """
        service = self._get_service()
        page_token: str | None = None
        for current in range(1, page):
            kwargs: dict[str, Any] = {"pageSize": size, "fields": "nextPageToken"}
            if page_token:
                kwargs["pageToken"] = page_token

            result = self._execute(
                service.files().list(**kwargs),
                f"fetch token for page {current + 1}",
            )
            page_token = result.get("nextPageToken")
            if not page_token:
                return None
        return page_token

    def _retrieve_files(self, page_token: str | None, size: int) -> list[DriveFile]:
        service = self._get_service()
        kwargs: dict[str, Any] = {"pageSize": size, "fields": f"files({LIST_FIELDS})"}
        if page_token:
            kwargs["pageToken"] = page_token

        results = self._execute(service.files().list(**kwargs), "list files")
        return [self._parse_file(item) for item in results.get("files", [])]

    def iter_files(self, page_size: int = 100, fields: str = LIST_FIELDS) -> Iterator[DriveFile]:
        """Iterate over every file, following continuation tokens.

        Args:
            page_size: Files requested per API call.
            fields: Per-file field mask.
        """
        service = self._get_service()
        page_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {
                "pageSize": page_size,
                "fields": f"nextPageToken, files({fields})",
            }
            if page_token:
                kwargs["pageToken"] = page_token

            results = self._execute(service.files().list(**kwargs), "list files")
            for item in results.get("files", []):
                yield self._parse_file(item)

            page_token = results.get("nextPageToken")
            if not page_token:
                return

    def get_file(self, file_id: str, fields: str = FILE_FIELDS) -> DriveFile:
        """Get a specific file by ID.

        Raises:
            DriveAPIError: If the file does not exist or the call fails.
        """
        service = self._get_service()
        result = self._execute(
            service.files().get(fileId=file_id, fields=fields),
            f"get file {file_id}",
        )
        return self._parse_file(result)

    def upload_file(
        self,
        name: str,
        local_path: str | Path,
        description: str = "",
        mime_type: str | None = None,
    ) -> DriveFile:
        """Upload a local file to Drive.

        Args:
            name: Name for the file in Drive.
            local_path: Local path to the file to upload.
            description: Drive file description.
            mime_type: MIME type (auto-detected if not provided).

        Returns:
            Created DriveFile.

        Raises:
            UploadSourceError: If the local file cannot be opened.
            DriveAPIError: If the create call fails.
        """
        local_path = Path(local_path)

        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(str(local_path))
            if mime_type is None:
                mime_type = DEFAULT_MIME_TYPE

        try:
            handle = open(local_path, "rb")
        except OSError as e:
            raise UploadSourceError(str(local_path), e) from e

        with handle:
            return self.upload_stream(name, handle, description=description, mime_type=mime_type)

    def upload_stream(
        self,
        name: str,
        stream: IO[bytes],
        description: str = "",
        mime_type: str | None = None,
    ) -> DriveFile:
        """Upload the contents of a readable binary stream.

        The stream is left open and is uploaded from its current position.
        Non-seekable or partly read streams are buffered in memory first,
        because the uploader measures and reads them from offset zero.

        Args:
            name: Name for the file in Drive.
            stream: Readable binary stream.
            description: Drive file description.
            mime_type: MIME type. Defaults to application/octet-stream.

        Returns:
            Created DriveFile.
        """
        service = self._get_service()
        mime_type = mime_type or DEFAULT_MIME_TYPE

        if not stream.seekable() or stream.tell() != 0:
            stream = io.BytesIO(stream.read())

        metadata: dict[str, Any] = {"name": name, "mimeType": mime_type}
        if description:
            metadata["description"] = description

        media = MediaIoBaseUpload(stream, mimetype=mime_type, resumable=True)

        logger.info(f"Uploading '{name}' ({mime_type})")
        result = self._execute(
            service.files().create(body=metadata, media_body=media, fields=FILE_FIELDS),
            f"upload '{name}'",
        )
        return self._parse_file(result)

    def delete_file(self, file_id: str) -> None:
        """Delete a file from Drive.

        Raises:
            DriveAPIError: If the delete call fails.
        """
        service = self._get_service()
        logger.info(f"Deleting file {file_id}")
        self._execute(service.files().delete(fileId=file_id), f"delete file {file_id}")

    def delete_all_files(self) -> int:
        """Delete every file visible to the account.

        The whole listing is collected before the first delete. Deletion stops
        at the first failure and that error is raised; files after it remain.

        Returns:
            Number of files deleted.

        Raises:
            DriveAPIError: On the first listing or deletion failure.
        """
        files = list(self.iter_files(fields="id, name"))
        logger.info(f"Deleting {len(files)} files")

        for deleted, drive_file in enumerate(files):
            try:
                self.delete_file(drive_file.id)
            except DriveAPIError:
                logger.debug(
                    f"Bulk delete aborted at '{drive_file.name}' "
                    f"after {deleted} of {len(files)} files"
                )
                raise

        return len(files)

    # =========================================================================
    # Links
    # =========================================================================

    def get_direct_download_url(self, file_id: str) -> str:
        """Build a media URL carrying a fresh access token.

        Anyone holding the URL can download the file until the token expires.
        """
        return build_media_url(file_id, self.get_access_token())

    def get_download_link(self, file_id: str) -> tuple[DriveFile, DownloadDetails]:
        """Resolve the short-lived signed download URL for a file.

        Sends a HEAD request to the media URL without following redirects and
        reports the redirect target.

        Returns:
            Tuple of file metadata and download details.

        Raises:
            DriveAPIError: If the metadata fetch fails.
            DownloadLinkError: If the media endpoint does not redirect.
        """
        drive_file = self.get_file(file_id, fields=DOWNLOAD_FIELDS)

        token = self.get_access_token()
        headers = {"User-Agent": USER_AGENT, "X-Goog-Api-Client": X_API_CLIENT}
        result = probe_redirect(self._http, build_media_url(file_id, token), headers)

        if isinstance(result, Failed):
            raise DownloadLinkError(
                f"Could not resolve download link for {file_id}: {result.cause}"
            ) from result.cause

        return drive_file, DownloadDetails(
            link=result.location,
            token=token,
            user_agent=USER_AGENT,
            x_api_client=X_API_CLIENT,
        )

    def get_sharable_link(self, file_id: str) -> tuple[DriveFile, str]:
        """Make a file readable by anyone with the link.

        Returns:
            Tuple of file metadata and the viewer URL.

        Raises:
            DriveAPIError: If granting the permission or fetching metadata fails.
        """
        service = self._get_service()
        self._execute(
            service.permissions().create(
                fileId=file_id,
                body={"type": "anyone", "role": "reader"},
                fields="id",
            ),
            f"share file {file_id}",
        )
        drive_file = self.get_file(file_id, fields=LIST_FIELDS)
        return drive_file, build_share_url(file_id)

    def _parse_file(self, data: dict) -> DriveFile:
        """Parse file from API response."""
        return DriveFile(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=_optional_int(data.get("size")),
            description=data.get("description"),
            web_content_link=data.get("webContentLink"),
            web_view_link=data.get("webViewLink"),
            shared=data.get("shared"),
        )

    def close(self):
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _optional_int(value: Any) -> int | None:
    number = None
    if value is not None:
        with contextlib.suppress(TypeError, ValueError):
            number = int(value)
    return number

"""CLI for drive-helper - service account Drive management.

Usage:
    drive-helper status                        # Show credential configuration
    drive-helper import-key <path>             # Import service account key
    drive-helper quota                         # Show storage quota
    drive-helper list [--page N] [--size N]    # List one page of files
    drive-helper upload <path> [--name NAME]   # Upload a local file
    drive-helper link <file_id>                # Resolve signed download URL
    drive-helper direct-link <file_id>         # Media URL with access token
    drive-helper share <file_id>               # Make file readable by link
    drive-helper purge --yes                   # Delete every file

Global options:
    --key PATH      Service account key (default: GOOGLE_SERVICE_ACCOUNT_KEY
                    or google/service_account_key.json)
    -v, --verbose   Debug logging
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any

from drive_helper.drive import DriveClient, DriveError
from drive_helper.google import GoogleAuthError


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _build_client(key_path: str | None) -> DriveClient:
    return DriveClient.from_key_file(key_path)


def cmd_status() -> int:
    """Show status of the configured credentials."""
    from drive_helper.config import get_credential_status

    status = get_credential_status()
    sa = status["service_account"]

    print("=" * 60)
    print("DRIVE-HELPER CREDENTIAL STATUS")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print(f".env:       {'[x]' if status['env_file'] else '[ ]'}")
    print()
    print("Service account key:")
    print(f"  {'[x]' if sa['exists'] else '[ ]'} {sa['key_path']}")
    if sa["from_env"]:
        print("      (from GOOGLE_SERVICE_ACCOUNT_KEY)")
    print()
    print(f"Log level: {status['log_level']}")
    return 0


def cmd_import_key(source_path: str) -> int:
    """Import service account key from a file."""
    from drive_helper.config import GOOGLE_SERVICE_ACCOUNT, ensure_google_dir

    source = Path(source_path).expanduser()

    if not source.exists():
        print(f"Error: File not found: {source}")
        return 1

    try:
        with open(source) as f:
            data = json.load(f)

        if not isinstance(data, dict):
            print("Error: Invalid service account key format")
            print(f"Expected a JSON object, got {type(data).__name__}")
            return 1

        if data.get("type") != "service_account":
            print("Error: Invalid service account key format")
            print(f"Expected type 'service_account', got '{data.get('type')}'")
            return 1

        email = data.get("client_email", "unknown")
        project = data.get("project_id", "unknown")

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    ensure_google_dir()
    shutil.copy2(source, GOOGLE_SERVICE_ACCOUNT)

    print("Imported service account key")
    print(f"  From: {source}")
    print(f"  To:   {GOOGLE_SERVICE_ACCOUNT}")
    print(f"  Email: {email}")
    print(f"  Project: {project}")
    print()
    print("Files shared with the service account email become visible to drive-helper.")
    return 0


def cmd_quota(client: DriveClient) -> int:
    """Show storage quota."""
    _print_json(client.get_quota().to_dict())
    return 0


def cmd_list(client: DriveClient, page: int, size: int) -> int:
    """List one page of files."""
    _print_json([f.to_dict() for f in client.list_files(page=page, size=size)])
    return 0


def cmd_upload(
    client: DriveClient,
    path: str,
    name: str | None,
    description: str,
    mime_type: str | None,
) -> int:
    """Upload a local file."""
    uploaded = client.upload_file(
        name or Path(path).name,
        path,
        description=description,
        mime_type=mime_type,
    )
    _print_json(uploaded.to_dict())
    return 0


def cmd_link(client: DriveClient, file_id: str) -> int:
    """Resolve the signed download URL for a file."""
    drive_file, details = client.get_download_link(file_id)
    _print_json(
        {
            "file": drive_file.to_dict(),
            "link": details.link,
            "userAgent": details.user_agent,
            "xApiClient": details.x_api_client,
        }
    )
    return 0


def cmd_direct_link(client: DriveClient, file_id: str) -> int:
    """Print the media URL with an embedded access token."""
    print(client.get_direct_download_url(file_id))
    return 0


def cmd_share(client: DriveClient, file_id: str) -> int:
    """Make a file readable by anyone with the link."""
    drive_file, url = client.get_sharable_link(file_id)
    _print_json({"file": drive_file.to_dict(), "url": url})
    return 0


def cmd_purge(client: DriveClient, confirmed: bool) -> int:
    """Delete every file visible to the service account."""
    if not confirmed:
        print("Refusing to delete every file without --yes")
        return 1

    deleted = client.delete_all_files()
    print(f"Deleted {deleted} files")
    return 0


def _run_client_command(args: argparse.Namespace) -> int:
    with _build_client(args.key) as client:
        if args.command == "quota":
            return cmd_quota(client)
        if args.command == "list":
            return cmd_list(client, args.page, args.size)
        if args.command == "upload":
            return cmd_upload(client, args.path, args.name, args.description, args.mime_type)
        if args.command == "link":
            return cmd_link(client, args.file_id)
        if args.command == "direct-link":
            return cmd_direct_link(client, args.file_id)
        if args.command == "share":
            return cmd_share(client, args.file_id)
        if args.command == "purge":
            return cmd_purge(client, args.yes)
    return 0


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    from drive_helper.config import get_log_level

    logging.basicConfig(
        level=logging.DEBUG if verbose else get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="drive-helper",
        description="Google Drive file management with a service account",
    )
    parser.add_argument("--key", type=str, default=None, help="Service account key file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    subparsers.add_parser("status", help="Show credential configuration")

    import_key_parser = subparsers.add_parser("import-key", help="Import service account key")
    import_key_parser.add_argument("path", help="Path to service account JSON key file")

    subparsers.add_parser("quota", help="Show storage quota")

    list_parser = subparsers.add_parser("list", help="List one page of files")
    list_parser.add_argument("--page", type=int, default=1, help="1-based page (default: 1)")
    list_parser.add_argument("--size", type=int, default=10, help="Page size (default: 10)")

    upload_parser = subparsers.add_parser("upload", help="Upload a local file")
    upload_parser.add_argument("path", help="Local file to upload")
    upload_parser.add_argument("--name", type=str, default=None, help="Drive file name")
    upload_parser.add_argument("--description", type=str, default="", help="Description")
    upload_parser.add_argument("--mime-type", type=str, default=None, help="MIME type")

    link_parser = subparsers.add_parser("link", help="Resolve signed download URL")
    link_parser.add_argument("file_id", help="Drive file ID")

    direct_parser = subparsers.add_parser("direct-link", help="Media URL with access token")
    direct_parser.add_argument("file_id", help="Drive file ID")

    share_parser = subparsers.add_parser("share", help="Make file readable by link")
    share_parser.add_argument("file_id", help="Drive file ID")

    purge_parser = subparsers.add_parser("purge", help="Delete every file")
    purge_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    try:
        configure_logging(args.verbose)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "status":
        return cmd_status()

    if args.command == "import-key":
        return cmd_import_key(args.path)

    try:
        return _run_client_command(args)
    except (GoogleAuthError, DriveError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

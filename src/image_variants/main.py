"""Command-line interface for image-variants."""

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path
from typing import Any, List, Optional

from . import __version__
from .core import (
    ImageVariantsError,
    SourceImage,
    UploadConfig,
    UploadOptions,
    setup_logger,
)
from .core.factories import UploadServiceFactory
from .core.services import ImageUploadService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-variants",
        description="Resize images into thumbnail/medium/large WebP variants and upload them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload one image into uploads/avatars/u42
  image-variants upload photo.jpg --user-id u42 --category avatars --bucket my-bucket

  # Upload several images at once (at most 10)
  image-variants upload a.jpg b.png c.webp --folder campaigns/spring

  # Delete a stored variant
  image-variants delete uploads/avatars/u42/u42_avatars_thumbnail_1700000000000
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    upload_parser = subparsers.add_parser("upload", help="Create and upload variants")
    upload_parser.add_argument("files", nargs="+", help="Image files to upload")
    upload_parser.add_argument("--user-id", default=None, help="Owner of the upload")
    upload_parser.add_argument("--category", default=None, help="Upload category")
    upload_parser.add_argument(
        "--folder", default=None, help="Explicit storage folder (overrides user/category)"
    )
    upload_parser.add_argument("--description", default=None, help="Free text description")
    upload_parser.add_argument(
        "--tag", dest="tags", action="append", default=[], help="Tag (repeatable)"
    )
    upload_parser.add_argument(
        "--public", dest="is_public", action="store_true", default=None,
        help="Mark the upload as public",
    )
    upload_parser.add_argument("--bucket", default=None, help="Target S3 bucket")
    upload_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    delete_parser = subparsers.add_parser("delete", help="Delete a stored variant")
    delete_parser.add_argument("public_id", help="Public id of the stored object")
    delete_parser.add_argument("--bucket", default=None, help="Target S3 bucket")
    delete_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")

    return parser


def read_source_image(path: str) -> SourceImage:
    """Load a file from disk the way the transport layer would hand it over."""
    file_path = Path(path)
    data = file_path.read_bytes()
    mimetype, _ = mimetypes.guess_type(file_path.name)
    return SourceImage(
        buffer=data,
        mimetype=mimetype or "application/octet-stream",
        size=len(data),
        filename=file_path.name,
    )


def create_service(args: argparse.Namespace) -> ImageUploadService:
    overrides = {"bucket": args.bucket} if args.bucket else {}
    config = UploadConfig.from_env(**overrides)
    return UploadServiceFactory.create_service(config=config)


async def run_upload(service: ImageUploadService, args: argparse.Namespace) -> Any:
    options = UploadOptions(
        user_id=args.user_id,
        category=args.category,
        folder=args.folder,
        description=args.description,
        tags=args.tags,
        is_public=args.is_public,
    )
    files = [read_source_image(path) for path in args.files]

    if len(files) == 1:
        result = await service.process_single(files[0], options)
        return result.to_response()

    results = await service.process_batch(files, options)
    return [result.to_response() for result in results]


async def run_delete(service: ImageUploadService, args: argparse.Namespace) -> Any:
    result = await service.delete_asset(args.public_id)
    return result.model_dump()


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``image-variants`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print("Image Variants CLI")
        print(f"Version {__version__}")
        sys.exit(0)
        return

    if args.command not in ("upload", "delete"):
        parser.print_help()
        sys.exit(1)
        return

    setup_logger("image-variants", level="DEBUG" if args.debug else None)

    try:
        service = create_service(args)
        try:
            runner = run_upload if args.command == "upload" else run_delete
            payload = asyncio.run(runner(service, args))
        finally:
            service.close()
    except (ImageVariantsError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
        return

    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()

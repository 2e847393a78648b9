#!/usr/bin/env python3
"""
Batch Image Uploader
Uploads image files from the command line through the admin upload API.
"""
import argparse
import asyncio
import getpass
import sys

import httpx

from app.client.uploader import ImageUploader, UploadError
from app.config import settings


async def login(base_url: str, email: str, password: str) -> str:
    """Log in and return the session token."""
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        response = await client.post("/api/auth/login", json={"email": email, "password": password})
        response.raise_for_status()
        return response.json()["accessToken"]


async def run(args: argparse.Namespace) -> int:
    password = getpass.getpass(f"Password for {args.email}: ")
    try:
        token = await login(args.base_url, args.email, password)
    except httpx.HTTPError as e:
        print(f"❌ Login failed: {e}")
        return 1

    uploader = ImageUploader(
        args.base_url,
        token=token,
        album_id=args.album,
        max_files=settings.MAX_BATCH_FILES,
        max_file_bytes=settings.MAX_UPLOAD_BYTES,
        on_progress=lambda value: print(f"\r⏳ Uploading... {value}%", end="", flush=True),
    )
    uploader.is_featured = args.featured
    uploader.is_active = not args.inactive

    rejected = uploader.select_paths(args.paths)
    for name in rejected:
        print(f"⚠️  Skipping {name}: not an image or larger than 10MB")
    if len(args.paths) - len(rejected) > uploader.max_files:
        print(f"⚠️  Only the first {uploader.max_files} files are uploaded")

    if not uploader.files:
        print("❌ Nothing to upload")
        return 1

    try:
        payload = await uploader.upload()
    except UploadError as e:
        print(f"\n❌ {e}")
        return 1

    print(f"\n✅ {payload['message']}")
    for result in payload["results"]:
        if not result["success"]:
            print(f"   ❌ {result['filename']}: {result['error']}")
    return 0 if not uploader.files else 2


def main():
    parser = argparse.ArgumentParser(description="Upload images to the gallery")
    parser.add_argument("paths", nargs="+", help="Image files to upload")
    parser.add_argument("--base-url", default="http://localhost:8000", help="API root URL")
    parser.add_argument("--email", required=True, help="Admin account email")
    parser.add_argument("--album", help="Album ID to assign the images to")
    parser.add_argument("--featured", action="store_true", help="Show the images in the homepage slider")
    parser.add_argument("--inactive", action="store_true", help="Upload the images hidden from the public site")
    sys.exit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()

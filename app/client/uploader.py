"""
Client-side batch uploader for the admin gallery manager.

Collects candidate files, applies the same type/size checks as the server
(advisory only, the server re-validates), posts them as one multipart batch
to /api/images/upload and keeps the files that failed for a manual retry.

State machine:
    IDLE -> FILES_SELECTED -> UPLOADING -> IDLE            (all succeeded)
                                        -> FILES_SELECTED  (some failed, or the request failed)
"""
import asyncio
import contextlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 20
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024
UPLOAD_PATH = "/api/images/upload"


class UploaderState(str, Enum):
    IDLE = "idle"
    FILES_SELECTED = "filesSelected"
    UPLOADING = "uploading"


class UploadError(Exception):
    """The batch request itself failed; selected files are kept."""


@dataclass
class PendingFile:
    filename: str
    content: bytes
    content_type: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])

    @property
    def size(self) -> int:
        return len(self.content)


FileSpec = Union[PendingFile, Tuple[str, bytes], Tuple[str, bytes, str]]


class ImageUploader:
    """
    Batch image uploader.

    Args:
        base_url: API root, e.g. "https://api.example.com"
        token: Admin session token sent as a Bearer header
        album_id: Optional album the whole batch is assigned to
        max_files: Selection cap; files beyond it are dropped silently
        on_upload_complete: Called with the created image summaries after each upload
        on_progress: Called with a 0-100 progress value while uploading
        client: Optional httpx.AsyncClient to reuse (tests, connection pooling)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        album_id: Optional[str] = None,
        max_files: int = DEFAULT_MAX_FILES,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        on_upload_complete: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        timeout: float = 60.0,
        progress_interval: float = 0.2,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.album_id = album_id
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes
        self.on_upload_complete = on_upload_complete
        self.on_progress = on_progress
        self.timeout = timeout
        self.progress_interval = progress_interval
        self._client = client

        self.is_featured = False
        self.is_active = True
        self.files: List[PendingFile] = []
        self.results: List[Dict[str, Any]] = []
        self.progress = 0
        self._uploading = False

    @property
    def state(self) -> UploaderState:
        if self._uploading:
            return UploaderState.UPLOADING
        return UploaderState.FILES_SELECTED if self.files else UploaderState.IDLE

    def is_acceptable(self, content_type: str, size: int) -> bool:
        return content_type.startswith("image/") and size <= self.max_file_bytes

    def select_files(self, files: Iterable[FileSpec]) -> List[str]:
        """
        Add files to the pending batch.

        Returns:
            list[str]: filenames rejected by the advisory type/size check
        """
        if self._uploading:
            raise UploadError("Cannot change the selection while an upload is in progress")

        rejected = []
        for spec in files:
            pending = spec if isinstance(spec, PendingFile) else self._to_pending(*spec)
            if self.is_acceptable(pending.content_type, pending.size):
                self.files.append(pending)
            else:
                rejected.append(pending.filename)

        self.files = self.files[:self.max_files]
        return rejected

    def select_paths(self, paths: Iterable[Union[str, Path]]) -> List[str]:
        """Read files from disk and add them to the pending batch."""
        return self.select_files((Path(p).name, Path(p).read_bytes()) for p in paths)

    def remove_file(self, file_id: str) -> None:
        self.files = [f for f in self.files if f.id != file_id]

    def clear(self) -> None:
        self.files = []
        self.results = []

    @staticmethod
    def _to_pending(filename: str, content: bytes, content_type: Optional[str] = None) -> PendingFile:
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return PendingFile(filename=filename, content=content, content_type=content_type)

    def _report(self, value: int) -> None:
        self.progress = value
        if self.on_progress:
            self.on_progress(value)

    async def _tick_progress(self) -> None:
        """Indeterminate progress: +10 per interval, holding at 90 until the response."""
        while True:
            await asyncio.sleep(self.progress_interval)
            if self.progress < 90:
                self._report(self.progress + 10)

    def _form(self) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
        data = {
            "isFeatured": "true" if self.is_featured else "false",
            "isActive": "true" if self.is_active else "false",
        }
        if self.album_id:
            data["albumId"] = self.album_id
        files = [("files", (f.filename, f.content, f.content_type)) for f in self.files]
        return data, files

    async def _post(self, client: httpx.AsyncClient) -> httpx.Response:
        data, files = self._form()
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return await client.post(UPLOAD_PATH, data=data, files=files, headers=headers)

    async def upload(self) -> Dict[str, Any]:
        """
        Submit the pending batch.

        Successfully uploaded files are removed from the selection; failed ones
        stay selected for a manual retry.

        Returns:
            dict: the server response ({"message", "results"})

        Raises:
            UploadError: when nothing is selected, or the request fails as a whole
        """
        if self._uploading:
            raise UploadError("An upload is already in progress")
        if not self.files:
            raise UploadError("No files selected")

        self._uploading = True
        self.results = []
        self._report(0)
        ticker = asyncio.create_task(self._tick_progress())

        try:
            if self._client is not None:
                response = await self._post(self._client)
            else:
                async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                    response = await self._post(client)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Upload request failed: {str(e)}")
            raise UploadError(f"Upload failed: {str(e)}") from e
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
            self._uploading = False

        self._report(100)
        self.results = payload.get("results", [])

        # Results are positional: one entry per submitted file
        self.files = [
            f for index, f in enumerate(self.files)
            if not (index < len(self.results) and self.results[index].get("success"))
        ]

        uploaded = [r["image"] for r in self.results if r.get("success")]
        logger.info(f"{payload.get('message')} ({len(self.files)} file(s) left for retry)")
        if self.on_upload_complete:
            self.on_upload_complete(uploaded)

        return payload

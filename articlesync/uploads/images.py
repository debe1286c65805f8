"""Batch upload of images referenced by an article's markdown.

Before an article is pushed to the remote service, every image it references
locally has to be re-hosted.  Three reference kinds are recognised:

  ![alt](http://localhost:3000/api/upload/<articleId>/<file>)   absolute local URL
  ![alt](/api/upload/<articleId>/<file>)                        relative local URL
  ![alt](data:image/<ext>;base64,<data>)                        inline image

process_article_images() hands each image's bytes and extension hint to a
caller-supplied ``upload`` coroutine, with at most ``concurrency`` uploads in
flight.  Failures are per item: a failed image keeps its original reference
in the document and is reported next to the successes, so a partially failed
batch yields a partially rewritten document.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote, urlsplit

from articlesync.config import settings

logger = logging.getLogger(__name__)

# upload(data, extension) -> new persistent URL
ImageUploader = Callable[[bytes, str], Awaitable[str]]

_LOCAL_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\((http://localhost:\d+/api/upload/[^)]+)\)")
_RELATIVE_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\((/api/upload/[^)]+)\)")
_BASE64_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\((data:image/([a-zA-Z]+);base64,([^)]+))\)")
_UPLOAD_PATH_PATTERN = re.compile(r"/api/upload/(\d+)/(.+)")

_DEFAULT_EXTENSION = "png"


@dataclass(frozen=True)
class ImageUploadResult:
    """Outcome for one image reference.

    On failure new_url equals original_url: the reference is left untouched.
    """

    original_url: str
    new_url: str
    success: bool
    error: str | None = None


@dataclass
class ImageBatchResult:
    """Rewritten document plus one result per image, in discovery order."""

    content: str
    results: list[ImageUploadResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


@dataclass(frozen=True)
class _ImageRef:
    full_match: str
    alt: str
    url: str
    # Only set for inline base64 images
    extension: str | None = None
    data: str | None = None

    @property
    def display_url(self) -> str:
        if self.data is not None:
            return f"data:image/{self.extension};base64,..."
        return self.url


def _find_image_refs(content: str) -> list[_ImageRef]:
    refs = [
        _ImageRef(full_match=m.group(0), alt=m.group(1), url=m.group(2))
        for pattern in (_LOCAL_IMAGE_PATTERN, _RELATIVE_IMAGE_PATTERN)
        for m in pattern.finditer(content)
    ]
    refs.extend(
        _ImageRef(
            full_match=m.group(0),
            alt=m.group(1),
            url=m.group(2),
            extension=m.group(3),
            data=m.group(4),
        )
        for m in _BASE64_IMAGE_PATTERN.finditer(content)
    )
    return refs


def has_local_images(content: str) -> bool:
    """Return True if the markdown references any local or inline image."""
    return any(
        pattern.search(content)
        for pattern in (_LOCAL_IMAGE_PATTERN, _RELATIVE_IMAGE_PATTERN, _BASE64_IMAGE_PATTERN)
    )


def count_local_images(content: str) -> int:
    """Return the number of local and inline image references in the markdown."""
    return len(_find_image_refs(content))


def resolve_local_file_path(url: str, upload_dir: str | Path) -> Path | None:
    """Map an /api/upload/<articleId>/<file> URL to a file under *upload_dir*.

    Returns:
        The local path, or None if the URL does not have the expected shape
        or points outside the upload directory.
    """
    path = urlsplit(url).path if url.startswith(("http://", "https://")) else url
    match = _UPLOAD_PATH_PATTERN.search(path)
    if match is None:
        logger.debug("Cannot parse upload path from URL: %s", url)
        return None

    article_dir, filename = match.group(1), unquote(match.group(2))
    root = Path(upload_dir).resolve()
    local_path = (root / article_dir / filename).resolve()
    if not local_path.is_relative_to(root):
        logger.warning("Upload URL escapes the upload directory: %s", url)
        return None
    return local_path


async def _read_image(ref: _ImageRef, upload_dir: str | Path) -> tuple[bytes, str]:
    if ref.data is not None:
        try:
            return base64.b64decode(ref.data, validate=True), ref.extension or _DEFAULT_EXTENSION
        except binascii.Error as exc:
            raise ValueError(f"invalid base64 image data: {exc}") from exc

    local_path = resolve_local_file_path(ref.url, upload_dir)
    if local_path is None or not local_path.is_file():
        raise FileNotFoundError("image file not found")
    data = await asyncio.to_thread(local_path.read_bytes)
    return data, local_path.suffix.lstrip(".") or _DEFAULT_EXTENSION


async def _upload_one(
    ref: _ImageRef,
    upload: ImageUploader,
    upload_dir: str | Path,
    semaphore: asyncio.Semaphore,
) -> tuple[_ImageRef, ImageUploadResult]:
    async with semaphore:
        try:
            data, extension = await _read_image(ref, upload_dir)
            logger.debug(
                "Uploading image %s (%d bytes, .%s)", ref.display_url, len(data), extension
            )
            new_url = await upload(data, extension)
        except Exception as exc:
            logger.warning("Image upload failed for %s: %s", ref.display_url, exc)
            return ref, ImageUploadResult(
                original_url=ref.display_url,
                new_url=ref.display_url,
                success=False,
                error=str(exc) or type(exc).__name__,
            )

    return ref, ImageUploadResult(original_url=ref.display_url, new_url=new_url, success=True)


async def process_article_images(
    content: str,
    upload: ImageUploader,
    upload_dir: str | Path | None = None,
    concurrency: int | None = None,
) -> ImageBatchResult:
    """Upload every local/inline image in *content* and rewrite its references.

    Args:
        content:     Article markdown.
        upload:      Coroutine taking (bytes, extension) and returning the new URL.
        upload_dir:  Root of locally stored uploads; defaults to settings.upload_dir.
        concurrency: Max uploads in flight; defaults to settings.image_upload_concurrency.

    Returns:
        ImageBatchResult with the rewritten markdown (successes only) and one
        ImageUploadResult per reference found.
    """
    if upload_dir is None:
        upload_dir = settings.upload_dir
    if concurrency is None:
        concurrency = settings.image_upload_concurrency
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    refs = _find_image_refs(content)
    if not refs:
        logger.debug("No local or inline images to upload")
        return ImageBatchResult(content=content)

    logger.info("Uploading %d images (max %d concurrent)", len(refs), concurrency)

    semaphore = asyncio.Semaphore(concurrency)
    outcomes = await asyncio.gather(
        *(_upload_one(ref, upload, upload_dir, semaphore) for ref in refs)
    )

    batch = ImageBatchResult(content=content)
    for ref, result in outcomes:
        batch.results.append(result)
        if result.success:
            batch.content = batch.content.replace(
                ref.full_match, f"![{ref.alt}]({result.new_url})", 1
            )

    logger.info("Image upload finished: %d/%d succeeded", batch.succeeded, len(batch.results))
    return batch

"""Image re-hosting for articles about to be pushed to the remote service."""

from articlesync.uploads.images import (
    ImageBatchResult,
    ImageUploadResult,
    count_local_images,
    has_local_images,
    process_article_images,
    resolve_local_file_path,
)

__all__ = [
    "ImageBatchResult",
    "ImageUploadResult",
    "count_local_images",
    "has_local_images",
    "process_article_images",
    "resolve_local_file_path",
]

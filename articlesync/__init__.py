"""ArticleSync — keeps locally edited articles consistent with a remote copy-of-record.

Provides:
- sync:    content hashing, version history, sync status tracking and
           conflict detection/resolution behind ArticleSyncService
- uploads: bounded-concurrency upload of images referenced by an article
- db:      SQLAlchemy models, session factory and typed repositories
- api:     FastAPI router exposing the sync operations over HTTP
- cli:     operator commands (`articlesync --help`)
"""

__version__ = "0.1.0"

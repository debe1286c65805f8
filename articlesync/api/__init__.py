"""ArticleSync REST API package.

Exposes the ArticleSyncService operations over HTTP for a sync
orchestrator running out of process.

Mount point: /api/v1/
"""

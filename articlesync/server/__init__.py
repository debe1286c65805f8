"""ArticleSync HTTP server (FastAPI app factory and ASGI entry point)."""

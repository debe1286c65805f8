"""Persistence layer: ORM models, async session factory, typed repositories."""

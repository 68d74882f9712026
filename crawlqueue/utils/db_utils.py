"""Helpers for database connection strings.

Tortoise ORM picks its driver from the URL scheme: ``asyncpg://`` for
PostgreSQL and ``sqlite://`` for SQLite. Deployments usually hand us a
SQLAlchemy or libpq style URL instead, so it is normalised here.
"""

from __future__ import annotations


_POSTGRES_SCHEMES = ("postgresql://", "postgres://")


def to_tortoise_dsn(url: str) -> str:
    """Convert a PostgreSQL URL to the ``asyncpg://`` scheme Tortoise expects.

    ``postgresql+psycopg2://`` and friends lose their driver suffix first.
    Anything that is not PostgreSQL (``sqlite://``, ``asyncpg://``) is
    returned unchanged.
    """

    if url.startswith("postgresql+"):
        url = "postgresql://" + url.split("://", 1)[1]
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return "asyncpg://" + url[len(scheme):]
    return url


def build_postgres_url(
    user: str,
    password: str,
    host: str,
    port: str,
    database: str,
) -> str:
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"
